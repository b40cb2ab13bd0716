"""ROI color analysis in HSV space.

Each band is an inclusive `cv2.inRange` box on (hue, saturation, value) with the
8-bit OpenCV hue scale (0-180). Bands are disjoint by construction, so a pixel
matches at most one of them.
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from signallens.core.types import Candidate, ColorRatios, Frame, RegionOfInterest

HsvTriple = tuple[int, int, int]


@dataclass(frozen=True)
class HsvBand:
    """Inclusive HSV range."""

    lower: HsvTriple
    upper: HsvTriple


RED_BAND = HsvBand(lower=(0, 100, 100), upper=(10, 255, 255))
GREEN_BAND = HsvBand(lower=(40, 100, 100), upper=(80, 255, 255))
YELLOW_BAND = HsvBand(lower=(15, 150, 150), upper=(35, 255, 255))

_HSV_CODES: dict[str, int] = {
    "bgr": cv2.COLOR_BGR2HSV,
    "rgb": cv2.COLOR_RGB2HSV,
}
_DROP_ALPHA_CODES: dict[str, int] = {
    "bgr": cv2.COLOR_BGRA2BGR,
    "rgb": cv2.COLOR_RGBA2RGB,
}


def region_of_interest(candidate: Candidate, frame_shape: tuple[int, ...]) -> RegionOfInterest:
    """Return the candidate's bounding square clipped to the frame.

    The result is the intersection of `[c - r, c + r)` with the frame on each axis,
    so a candidate at the origin keeps only its in-frame quarter.
    """

    rows, cols = int(frame_shape[0]), int(frame_shape[1])
    cx, cy = candidate.center
    r = candidate.radius
    x0 = max(0, int(cx - r))
    y0 = max(0, int(cy - r))
    x1 = min(cols, int(cx + r))
    y1 = min(rows, int(cy + r))
    return RegionOfInterest(x0=x0, y0=y0, width=max(0, x1 - x0), height=max(0, y1 - y0))


def to_hsv(region: Frame, channel_order: str = "bgr") -> np.ndarray:
    """Convert a 3/4-channel color region to 8-bit HSV."""

    if region.shape[2] == 4:
        region = cv2.cvtColor(region, _DROP_ALPHA_CODES[channel_order])
    return cv2.cvtColor(region, _HSV_CODES[channel_order])


def band_ratio(hsv: np.ndarray, band: HsvBand) -> float:
    """Fraction of pixels in `hsv` that fall inside `band`."""

    total = hsv.shape[0] * hsv.shape[1]
    mask = cv2.inRange(hsv, np.array(band.lower, dtype=np.uint8), np.array(band.upper, dtype=np.uint8))
    return cv2.countNonZero(mask) / float(total)


def classify(
    frame: Frame,
    roi: RegionOfInterest,
    channel_order: str = "bgr",
    bands: tuple[HsvBand, HsvBand, HsvBand] = (RED_BAND, GREEN_BAND, YELLOW_BAND),
) -> ColorRatios:
    """Compute red/green/yellow coverage of `roi` inside `frame`.

    `bands` is ordered (red, green, yellow). The denominator is the ROI area.
    """

    rows, cols = frame.shape[:2]
    if (
        roi.width <= 0
        or roi.height <= 0
        or roi.x0 < 0
        or roi.y0 < 0
        or roi.x0 + roi.width > cols
        or roi.y0 + roi.height > rows
    ):
        raise ValueError(f"degenerate ROI for frame {cols}x{rows}: {roi}")

    region = frame[roi.y0 : roi.y0 + roi.height, roi.x0 : roi.x0 + roi.width]
    hsv = to_hsv(region, channel_order)
    red, green, yellow = bands
    return ColorRatios(
        red=band_ratio(hsv, red),
        green=band_ratio(hsv, green),
        yellow=band_ratio(hsv, yellow),
    )
