"""Overlay drawing helpers (OpenCV).

Used by the CLI display window and the annotated API endpoint to render the
committed candidate, its ROI and the resolved label.
"""

from __future__ import annotations

import cv2
import numpy as np

from signallens.core.types import GO, NO_SIGNAL, STOP, UNKNOWN, WAIT, SignalReading

# BGR colors.
STATE_COLORS: dict[str, tuple[int, int, int]] = {
    STOP: (0, 0, 255),
    GO: (0, 200, 0),
    WAIT: (0, 220, 255),
    UNKNOWN: (200, 200, 200),
    NO_SIGNAL: (128, 128, 128),
}
AMBIGUOUS_COLOR = (255, 0, 255)
ROI_COLOR = (255, 170, 0)
TEXT_BG_COLOR = (0, 0, 0)


def state_color(state: str) -> tuple[int, int, int]:
    """Return the overlay color for a label (joined labels share one color)."""

    return STATE_COLORS.get(state, AMBIGUOUS_COLOR)


def draw_reading(frame: np.ndarray, reading: SignalReading, channel_order: str = "bgr") -> np.ndarray:
    """Return a 3-channel BGR copy of `frame` with the reading drawn on it."""

    img = frame[:, :, :3].copy()
    if channel_order == "rgb":
        img = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)
    color = state_color(reading.state)

    if reading.roi is not None:
        roi = reading.roi
        cv2.rectangle(
            img,
            (roi.x0, roi.y0),
            (roi.x0 + roi.width - 1, roi.y0 + roi.height - 1),
            ROI_COLOR,
            1,
        )
    if reading.candidate is not None:
        cx, cy = reading.candidate.center
        cv2.circle(img, (int(cx), int(cy)), int(reading.candidate.radius), color, 2)

    label = reading.state
    (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
    cv2.rectangle(img, (8, 8), (16 + tw, 16 + th + baseline), TEXT_BG_COLOR, -1)
    cv2.putText(
        img,
        label,
        (12, 12 + th),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.8,
        color,
        2,
        cv2.LINE_AA,
    )
    return img
