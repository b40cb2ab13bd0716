"""Circular candidate localization (Hough gradient transform + post-filter).

Parameters were picked for traffic-light-scale lenses in a forward-facing
dashcam view: lenses are 20-100 px in radius and sit in the upper third of the
frame.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import cv2
import numpy as np

from signallens.core.types import Candidate


@dataclass(frozen=True)
class CircleConfig:
    dp: float = 1.0
    # Minimum distance between distinct centers is rows / min_dist_divisor.
    min_dist_divisor: float = 8.0
    # Upper Canny threshold (the lower one is half of it).
    param1: float = 100.0
    # Accumulator vote threshold.
    param2: float = 30.0
    min_radius: int = 20
    max_radius: int = 100
    # Centers lower than rows // upper_region_divisor are rejected.
    upper_region_divisor: int = 3


def accept_candidate(candidate: Candidate, frame_rows: int, config: CircleConfig) -> bool:
    """Return True when a raw detection passes the radius and vertical-position filter."""

    if candidate.radius < config.min_radius or candidate.radius > config.max_radius:
        return False
    return candidate.center[1] <= frame_rows // config.upper_region_divisor


class HoughCircleLocator:
    """Find circle candidates in a grayscale frame.

    `detect()` runs the raw transform; `find_circles()` lazily applies the
    post-filter in the order the transform returned the circles. That order is
    not sorted by confidence.
    """

    def __init__(self, config: CircleConfig | None = None) -> None:
        self.config = config or CircleConfig()

    def detect(self, gray: np.ndarray) -> list[Candidate]:
        """Return every raw circle found by `cv2.HoughCircles`, unfiltered."""

        cfg = self.config
        rows = gray.shape[0]
        circles = cv2.HoughCircles(
            gray,
            cv2.HOUGH_GRADIENT,
            cfg.dp,
            rows / cfg.min_dist_divisor,
            param1=cfg.param1,
            param2=cfg.param2,
            minRadius=cfg.min_radius,
            maxRadius=cfg.max_radius,
        )
        if circles is None:
            return []
        return [
            Candidate(center=(float(x), float(y)), radius=int(r))
            for x, y, r in np.asarray(circles, dtype=np.float64).reshape(-1, 3)
        ]

    def find_circles(self, gray: np.ndarray) -> Iterator[Candidate]:
        """Yield the accepted candidates one at a time."""

        rows = gray.shape[0]
        for candidate in self.detect(gray):
            if accept_candidate(candidate, rows, self.config):
                yield candidate
