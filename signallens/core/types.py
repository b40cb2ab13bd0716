"""Shared type definitions used across the detection core.

This module centralizes the small, stable per-frame types (candidates, regions,
color ratios and readings) so the locator/classifier/pipeline code can stay
strongly typed.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

Frame = np.ndarray

Point = tuple[float, float]

STOP = "STOP"
GO = "GO"
WAIT = "WAIT"
UNKNOWN = "UNKNOWN"
NO_SIGNAL = "NO SIGNAL"
STATE_SEPARATOR = " & "


class InvalidFrameError(ValueError):
    """Raised when a frame cannot be processed at all (null, empty, wrong layout)."""


@dataclass(frozen=True)
class Candidate:
    """Circle hypothesized to be a signal lens, in frame pixel coordinates."""

    center: Point
    radius: int


@dataclass(frozen=True)
class RegionOfInterest:
    """Axis-aligned rectangle fully contained in the frame."""

    x0: int
    y0: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class ColorRatios:
    """Fraction of ROI pixels inside each hue band (each in [0, 1])."""

    red: float
    green: float
    yellow: float


@dataclass
class SignalReading:
    """Result payload for one processed frame."""

    state: str
    candidate: Candidate | None = None
    roi: RegionOfInterest | None = None
    ratios: ColorRatios | None = None
    frame_size: tuple[int, int] = (0, 0)
    profile: dict[str, float] | None = None
