"""Per-frame traffic-signal classification pipeline.

This module ties together preprocessing, circle localization, ROI color analysis
and state resolution into a single stateless per-frame call.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import Protocol

import numpy as np

from signallens.core.circles import HoughCircleLocator
from signallens.core.color import classify, region_of_interest
from signallens.core.config.settings import SignalSettings, circle_config_from_settings
from signallens.core.preprocess import smooth, to_grayscale, validate_frame
from signallens.core.state import DEFAULT_THRESHOLD, resolve
from signallens.core.types import NO_SIGNAL, Candidate, SignalReading

logger = logging.getLogger(__name__)


class CircleLocator(Protocol):
    """Minimal locator interface expected by `SignalPipeline`."""

    def find_circles(self, gray: np.ndarray) -> Iterable[Candidate]:
        """Return accepted candidates in detection order."""


class SignalPipeline:
    """End-to-end per-frame signal classification.

    Responsibilities:
    - blur the caller's frame in place and derive a grayscale copy
    - locate circle candidates
    - classify the first accepted candidate and resolve its label

    The pipeline commits to the first accepted candidate rather than searching
    for the most confident one, so a spurious circle ahead of the real lens in
    detection order hides the lens for that frame. No frame or result is kept
    between calls.
    """

    def __init__(
        self,
        locator: CircleLocator | None = None,
        blur_kernel_size: int = 9,
        blur_sigma: float = 2.0,
        channel_order: str = "bgr",
        match_threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        """Create a pipeline with an optional injected locator."""

        self.locator: CircleLocator = locator or HoughCircleLocator()
        self.blur_kernel_size = blur_kernel_size
        self.blur_sigma = blur_sigma
        self.channel_order = channel_order
        self.match_threshold = match_threshold

    @classmethod
    def from_settings(cls, settings: SignalSettings) -> SignalPipeline:
        """Build a pipeline from runtime settings."""

        return cls(
            locator=HoughCircleLocator(circle_config_from_settings(settings)),
            blur_kernel_size=settings.blur_kernel_size,
            blur_sigma=settings.blur_sigma,
            channel_order=settings.channel_order,
            match_threshold=settings.match_threshold,
        )

    def _process_internal(self, frame: np.ndarray, profile: bool) -> SignalReading:
        timings: dict[str, float] = {}
        t_all0 = time.perf_counter() if profile else 0.0

        validate_frame(frame)
        h, w = frame.shape[:2]

        t0 = time.perf_counter() if profile else 0.0
        smooth(frame, self.blur_kernel_size, self.blur_sigma)
        gray = to_grayscale(frame, self.channel_order)
        t1 = time.perf_counter() if profile else 0.0
        if profile:
            timings["preprocess_ms"] = (t1 - t0) * 1000.0

        reading = SignalReading(state=NO_SIGNAL, frame_size=(w, h))
        candidates = iter(self.locator.find_circles(gray))
        candidate = next(candidates, None)
        t2 = time.perf_counter() if profile else 0.0
        if profile:
            timings["locate_ms"] = (t2 - t1) * 1000.0

        if candidate is not None:
            roi = region_of_interest(candidate, frame.shape)
            ratios = classify(frame, roi, self.channel_order)
            reading.candidate = candidate
            reading.roi = roi
            reading.ratios = ratios
            reading.state = resolve(ratios, self.match_threshold)
            if profile:
                timings["classify_ms"] = (time.perf_counter() - t2) * 1000.0

        logger.debug(
            "frame %dx%d -> %s (candidate=%s ratios=%s)",
            w,
            h,
            reading.state,
            reading.candidate,
            reading.ratios,
        )
        if profile:
            timings["pipeline_ms"] = (time.perf_counter() - t_all0) * 1000.0
            reading.profile = timings
        return reading

    def process(self, frame: np.ndarray) -> tuple[np.ndarray, str]:
        """Classify one frame and return (frame, state).

        The returned frame is the caller's buffer, blurred in place.

        Raises:
            InvalidFrameError: when `frame` is None, empty or not a 3/4-channel
                uint8 image. Nothing is modified in that case.
        """

        reading = self._process_internal(frame, profile=False)
        return frame, reading.state

    def analyze(self, frame: np.ndarray, profile: bool = False) -> SignalReading:
        """Classify one frame and return the full reading (candidate, ROI, ratios)."""

        return self._process_internal(frame, profile=profile)
