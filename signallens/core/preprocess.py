"""Frame validation and denoising ahead of shape detection."""

from __future__ import annotations

import cv2
import numpy as np

from signallens.core.types import Frame, InvalidFrameError

_GRAY_CODES: dict[tuple[str, int], int] = {
    ("bgr", 3): cv2.COLOR_BGR2GRAY,
    ("bgr", 4): cv2.COLOR_BGRA2GRAY,
    ("rgb", 3): cv2.COLOR_RGB2GRAY,
    ("rgb", 4): cv2.COLOR_RGBA2GRAY,
}


def validate_frame(frame: object) -> Frame:
    """Return `frame` unchanged if it is a processable color frame.

    Accepts `uint8` arrays shaped `(rows, cols, 3)` or `(rows, cols, 4)` with
    non-zero rows and cols. Anything else raises `InvalidFrameError`.
    """

    if frame is None:
        raise InvalidFrameError("frame is None")
    if not isinstance(frame, np.ndarray):
        raise InvalidFrameError(f"frame must be a numpy array, got {type(frame).__name__}")
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise InvalidFrameError(f"frame must be (rows, cols, 3|4), got shape {frame.shape}")
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise InvalidFrameError(f"frame has zero dimension: {frame.shape}")
    if frame.dtype != np.uint8:
        raise InvalidFrameError(f"frame dtype must be uint8, got {frame.dtype}")
    return frame


def smooth(frame: Frame, kernel_size: int = 9, sigma: float = 2.0) -> Frame:
    """Gaussian-blur `frame` in place and return it.

    The blurred pixels replace the caller's buffer, so every later stage (and the
    caller, when the frame is echoed back for display) sees the smoothed version.
    """

    frame[...] = cv2.GaussianBlur(frame, (kernel_size, kernel_size), sigma)
    return frame


def to_grayscale(frame: Frame, channel_order: str = "bgr") -> np.ndarray:
    """Return a single-channel luminance copy of a 3/4-channel frame."""

    code = _GRAY_CODES.get((channel_order, int(frame.shape[2])))
    if code is None:
        raise InvalidFrameError(
            f"unsupported channel layout: order={channel_order} channels={frame.shape[2]}"
        )
    return cv2.cvtColor(frame, code)
