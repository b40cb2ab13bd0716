import cv2
import numpy as np
import pytest

from signallens.core.preprocess import smooth, to_grayscale, validate_frame
from signallens.core.types import InvalidFrameError


@pytest.mark.parametrize(
    "frame",
    [
        None,
        [[0, 0, 0]],
        np.zeros((0, 0, 3), dtype=np.uint8),
        np.zeros((10, 0, 3), dtype=np.uint8),
        np.zeros((10, 10), dtype=np.uint8),
        np.zeros((10, 10, 2), dtype=np.uint8),
        np.zeros((10, 10, 3), dtype=np.float32),
    ],
)
def test_validate_frame_rejects_unprocessable_input(frame):
    with pytest.raises(InvalidFrameError):
        validate_frame(frame)


def test_invalid_frame_error_is_value_error():
    assert issubclass(InvalidFrameError, ValueError)


@pytest.mark.parametrize("channels", [3, 4])
def test_validate_frame_accepts_color_frames(channels):
    frame = np.zeros((4, 6, channels), dtype=np.uint8)
    assert validate_frame(frame) is frame


def test_smooth_writes_into_caller_buffer():
    frame = np.zeros((50, 50, 3), dtype=np.uint8)
    cv2.circle(frame, (25, 25), 10, (255, 255, 255), -1)
    before = frame.copy()

    out = smooth(frame)

    assert out is frame
    assert not np.array_equal(frame, before)
    expected = cv2.GaussianBlur(before, (9, 9), 2.0)
    assert np.array_equal(frame, expected)


def test_smooth_keeps_uniform_frame():
    frame = np.full((20, 30, 4), 77, dtype=np.uint8)
    smooth(frame)
    assert np.all(frame == 77)


def test_to_grayscale_is_single_channel_copy():
    frame = np.full((12, 8, 3), 200, dtype=np.uint8)
    gray = to_grayscale(frame)
    assert gray.shape == (12, 8)
    assert gray.dtype == np.uint8
    assert int(gray[0, 0]) == 200


def test_to_grayscale_honours_channel_order():
    # Pure red in RGB order; read as BGR it is pure blue.
    frame = np.zeros((2, 2, 3), dtype=np.uint8)
    frame[:, :, 0] = 255
    as_rgb = int(to_grayscale(frame, "rgb")[0, 0])
    as_bgr = int(to_grayscale(frame, "bgr")[0, 0])
    assert as_rgb == 76
    assert as_bgr == 29


def test_to_grayscale_supports_alpha_channel():
    frame = np.zeros((5, 5, 4), dtype=np.uint8)
    frame[:, :, :3] = 120
    frame[:, :, 3] = 255
    gray = to_grayscale(frame, "rgb")
    assert gray.shape == (5, 5)
    assert int(gray[2, 2]) == 120


def test_to_grayscale_rejects_unknown_order():
    with pytest.raises(InvalidFrameError):
        to_grayscale(np.zeros((2, 2, 3), dtype=np.uint8), "hsv")
