"""Frame source abstractions.

Host tools consume frames through a small interface (`VideoSource`) so the capture
implementation (webcam/file/RTSP/still image) can be swapped without affecting the
detection pipeline.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path

import cv2

from signallens.core.types import Frame

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".webp"}


class VideoSource(ABC):
    """Base interface for anything that can produce frames.

    Live sources (`is_live`) may return `None` while waiting for the next frame;
    for the others `None` means the stream is exhausted.
    """

    is_live = False

    @abstractmethod
    def read(self) -> Frame | None:
        """Return the next frame, or `None` when unavailable."""

        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Release any underlying resources."""

        raise NotImplementedError


class OpenCVSource(VideoSource):
    """A `VideoSource` backed by `cv2.VideoCapture`."""

    def __init__(self, source: str | int) -> None:
        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open video source: {source}")

    def read(self) -> Frame | None:
        """Read the next frame from the underlying OpenCV capture."""

        ok, frame = self.cap.read()
        if not ok:
            return None
        return frame

    def close(self) -> None:
        """Release the underlying OpenCV capture."""

        self.cap.release()


class WebcamSource(OpenCVSource):
    """Webcam capture that always hands out the newest frame.

    A reader thread continuously drains the driver buffer and keeps only the latest
    frame, so a slow consumer drops frames instead of falling behind. `read` waits
    up to `timeout` seconds for a frame it has not delivered yet; `None` then means
    "nothing new yet", not end of stream.
    """

    is_live = True

    def __init__(self, index: int = 0, timeout: float = 1.0) -> None:
        super().__init__(index)
        logger.info("Opened camera index=%s", index)

        try:
            self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        except Exception:
            pass

        self.timeout = timeout
        self._lock = threading.Lock()
        self._new_frame = threading.Condition(self._lock)
        self._running = True
        self._latest_frame: Frame | None = None
        self._latest_seq = 0
        self._delivered_seq = 0
        self._reader_thread = threading.Thread(target=self._reader_loop, daemon=True)
        self._reader_thread.start()

    def _reader_loop(self) -> None:
        """Continuously drain the driver buffer and keep only the newest frame."""

        while self._running:
            ok, frame = self.cap.read()
            if ok:
                with self._new_frame:
                    self._latest_frame = frame
                    self._latest_seq += 1
                    self._new_frame.notify_all()
            else:
                time.sleep(0.01)

    def read(self) -> Frame | None:
        """Wait for a frame newer than the last one delivered and return a copy.

        Returns `None` if no new frame arrived within `timeout` or the source is closed.
        """

        with self._new_frame:
            self._new_frame.wait_for(
                lambda: self._latest_seq != self._delivered_seq or not self._running,
                timeout=self.timeout,
            )
            frame = self._latest_frame
            seq = self._latest_seq
        if frame is None or seq == self._delivered_seq:
            return None
        self._delivered_seq = seq
        # The pipeline blurs frames in place; hand out a private copy.
        return frame.copy()

    def close(self) -> None:
        """Stop the background reader thread and release the camera."""

        with self._new_frame:
            self._running = False
            self._new_frame.notify_all()
        try:
            if self._reader_thread.is_alive():
                self._reader_thread.join(timeout=1)
        finally:
            self.cap.release()


class FileSource(OpenCVSource):
    """Video file source (path to a container/codec supported by OpenCV)."""

    def __init__(self, path: str, loop: bool = False) -> None:
        self._path = path
        self._loop = loop
        super().__init__(path)

    def read(self) -> Frame | None:
        """Read the next frame; at EOF rewind when looping, else return `None`."""

        ok, frame = self.cap.read()
        if ok:
            return frame
        if not self._loop:
            return None
        if not self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0):
            return None
        ok2, frame2 = self.cap.read()
        return frame2 if ok2 else None


class RTSPSource(OpenCVSource):
    """RTSP stream source."""

    def __init__(self, url: str) -> None:
        # RTSP is often more reliable with the FFmpeg backend when available.
        backend = getattr(cv2, "CAP_FFMPEG", None)
        self.cap = cv2.VideoCapture(url) if backend is None else cv2.VideoCapture(url, backend)
        if not self.cap.isOpened():
            self.cap.release()
            self.cap = cv2.VideoCapture(url)
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open RTSP source: {url}")
        try:
            self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        except Exception:
            pass


class ImageSource(VideoSource):
    """Single still image, delivered once."""

    def __init__(self, path: str) -> None:
        self._frame = cv2.imread(path, cv2.IMREAD_COLOR)
        if self._frame is None:
            raise RuntimeError(f"Failed to read image: {path}")

    def read(self) -> Frame | None:
        frame, self._frame = self._frame, None
        return frame

    def close(self) -> None:
        self._frame = None


def make_source(target: str) -> VideoSource:
    """Build a source from a CLI-style input string.

    `webcam:<n>` or a bare integer opens a camera, `rtsp://...` a stream, an
    image path a single still, and anything else is treated as a video file.
    """

    if target.isdigit():
        return WebcamSource(int(target))
    if target.startswith("webcam:"):
        return WebcamSource(int(target.split(":", 1)[1] or 0))
    if target.startswith("rtsp://"):
        return RTSPSource(target)
    if Path(target).suffix.lower() in IMAGE_SUFFIXES:
        return ImageSource(target)
    return FileSource(target)
