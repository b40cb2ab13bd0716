import asyncio
from pathlib import Path

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from signallens.api.main import app
from signallens.api.services import state as app_state
from signallens.api.services.state import get_pipeline
from signallens.core.circles import HoughCircleLocator
from signallens.core.config.settings import SignalSettings
from signallens.core.pipeline import SignalPipeline
from signallens.core.types import Candidate

LENS = Candidate(center=(100.0, 60.0), radius=30)


class FixedLocator(HoughCircleLocator):
    def __init__(self, raw):
        super().__init__()
        self.raw = raw

    def detect(self, gray):
        return list(self.raw)


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SLN_CONFIG", str(tmp_path / "missing.yml"))
    monkeypatch.setattr(app_state, "_settings", None)
    monkeypatch.setattr(app_state, "_pipeline", None)
    yield
    app.dependency_overrides.pop(get_pipeline, None)


def _png(frame: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", frame)
    assert ok
    return bytes(buf)


def _red_lens_frame() -> np.ndarray:
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    cv2.circle(frame, (100, 60), 30, (0, 0, 200), -1)
    return frame


def test_health_endpoint():
    client = TestClient(app)
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_get_config_returns_defaults():
    client = TestClient(app)
    res = client.get("/config")
    assert res.status_code == 200
    data = res.json()
    assert data["blur_kernel_size"] == 9
    assert data["match_threshold"] == 0.4
    assert data["channel_order"] == "bgr"


def test_post_config_updates_settings_and_rebuilds_pipeline():
    client = TestClient(app)
    first = get_pipeline()
    payload = {**SignalSettings().model_dump(), "match_threshold": 0.3, "min_radius": 25}

    res = client.post("/config", json=payload)

    assert res.status_code == 200
    assert res.json()["match_threshold"] == 0.3
    second = get_pipeline()
    assert second is not first
    assert second.match_threshold == 0.3
    assert second.locator.config.min_radius == 25


def test_post_config_validation():
    client = TestClient(app)
    payload = {**SignalSettings().model_dump(), "match_threshold": 1.5, "blur_kernel_size": 4}
    res = client.post("/config", json=payload)
    assert res.status_code == 422


def test_post_config_rejects_inverted_radius_range():
    client = TestClient(app)
    payload = {**SignalSettings().model_dump(), "min_radius": 80, "max_radius": 40}
    res = client.post("/config", json=payload)
    assert res.status_code == 422


def test_classify_black_image_is_no_signal():
    client = TestClient(app)
    frame = np.zeros((480, 640, 3), dtype=np.uint8)

    res = client.post("/classify", content=_png(frame))

    assert res.status_code == 200
    data = res.json()
    assert data["state"] == "NO SIGNAL"
    assert data["candidate"] is None
    assert data["frame_size"] == [640, 480]


def test_classify_red_lens_reports_reading():
    app.dependency_overrides[get_pipeline] = lambda: SignalPipeline(locator=FixedLocator([LENS]))
    client = TestClient(app)

    res = client.post("/classify?profile=true", content=_png(_red_lens_frame()))

    assert res.status_code == 200
    data = res.json()
    assert data["state"] == "STOP"
    assert data["candidate"] == {"center": [100.0, 60.0], "radius": 30}
    assert data["roi"] == {"x0": 70, "y0": 30, "width": 60, "height": 60}
    assert data["ratios"]["red"] > 0.7
    assert "pipeline_ms" in data["profile"]


def test_classify_rejects_empty_body():
    client = TestClient(app)
    res = client.post("/classify", content=b"")
    assert res.status_code == 422


def test_classify_rejects_undecodable_body():
    client = TestClient(app)
    res = client.post("/classify", content=b"definitely not an image")
    assert res.status_code == 422


def test_classify_annotated_returns_jpeg_with_state_header():
    app.dependency_overrides[get_pipeline] = lambda: SignalPipeline(locator=FixedLocator([LENS]))
    client = TestClient(app)

    res = client.post("/classify/annotated", content=_png(_red_lens_frame()))

    assert res.status_code == 200
    assert res.headers["content-type"] == "image/jpeg"
    assert res.headers["x-signal-state"] == "STOP"
    img = cv2.imdecode(np.frombuffer(res.content, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert img.shape == (480, 640, 3)


class LoopCheckingPipeline(SignalPipeline):
    """Pipeline that records whether it was called on an event-loop thread."""

    def __init__(self):
        super().__init__(locator=FixedLocator([LENS]))
        self.on_event_loop = []

    def analyze(self, frame, profile=False):
        try:
            asyncio.get_running_loop()
            self.on_event_loop.append(True)
        except RuntimeError:
            self.on_event_loop.append(False)
        return super().analyze(frame, profile=profile)


@pytest.mark.parametrize("path", ["/classify", "/classify/annotated"])
def test_classify_runs_pipeline_off_event_loop(path):
    pipeline = LoopCheckingPipeline()
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    client = TestClient(app)

    res = client.post(path, content=_png(_red_lens_frame()))

    assert res.status_code == 200
    assert pipeline.on_event_loop == [False]
