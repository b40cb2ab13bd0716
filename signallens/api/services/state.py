"""In-process state for settings and the detection pipeline.

FastAPI routes use this module to access (and hot-reload) the singleton
`SignalPipeline` instance.
"""

from __future__ import annotations

from threading import RLock

from signallens.core.config.settings import SignalSettings, load_settings, settings_to_dict
from signallens.core.pipeline import SignalPipeline

_settings: SignalSettings | None = None
_pipeline: SignalPipeline | None = None
_lock = RLock()


def get_settings() -> SignalSettings:
    """Return cached settings, loading them on first use."""

    global _settings
    with _lock:
        if _settings is None:
            _settings = load_settings()
    return _settings


def reload_settings(data: dict | None = None) -> SignalSettings:
    """Reload settings and rebuild the pipeline.

    Args:
        data: Optional patch dict merged into the loaded settings.
    """

    global _settings, _pipeline
    with _lock:
        base = load_settings()
        if data:
            _settings = SignalSettings(**{**settings_to_dict(base), **data})
        else:
            _settings = base
        _pipeline = None
    return _settings


def get_pipeline() -> SignalPipeline:
    """Return the singleton pipeline, building it from settings if needed."""

    global _pipeline
    with _lock:
        if _pipeline is None:
            _pipeline = SignalPipeline.from_settings(get_settings())
    return _pipeline
