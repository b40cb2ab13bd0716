"""Runtime configuration.

Settings are loaded from YAML defaults and overridden by environment variables
prefixed with `SLN_`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signallens.core.circles import CircleConfig

VIDEO_SOURCES = {"webcam", "file", "rtsp", "image"}
CHANNEL_ORDERS = {"bgr", "rgb"}


class SignalSettings(BaseSettings):
    """Runtime configuration loaded from YAML defaults and `SLN_` env overrides."""

    video_source: str = Field("webcam", description="webcam|file|rtsp|image")
    video_path: str | None = None
    rtsp_url: str | None = None
    camera_index: int = 0
    # OpenCV captures deliver BGR; RGBA camera buffers should use "rgb".
    channel_order: str = Field("bgr", description="bgr|rgb")

    blur_kernel_size: int = 9
    blur_sigma: float = 2.0

    hough_dp: float = 1.0
    hough_min_dist_divisor: float = 8.0
    hough_param1: float = 100.0
    hough_param2: float = 30.0
    min_radius: int = 20
    max_radius: int = 100
    # Lenses must sit in the upper 1/N of the frame.
    upper_region_divisor: int = 3

    # A band matches when its coverage is strictly above this ratio.
    match_threshold: float = 0.4

    jpeg_quality: int = 80

    model_config = SettingsConfigDict(env_prefix="SLN_", validate_assignment=True)

    @field_validator("video_source")
    @classmethod
    def _validate_source(cls, v: str) -> str:
        if v not in VIDEO_SOURCES:
            raise ValueError("video_source must be webcam|file|rtsp|image")
        return v

    @field_validator("channel_order")
    @classmethod
    def _validate_channel_order(cls, v: str) -> str:
        v2 = str(v).strip().lower()
        if v2 not in CHANNEL_ORDERS:
            raise ValueError("channel_order must be bgr|rgb")
        return v2

    @field_validator("camera_index")
    @classmethod
    def _validate_camera_index(cls, v: int) -> int:
        if v < 0:
            raise ValueError("camera_index must be >= 0")
        return v

    @field_validator("blur_kernel_size")
    @classmethod
    def _validate_blur_kernel_size(cls, v: int) -> int:
        if v <= 0 or v % 2 == 0:
            raise ValueError("blur_kernel_size must be a positive odd integer")
        return v

    @field_validator("blur_sigma", "hough_dp", "hough_min_dist_divisor", "hough_param1", "hough_param2")
    @classmethod
    def _validate_positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return float(v)

    @field_validator("min_radius")
    @classmethod
    def _validate_min_radius(cls, v: int) -> int:
        if v < 0:
            raise ValueError("min_radius must be >= 0")
        return v

    @field_validator("max_radius")
    @classmethod
    def _validate_max_radius(cls, v: int, info: ValidationInfo) -> int:
        min_radius = info.data.get("min_radius")
        if min_radius is not None and v < min_radius:
            raise ValueError("max_radius must be >= min_radius")
        return v

    @field_validator("upper_region_divisor")
    @classmethod
    def _validate_upper_region_divisor(cls, v: int) -> int:
        if v < 1:
            raise ValueError("upper_region_divisor must be >= 1")
        return v

    @field_validator("match_threshold")
    @classmethod
    def _validate_match_threshold(cls, v: float) -> float:
        if not 0.0 <= float(v) < 1.0:
            raise ValueError("match_threshold must be in [0, 1)")
        return float(v)

    @field_validator("jpeg_quality")
    @classmethod
    def _validate_jpeg_quality(cls, v: int) -> int:
        if not 10 <= v <= 100:
            raise ValueError("jpeg_quality must be in [10, 100]")
        return v


def settings_to_dict(settings: SignalSettings) -> dict[str, Any]:
    """Convert settings to a plain dict."""

    return cast(dict[str, Any], settings.model_dump())


def _config_path() -> Path:
    """Return the YAML configuration path (defaults to config/signallens.config.yml)."""

    return Path(os.getenv("SLN_CONFIG", "config/signallens.config.yml"))


def load_settings() -> SignalSettings:
    """Load settings from YAML and environment variables.

    YAML provides defaults; environment variables override.
    """

    data: dict[str, Any] = {}
    path = _config_path()
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    env_settings = SignalSettings()
    env_overrides: dict[str, Any] = {
        name: getattr(env_settings, name) for name in env_settings.model_fields_set
    }

    merged = {**data, **env_overrides}
    return SignalSettings(**merged)


def circle_config_from_settings(settings: SignalSettings) -> CircleConfig:
    """Return the `CircleConfig` described by `settings`."""

    return CircleConfig(
        dp=settings.hough_dp,
        min_dist_divisor=settings.hough_min_dist_divisor,
        param1=settings.hough_param1,
        param2=settings.hough_param2,
        min_radius=settings.min_radius,
        max_radius=settings.max_radius,
        upper_region_divisor=settings.upper_region_divisor,
    )
