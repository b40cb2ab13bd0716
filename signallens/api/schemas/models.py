"""Pydantic models for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from signallens.core.types import SignalReading


class CandidateSchema(BaseModel):
    """Committed circle candidate."""

    center: tuple[float, float]
    radius: int


class RoiSchema(BaseModel):
    """Region examined for color."""

    x0: int
    y0: int
    width: int
    height: int


class RatiosSchema(BaseModel):
    """Per-band coverage ratios."""

    red: float = Field(ge=0.0, le=1.0)
    green: float = Field(ge=0.0, le=1.0)
    yellow: float = Field(ge=0.0, le=1.0)


class ReadingSchema(BaseModel):
    """Per-frame classification payload."""

    state: str
    candidate: CandidateSchema | None = None
    roi: RoiSchema | None = None
    ratios: RatiosSchema | None = None
    frame_size: tuple[int, int] | list[int]
    profile: dict[str, float] | None = None

    @classmethod
    def from_reading(cls, reading: SignalReading) -> ReadingSchema:
        c, roi, r = reading.candidate, reading.roi, reading.ratios
        return cls(
            state=reading.state,
            candidate=CandidateSchema(center=c.center, radius=c.radius) if c else None,
            roi=RoiSchema(x0=roi.x0, y0=roi.y0, width=roi.width, height=roi.height) if roi else None,
            ratios=RatiosSchema(red=r.red, green=r.green, yellow=r.yellow) if r else None,
            frame_size=reading.frame_size,
            profile=reading.profile,
        )


class ConfigSchema(BaseModel):
    """Runtime configuration payload."""

    video_source: str
    video_path: str | None = None
    rtsp_url: str | None = None
    camera_index: int = Field(default=0, ge=0)
    channel_order: str = "bgr"
    blur_kernel_size: int = Field(default=9, gt=0)
    blur_sigma: float = Field(default=2.0, gt=0.0)
    hough_dp: float = Field(default=1.0, gt=0.0)
    hough_min_dist_divisor: float = Field(default=8.0, gt=0.0)
    hough_param1: float = Field(default=100.0, gt=0.0)
    hough_param2: float = Field(default=30.0, gt=0.0)
    min_radius: int = Field(default=20, ge=0)
    max_radius: int = Field(default=100, ge=0)
    upper_region_divisor: int = Field(default=3, ge=1)
    match_threshold: float = Field(default=0.4, ge=0.0, lt=1.0)
    jpeg_quality: int = Field(default=80, ge=10, le=100)

    @field_validator("video_source")
    @classmethod
    def _validate_source(cls, v: str) -> str:
        if v not in {"webcam", "file", "rtsp", "image"}:
            raise ValueError("video_source must be webcam|file|rtsp|image")
        return v

    @field_validator("channel_order")
    @classmethod
    def _validate_channel_order(cls, v: str) -> str:
        v2 = str(v).strip().lower()
        if v2 not in {"bgr", "rgb"}:
            raise ValueError("channel_order must be bgr|rgb")
        return v2

    @field_validator("blur_kernel_size")
    @classmethod
    def _validate_blur_kernel_size(cls, v: int) -> int:
        if v % 2 == 0:
            raise ValueError("blur_kernel_size must be odd")
        return v
