"""Single-image classification endpoints.

Clients post an encoded image (JPEG/PNG) as the raw request body; each request is
one independent pipeline call.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from signallens.api.schemas.models import ReadingSchema
from signallens.api.services.state import get_pipeline, get_settings
from signallens.core.overlay.draw import draw_reading
from signallens.core.pipeline import SignalPipeline
from signallens.core.types import InvalidFrameError, SignalReading

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classify", tags=["classify"])


def _decode_image(body: bytes, channel_order: str = "bgr") -> np.ndarray:
    """Decode an encoded image body into a frame in the configured channel order."""

    if not body:
        raise HTTPException(status_code=422, detail="Empty request body")
    try:
        frame = cv2.imdecode(np.frombuffer(body, dtype=np.uint8), cv2.IMREAD_COLOR)
    except cv2.error:
        logger.exception("Image decoding failed")
        frame = None
    if frame is None:
        raise HTTPException(status_code=422, detail="Body is not a decodable image")
    if channel_order == "rgb":
        frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    return frame


def _analyze(pipeline: SignalPipeline, frame: np.ndarray, profile: bool) -> SignalReading:
    try:
        return pipeline.analyze(frame, profile=profile)
    except InvalidFrameError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None


def _annotated_jpeg(pipeline: SignalPipeline, body: bytes, quality: int) -> tuple[bytes, str]:
    frame = _decode_image(body, pipeline.channel_order)
    reading = _analyze(pipeline, frame, False)
    img = draw_reading(frame, reading, pipeline.channel_order)
    ok, buf = cv2.imencode(".jpg", img, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to encode image")
    return bytes(buf), reading.state


def _classify_body(pipeline: SignalPipeline, body: bytes, profile: bool) -> SignalReading:
    frame = _decode_image(body, pipeline.channel_order)
    return _analyze(pipeline, frame, profile)


# Only the body read runs on the event loop; decoding, analysis and encoding run
# in the threadpool.


@router.post("", response_model=ReadingSchema)
async def classify_image(
    request: Request,
    profile: bool = False,
    pipeline: SignalPipeline = Depends(get_pipeline),
) -> ReadingSchema:
    """Classify the signal state in one uploaded image."""

    body = await request.body()
    reading = await run_in_threadpool(_classify_body, pipeline, body, profile)
    return ReadingSchema.from_reading(reading)


@router.post("/annotated")
async def classify_image_annotated(
    request: Request,
    pipeline: SignalPipeline = Depends(get_pipeline),
) -> Response:
    """Classify one uploaded image and return it as JPEG with overlays drawn."""

    body = await request.body()
    content, state = await run_in_threadpool(
        _annotated_jpeg, pipeline, body, get_settings().jpeg_quality
    )
    return Response(
        content=content,
        media_type="image/jpeg",
        headers={"X-Signal-State": state},
    )
