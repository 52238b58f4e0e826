"""HTTP endpoint that resizes one base64 image per request."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from photo_resizer.config import Settings
from photo_resizer.errors import (
    InvalidParametersError,
    MissingFieldsError,
    PayloadTooLargeError,
    ProcessingTimeoutError,
)
from photo_resizer.models import PRESETS, ImageRequest, missing_fields
from photo_resizer.services.image_processor import ImageProcessor

router = APIRouter()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_processor(request: Request) -> ImageProcessor:
    return request.app.state.processor


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def read_json_body(request: Request, limit: int) -> dict[str, Any]:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(int(declared), limit)

    raw_body = await request.body()
    if len(raw_body) > limit:
        raise PayloadTooLargeError(len(raw_body), limit)

    try:
        payload = json.loads(raw_body or b"{}")
    except ValueError as exc:
        raise InvalidParametersError("body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise InvalidParametersError("body must be a JSON object")
    return payload


def parse_image_request(payload: dict[str, Any], max_dimension: int = 10000) -> ImageRequest:
    missing = missing_fields(payload)
    if missing:
        logger.info("Rejected request, missing fields: %s", ", ".join(missing))
        raise MissingFieldsError(missing)
    try:
        image_request = ImageRequest.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        logger.info("Rejected request, invalid %s: %s", location, first["msg"])
        raise InvalidParametersError(f"{location}: {first['msg']}") from exc

    for name in ("width", "height"):
        if getattr(image_request, name) > max_dimension:
            logger.info("Rejected request, %s above %d", name, max_dimension)
            raise InvalidParametersError(f"{name}: must be at most {max_dimension}")
    return image_request


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/api/process-image")
async def process_image(
    request: Request,
    processor: ImageProcessor = Depends(get_processor),
    settings: Settings = Depends(get_app_settings),
):
    payload = await read_json_body(request, settings.max_body_bytes)
    image_request = parse_image_request(payload, settings.max_dimension)

    # The timeout only stops waiting: a render already running finishes in its
    # pool thread. max_dimension bounds how much work that can be.
    loop = asyncio.get_running_loop()
    try:
        result = await asyncio.wait_for(
            loop.run_in_executor(None, processor.process, image_request),
            timeout=settings.processing_timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        logger.error("Processing exceeded %.1fs", settings.processing_timeout_seconds)
        raise ProcessingTimeoutError(settings.processing_timeout_seconds) from exc

    return result.to_response()


@router.get("/api/presets")
async def list_presets():
    return [preset.model_dump() for preset in PRESETS.values()]
