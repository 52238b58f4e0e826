"""Async client for the resize API.

Also hosts the pre-upload shrink step: photos are downscaled to a bounded
longest side and re-encoded before they are base64'd, so uploads stay small
while the true file size still travels with the request.
"""
from __future__ import annotations

import io
import logging
from typing import Any, Optional

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from photo_resizer.models import ProcessingResult, RGBColor, SizeMetrics
from photo_resizer.models.processing_result import JPEG_DATA_URI_PREFIX
from photo_resizer.utils.data_uri import decode_base64_image, encode_data_uri

logger = logging.getLogger(__name__)

PROCESS_IMAGE_PATH = "/api/process-image"


class ResizeAPIError(Exception):
    """Raised when the resize API returns an error status or an unsuccessful body."""

    def __init__(self, status: int, message: str, response_json: Optional[dict[str, Any]] = None):
        super().__init__(f"Resize API error {status}: {message}")
        self.status = status
        self.message = message
        self.response_json = response_json or {}


class ImageLoadError(Exception):
    """The local file could not be decoded before upload."""


def prepare_upload(data: bytes, *, max_dim: int = 2048, quality: int = 90) -> str:
    """Downscale ``data`` to at most ``max_dim`` on its longest side and return a JPEG data URI."""

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")
            width, height = img.size
            if width > max_dim or height > max_dim:
                if width > height:
                    size = (max_dim, max(1, round(height * max_dim / width)))
                else:
                    size = (max(1, round(width * max_dim / height)), max_dim)
                img = img.resize(size, Image.Resampling.LANCZOS)
            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ImageLoadError("Failed to load image") from exc
    return encode_data_uri(buffer.getvalue())


class ResizeClient:  # pylint: disable=too-few-public-methods
    """Minimal async client for ``POST /api/process-image``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_image(
        self,
        image: str,
        width: int,
        height: int,
        quality: float,
        *,
        actual_original_size: Optional[int] = None,
        background: Optional[RGBColor] = None,
        fit: Optional[str] = None,
    ) -> tuple[ProcessingResult, bytes]:
        """Send one image and return ``(result, jpeg_bytes)``."""

        payload: dict[str, Any] = {
            "image": image,
            "width": width,
            "height": height,
            "quality": quality,
        }
        if actual_original_size:
            payload["actualOriginalSize"] = actual_original_size
        if background is not None:
            payload["background"] = background.model_dump()
        if fit:
            payload["fit"] = fit

        logger.debug("POST %s%s (%sx%s q=%s)", self._base_url, PROCESS_IMAGE_PATH, width, height, quality)
        resp = await self._client.post(PROCESS_IMAGE_PATH, json=payload)
        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400 or not isinstance(data, dict):
            message = data.get("error") if isinstance(data, dict) else None
            raise ResizeAPIError(resp.status_code, message or "API request failed", data if isinstance(data, dict) else None)
        if not data.get("success"):
            raise ResizeAPIError(resp.status_code, data.get("error") or "Processing failed", data)

        metrics = SizeMetrics.model_validate(data["metrics"])
        encoded = data["image"]
        result = ProcessingResult(
            original_size=metrics.original_size,
            new_size=metrics.new_size,
            reduction_bytes=metrics.reduction_bytes,
            reduction_label=metrics.reduction,
            image_base64=encoded[len(JPEG_DATA_URI_PREFIX):] if encoded.startswith(JPEG_DATA_URI_PREFIX) else encoded,
        )
        return result, decode_base64_image(encoded)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ResizeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
