"""Resize/recompress pipeline built on Pillow.

One configurable pipeline serves every request:

    validate -> decode -> auto-rotate -> flatten -> fit -> JPEG encode -> metrics

Per-request ``fit`` / ``autoRotate`` / ``background`` override the defaults in
:class:`PipelineOptions`. When the strict decode or encode raises, the render
is retried once with Pillow's truncated-image loading switched on; the first
error is logged, not dropped.
"""
from __future__ import annotations

import base64
import io
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from PIL import Image, ImageFile, ImageOps, UnidentifiedImageError
from pydantic import BaseModel

from photo_resizer.config import Settings
from photo_resizer.errors import (
    ImageProcessingError,
    ImageTooSmallError,
    UNSUPPORTED_FORMAT_MESSAGE,
    UnreadableImageError,
)
from photo_resizer.models import WHITE, FitMode, ImageRequest, ProcessingResult, RGBColor
from photo_resizer.services.metrics import compute_size_change, jpeg_quality
from photo_resizer.utils.data_uri import decode_base64_image

logger = logging.getLogger(__name__)

# Decoder messages that mean the input bytes are damaged or in an unsupported layout.
_TRUNCATED_MARKERS = (
    "truncated",
    "input buffer",
    "broken data stream",
    "image file is incomplete",
    "premature end",
)

# ImageFile.LOAD_TRUNCATED_IMAGES is process-wide; only one lenient render at a time.
_lenient_lock = threading.Lock()


class PipelineOptions(BaseModel):
    fit: FitMode = FitMode.CONTAIN
    auto_rotate: bool = True
    use_actual_size: bool = True
    lenient_retry: bool = True
    background: RGBColor = WHITE
    min_image_bytes: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineOptions":
        return cls(
            fit=settings.default_fit,
            auto_rotate=settings.auto_rotate,
            use_actual_size=settings.use_actual_size,
            lenient_retry=settings.lenient_retry,
            min_image_bytes=settings.min_image_bytes,
        )


class ImageProcessor:
    """Turns a validated :class:`ImageRequest` into a :class:`ProcessingResult`."""

    def __init__(self, options: Optional[PipelineOptions] = None) -> None:
        self._options = options or PipelineOptions()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, request: ImageRequest) -> ProcessingResult:
        data = decode_base64_image(request.image)
        if len(data) < self._options.min_image_bytes:
            raise ImageTooSmallError(len(data))

        fmt, size = probe_image(data)
        fit = request.fit or self._options.fit
        auto_rotate = self._options.auto_rotate if request.auto_rotate is None else request.auto_rotate
        background = request.background or self._options.background
        quality = jpeg_quality(request.quality)
        logger.debug(
            "Processing %s %sx%s -> %sx%s fit=%s q=%s",
            fmt, size[0], size[1], request.width, request.height, fit.value, quality,
        )

        output = self._render_with_retry(
            data,
            box=(request.width, request.height),
            fit=fit,
            background=background,
            quality=quality,
            auto_rotate=auto_rotate,
        )

        original_size = len(data)
        if self._options.use_actual_size and request.actual_original_size:
            original_size = request.actual_original_size
        change = compute_size_change(original_size, len(output))
        logger.info("Processed image: %s -> %s bytes (%s)", change.original_size, change.new_size, change.label)

        return ProcessingResult(
            original_size=change.original_size,
            new_size=change.new_size,
            reduction_bytes=change.reduction_bytes,
            reduction_label=change.label,
            image_base64=base64.b64encode(output).decode("ascii"),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _render_with_retry(self, data: bytes, **kwargs) -> bytes:
        try:
            return render_jpeg(data, **kwargs)
        except Exception as exc:
            if not self._options.lenient_retry:
                logger.exception("Image processing failed")
                raise ImageProcessingError(friendly_error(exc)) from exc
            logger.warning("Strict decode failed, retrying with lenient decoding: %s", exc)

        try:
            with allow_truncated_images():
                return render_jpeg(data, **kwargs)
        except Exception as exc:
            logger.exception("Lenient decode failed as well")
            raise ImageProcessingError(friendly_error(exc)) from exc


# ------------------------------------------------------------------
# Helper functions
# ------------------------------------------------------------------

def probe_image(data: bytes) -> Tuple[Optional[str], Tuple[int, int]]:
    """Read the header only and return ``(format, (width, height))``."""

    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.format, img.size
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        logger.info("Unreadable image header: %s", exc)
        raise UnreadableImageError() from exc


def render_jpeg(
    data: bytes,
    *,
    box: Tuple[int, int],
    fit: FitMode,
    background: RGBColor,
    quality: int,
    auto_rotate: bool,
) -> bytes:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if auto_rotate:
            img = ImageOps.exif_transpose(img)
        img = flatten(img, background)
        img = fit_image(img, box, fit, background)
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=quality, optimize=True, progressive=True)
        return buffer.getvalue()


def flatten(img: Image.Image, background: RGBColor) -> Image.Image:
    """Return an RGB image, compositing any transparency onto ``background``."""

    has_alpha = img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info)
    if has_alpha:
        rgba = img.convert("RGBA")
        canvas = Image.new("RGB", rgba.size, background.as_tuple())
        canvas.paste(rgba, mask=rgba.getchannel("A"))
        return canvas
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def fit_image(img: Image.Image, box: Tuple[int, int], fit: FitMode, background: RGBColor) -> Image.Image:
    """Scale ``img`` into ``box`` according to ``fit``. Never upscales."""

    width, height = box
    if fit is FitMode.COVER:
        scale = min(1.0, max(width / img.width, height / img.height))
        new_size = (max(1, round(img.width * scale)), max(1, round(img.height * scale)))
    else:
        scale = min(1.0, width / img.width, height / img.height)
        new_size = (
            min(width, max(1, round(img.width * scale))),
            min(height, max(1, round(img.height * scale))),
        )
    if new_size != img.size:
        img = img.resize(new_size, Image.Resampling.LANCZOS)

    if fit is FitMode.INSIDE:
        return img

    if img.width > width or img.height > height:
        left = max(0, (img.width - width) // 2)
        top = max(0, (img.height - height) // 2)
        img = img.crop((left, top, left + min(width, img.width), top + min(height, img.height)))

    canvas = Image.new("RGB", (width, height), background.as_tuple())
    canvas.paste(img, ((width - img.width) // 2, (height - img.height) // 2))
    return canvas


@contextmanager
def allow_truncated_images() -> Iterator[None]:
    with _lenient_lock:
        previous = ImageFile.LOAD_TRUNCATED_IMAGES
        ImageFile.LOAD_TRUNCATED_IMAGES = True
        try:
            yield
        finally:
            ImageFile.LOAD_TRUNCATED_IMAGES = previous


def friendly_error(exc: BaseException) -> str:
    message = str(exc) or exc.__class__.__name__
    if any(marker in message.lower() for marker in _TRUNCATED_MARKERS):
        return UNSUPPORTED_FORMAT_MESSAGE
    return message
