"""Batch upload: pre-shrink each photo, send it to the API and collect results.

Images go one at a time unless ``concurrency`` is raised, in which case at
most that many requests are in flight. A failure is recorded on its own
:class:`ImageOutcome` and never cancels the other images.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence

from photo_resizer.models import BatchItem, BatchResult, ImageOutcome, Preset, RGBColor
from photo_resizer.services.resize_client import ImageLoadError, ResizeAPIError, ResizeClient, prepare_upload

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class BatchProcessor:
    def __init__(
        self,
        client: ResizeClient,
        *,
        concurrency: int = 1,
        max_dim: int = 2048,
        upload_quality: int = 90,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._client = client
        self._concurrency = concurrency
        self._max_dim = max_dim
        self._upload_quality = upload_quality

    async def run(
        self,
        items: Sequence[BatchItem],
        preset: Preset,
        quality: float,
        *,
        background: Optional[RGBColor] = None,
        fit: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """Process ``items`` against ``preset``; outcomes keep the input order."""

        outcomes: list[Optional[ImageOutcome]] = [None] * len(items)
        completed = 0
        semaphore = asyncio.Semaphore(self._concurrency)

        async def worker(index: int, item: BatchItem) -> None:
            nonlocal completed
            async with semaphore:
                outcomes[index] = await self._process_one(item, preset, quality, background, fit)
            completed += 1
            if on_progress is not None:
                on_progress(completed / len(items) * 100)

        if self._concurrency == 1:
            for index, item in enumerate(items):
                await worker(index, item)
        else:
            await asyncio.gather(*(worker(i, item) for i, item in enumerate(items)))

        result = BatchResult(outcomes=[o for o in outcomes if o is not None])
        logger.info(
            "Batch done: %d ok, %d failed, %d -> %d bytes",
            len(result.succeeded), len(result.failed), result.total_original, result.total_compressed,
        )
        return result

    async def _process_one(
        self,
        item: BatchItem,
        preset: Preset,
        quality: float,
        background: Optional[RGBColor],
        fit: Optional[str],
    ) -> ImageOutcome:
        try:
            image = prepare_upload(item.data, max_dim=self._max_dim, quality=self._upload_quality)
            result, output = await self._client.process_image(
                image,
                preset.width,
                preset.height,
                quality,
                actual_original_size=item.size,
                background=background,
                fit=fit,
            )
        except (ImageLoadError, ResizeAPIError, ValueError) as exc:
            logger.warning("Failed to process %s: %s", item.name, exc)
            return ImageOutcome(name=item.name, original_size=item.size, error=_error_message(exc))
        except Exception as exc:  # network errors and the like stay local to this image
            logger.exception("Failed to process %s", item.name)
            return ImageOutcome(name=item.name, original_size=item.size, error=str(exc) or exc.__class__.__name__)

        return ImageOutcome(name=item.name, original_size=item.size, metrics=result.metrics, output=output)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ResizeAPIError):
        return exc.message
    return str(exc)
