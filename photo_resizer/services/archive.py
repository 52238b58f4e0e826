"""ZIP bundling of processed images."""
from __future__ import annotations

import io
import re
import time
import zipfile
from typing import Optional

from photo_resizer.models import BatchResult

_EXTENSION = re.compile(r"\.[^/.]+$")


def output_name(original_name: str, suffix: str = "_resized.jpg") -> str:
    """``holiday.photo.png`` -> ``holiday.photo_resized.jpg``."""

    return _EXTENSION.sub("", original_name) + suffix


def archive_name(timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"resized_images_{timestamp_ms}.zip"


def build_zip(result: BatchResult, suffix: str = "_resized.jpg") -> bytes:
    """Bundle every successful output; failed images are left out."""

    buffer = io.BytesIO()
    used: set[str] = set()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zip_file:
        for outcome in result.succeeded:
            name = _unique(output_name(outcome.name, suffix), used)
            zip_file.writestr(name, outcome.output)
    return buffer.getvalue()


def _unique(name: str, used: set[str]) -> str:
    candidate = name
    stem, dot, ext = name.rpartition(".")
    counter = 1
    while candidate in used:
        candidate = f"{stem}_{counter}{dot}{ext}" if dot else f"{name}_{counter}"
        counter += 1
    used.add(candidate)
    return candidate
