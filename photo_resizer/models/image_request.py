from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .color import RGBColor
from .fit import FitMode

REQUIRED_FIELDS = ("image", "width", "height", "quality")


class ImageRequest(BaseModel):
    """Body of ``POST /api/process-image``.

    ``image`` is base64 text, optionally prefixed with a ``data:<mime>;base64,``
    header. ``fit`` and ``auto_rotate`` override the server defaults for this
    request only.
    """

    model_config = ConfigDict(populate_by_name=True)

    image: str = Field(..., min_length=1)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    quality: float = Field(..., gt=0, le=1)
    actual_original_size: Optional[int] = Field(None, alias="actualOriginalSize", ge=0)
    background: Optional[RGBColor] = None
    fit: Optional[FitMode] = None
    auto_rotate: Optional[bool] = Field(None, alias="autoRotate")


def missing_fields(payload: dict) -> list[str]:
    """Names of required fields that are absent or falsy (``0`` and ``""`` count as missing)."""

    return [name for name in REQUIRED_FIELDS if not payload.get(name)]
