from __future__ import annotations

import math

from pydantic import BaseModel, field_validator


class RGBColor(BaseModel):
    """Background colour; components outside [0, 255] are clamped, not rejected."""

    r: int = 255
    g: int = 255
    b: int = 255

    @field_validator("r", "g", "b", mode="before")
    @classmethod
    def _clamp(cls, value):
        if isinstance(value, bool):
            raise ValueError("colour component must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("colour component must be a number") from exc
        if not math.isfinite(number):
            raise ValueError("colour component must be a finite number")
        return max(0, min(255, int(round(number))))

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)


WHITE = RGBColor()
