"""Size-reduction arithmetic shared by the API and the batch client.

Percentages are rounded half away from zero on the exact binary value of the
float, which is how ``Number.prototype.toFixed`` behaves in browsers. Using
:class:`decimal.Decimal` on the float (not on its ``repr``) keeps the two in
agreement for values such as ``1.005``.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

_ONE_DECIMAL = Decimal("0.1")


class SizeChange(NamedTuple):
    original_size: int
    new_size: int
    reduction_bytes: int
    percent_change: float
    label: str


def round_half_up(value: float) -> Decimal:
    """Round ``value`` to one decimal place, halves away from zero."""

    return Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def percent_change(original_size: int, new_size: int) -> float:
    if original_size <= 0:
        raise ValueError("original_size must be positive")
    return (new_size - original_size) / original_size * 100


def reduction_label(change: float) -> str:
    if change < 0:
        return f"{round_half_up(abs(change))}% smaller"
    if change > 0:
        return f"{round_half_up(change)}% larger"
    return "Same size"


def compute_size_change(original_size: int, new_size: int) -> SizeChange:
    change = percent_change(original_size, new_size)
    return SizeChange(
        original_size=original_size,
        new_size=new_size,
        reduction_bytes=original_size - new_size,
        percent_change=change,
        label=reduction_label(change),
    )


def jpeg_quality(quality: float) -> int:
    """Map a (0, 1] quality fraction onto Pillow's 1-100 JPEG scale."""

    return max(1, min(100, int(math.floor(quality * 100 + 0.5))))
