from __future__ import annotations

_UNITS = ("B", "KB", "MB", "GB")


def format_size(num_bytes: int) -> str:
    """Human readable size with 1024-based units, e.g. ``1.5 KB``."""

    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_UNITS[unit]}"
