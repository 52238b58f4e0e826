from __future__ import annotations

import re

from photo_resizer.models import RGBColor

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def rgb_to_hex(color: RGBColor) -> str:
    return "#{:02x}{:02x}{:02x}".format(color.r, color.g, color.b)


def hex_to_rgb(value: str) -> RGBColor:
    """Parse ``#rrggbb`` (leading ``#`` optional) into an :class:`RGBColor`."""

    match = _HEX_COLOR.match(value.strip())
    if not match:
        raise ValueError(f"Invalid hex colour: {value!r}")
    digits = match.group(1)
    return RGBColor(r=int(digits[0:2], 16), g=int(digits[2:4], 16), b=int(digits[4:6], 16))
