from __future__ import annotations

from enum import Enum


class FitMode(str, Enum):
    """How an image is placed into the requested width x height box."""

    CONTAIN = "contain"  # letterbox onto the full canvas
    INSIDE = "inside"  # shrink to fit, no padding
    COVER = "cover"  # fill the canvas exactly, cropping overflow
