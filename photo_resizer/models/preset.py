from __future__ import annotations

from pydantic import BaseModel, Field


class Preset(BaseModel):
    name: str
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    label: str


PRESETS: dict[str, Preset] = {
    "instagram": Preset(name="instagram", width=1080, height=1080, label="Instagram"),
    "story": Preset(name="story", width=1080, height=1920, label="Story"),
    "twitter": Preset(name="twitter", width=1200, height=675, label="Twitter"),
}


def get_preset(name: str) -> Preset:
    try:
        return PRESETS[name.lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown preset: {name}") from exc
