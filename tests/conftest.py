from __future__ import annotations

import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from photo_resizer.config import Settings
from photo_resizer.main import create_app


def make_image(size=(64, 48), color=(200, 30, 30), fmt="JPEG", mode="RGB", **save_kwargs) -> bytes:
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def make_noise_jpeg(size=(256, 256), quality=90) -> bytes:
    img = Image.effect_noise(size, 80).convert("RGB")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def to_b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def noise_jpeg() -> bytes:
    return make_noise_jpeg()


@pytest.fixture
def settings() -> Settings:
    return Settings(max_body_bytes=12 * 1024 * 1024, processing_timeout_seconds=30.0)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
