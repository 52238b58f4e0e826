from __future__ import annotations

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from photo_resizer.models.fit import FitMode

# Load environment variables from a .env file if present (local dev only)
load_dotenv()

_DEFAULT_ALLOW_HEADERS = (
    "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
    "Content-MD5, Content-Type, Date, X-Api-Version"
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # General
    log_level: str = Field("INFO", description="Root logging level.")

    # CORS
    cors_allow_origin: str = Field("*")
    cors_allow_methods: str = Field("GET,OPTIONS,PATCH,DELETE,POST,PUT")
    cors_allow_headers: str = Field(_DEFAULT_ALLOW_HEADERS)

    # Request limits
    max_body_bytes: int = Field(12 * 1024 * 1024, ge=1, description="Largest accepted request body (bytes).")
    processing_timeout_seconds: float = Field(30.0, gt=0)
    min_image_bytes: int = Field(100, ge=1, description="Decoded payloads shorter than this are rejected.")
    max_dimension: int = Field(10000, ge=1, description="Largest accepted output width or height (pixels).")

    # Image pipeline
    default_fit: FitMode = Field(FitMode.CONTAIN, description="Fit mode used when the request names none.")
    auto_rotate: bool = Field(True, description="Apply EXIF orientation before resizing.")
    use_actual_size: bool = Field(True, description="Honour actualOriginalSize when computing metrics.")
    lenient_retry: bool = Field(True, description="Retry once with truncated-image loading on failure.")

    # Batch client
    api_url: str = Field("http://localhost:8000")
    client_timeout_seconds: float = Field(60.0, gt=0)
    predownscale_max_dim: int = Field(2048, ge=1, description="Longest side of images before upload (pixels).")
    predownscale_quality: int = Field(90, ge=1, le=100)
    batch_concurrency: int = Field(1, ge=1, description="Images in flight at once; 1 means sequential.")
    zip_suffix: str = Field("_resized.jpg")


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
