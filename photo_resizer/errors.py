"""Exceptions raised by the resize pipeline and mapped to HTTP responses in ``main``."""
from __future__ import annotations

from typing import Any, Optional

MISSING_FIELDS_MESSAGE = "Missing required fields: image, width, height, quality"
INVALID_BASE64_MESSAGE = "Invalid base64 format"
TOO_SMALL_MESSAGE = "Image data too small or corrupted"
UNREADABLE_MESSAGE = "Unable to read image format. Please try a different image."
UNSUPPORTED_FORMAT_MESSAGE = "Cannot process this image format. Please try converting to JPEG first."
PROCESSING_FAILED_MESSAGE = "Failed to process image"


class ImageRequestError(Exception):
    """A request the pipeline refuses to process. Surfaced verbatim, never retried."""

    status = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class MissingFieldsError(ImageRequestError):
    def __init__(self, missing: Optional[list[str]] = None) -> None:
        super().__init__(MISSING_FIELDS_MESSAGE)
        self.missing = missing or []


class InvalidParametersError(ImageRequestError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid request parameters: {detail}")


class InvalidBase64Error(ImageRequestError):
    def __init__(self) -> None:
        super().__init__(INVALID_BASE64_MESSAGE)


class ImageTooSmallError(ImageRequestError):
    def __init__(self, size: int) -> None:
        super().__init__(TOO_SMALL_MESSAGE)
        self.size = size


class UnreadableImageError(ImageRequestError):
    def __init__(self) -> None:
        super().__init__(UNREADABLE_MESSAGE)


class PayloadTooLargeError(ImageRequestError):
    status = 413

    def __init__(self, size: int, limit: int) -> None:
        super().__init__("Payload too large")
        self.size = size
        self.limit = limit


class ImageProcessingError(Exception):
    """Resize or encode failed after validation passed."""

    status = 500

    def __init__(self, details: str) -> None:
        super().__init__(f"{PROCESSING_FAILED_MESSAGE}: {details}")
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": PROCESSING_FAILED_MESSAGE, "details": self.details}


class ProcessingTimeoutError(ImageProcessingError):
    status = 504

    def __init__(self, timeout: float) -> None:
        super().__init__("Processing timed out")
        self.timeout = timeout
