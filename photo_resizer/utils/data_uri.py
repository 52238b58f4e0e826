"""Base64 / data-URI helpers for the JSON image payloads."""
from __future__ import annotations

import base64
import binascii
import re

from photo_resizer.errors import InvalidBase64Error

_DATA_URI_PREFIX = re.compile(r"^data:[^;,]*;base64,")
_BASE64_ALPHABET = re.compile(r"^[A-Za-z0-9+/=]+$")


def strip_data_uri(value: str) -> str:
    """Drop a leading ``data:<mime>;base64,`` header if there is one."""

    return _DATA_URI_PREFIX.sub("", value, count=1)


def decode_base64_image(value: str) -> bytes:
    """Decode base64 text (optionally data-URI prefixed) into raw bytes.

    Raises
    ------
    InvalidBase64Error
        If the text contains characters outside ``A-Z a-z 0-9 + / =`` or has
        broken padding.
    """

    payload = strip_data_uri(value)
    if not _BASE64_ALPHABET.match(payload):
        raise InvalidBase64Error()
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidBase64Error() from exc


def encode_data_uri(data: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
