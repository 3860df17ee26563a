from __future__ import annotations

import base64
import binascii
import re

_WHITESPACE_PATTERN = re.compile(r"\s+")
_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


class MalformedEncodingError(ValueError):
    """Raised when a base64 payload cannot be decoded."""


def decode_base64_to_buffer(text: str) -> bytes:
    """Decode base64 text, ignoring embedded whitespace and line breaks.

    Empty input, input whose stripped length is not a multiple of 4 and
    characters outside the standard alphabet are all rejected.
    """
    if not isinstance(text, str):
        raise MalformedEncodingError(f"expected base64 text, got {type(text).__name__}")

    cleaned = _WHITESPACE_PATTERN.sub("", text)
    if not cleaned:
        raise MalformedEncodingError("base64 payload is empty")
    if len(cleaned) % 4 != 0:
        raise MalformedEncodingError(f"base64 payload length {len(cleaned)} is not a multiple of 4")
    if not _BASE64_PATTERN.fullmatch(cleaned):
        raise MalformedEncodingError("base64 payload contains characters outside the base64 alphabet")

    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedEncodingError(f"base64 decode failed: {exc}") from exc


def encode_buffer_to_base64(content: bytes) -> str:
    return base64.b64encode(bytes(content)).decode("ascii")
