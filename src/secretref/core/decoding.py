"""Structured decoding of fetched payloads."""

from __future__ import annotations

from typing import Any

import yaml

from secretref.core.errors import DecodeError


def decode_mapping(text: str, source: str = "payload") -> dict[str, Any]:
    """Decode a YAML (or JSON) document that must be a mapping.

    Args:
        text: Raw payload returned by a backend.
        source: Description used in error messages (never the payload itself).

    Raises:
        DecodeError: If the payload is not valid YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        # YAML error marks quote the offending text; keep secrets out of messages.
        raise DecodeError(f"error while parsing {source} as yaml") from exc

    if not isinstance(data, dict):
        raise DecodeError(f"{source} is not a mapping (got {type(data).__name__})")
    return {str(key): value for key, value in data.items()}


def decode_text(payload: bytes, source: str = "payload") -> str:
    """Decode a binary payload as UTF-8 text.

    Raises:
        DecodeError: If the payload is not valid UTF-8.
    """
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"{source} is not valid UTF-8 text") from exc
