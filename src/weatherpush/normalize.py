"""Normalization helpers.

Centralizes lenient parsing of provider payloads and the location-name
rules shared by the store and the router.
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any

from weatherpush.exceptions import InvalidLocationError

_WHITESPACE_RUN = re.compile(r"\s+")


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def normalize_location(location: str) -> str:
    """Return the display form of *location*.

    NFC-normalizes, trims, and collapses internal whitespace runs to a
    single space. Case and diacritics are preserved.

    Raises :class:`InvalidLocationError` for empty or whitespace-only names.
    """
    if not isinstance(location, str):
        raise InvalidLocationError(f"location must be a string, got {type(location).__name__}")
    text = unicodedata.normalize("NFC", location)
    text = _WHITESPACE_RUN.sub(" ", text).strip()
    if not text:
        raise InvalidLocationError("location name must not be empty")
    return text


def location_key(location: str) -> str:
    """Identity key for set membership: normalized and case-folded."""
    return normalize_location(location).casefold()
