"""Custom exception hierarchy for weatherpush."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class WeatherPushError(Exception):
    """Base exception for all weatherpush errors."""


class WeatherPushConfigError(WeatherPushError):
    """Invalid or missing configuration."""


class InvalidLocationError(WeatherPushError, ValueError):
    """Location name is empty or whitespace-only."""


class WeatherPushTransportError(WeatherPushError):
    """HTTP-level failure (network, non-200, undecodable body)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        payload: Any = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.payload = payload
        super().__init__(message)


class MalformedResponseError(WeatherPushTransportError):
    """Response body is not UTF-8 JSON."""


class FetchErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


class FetchError(WeatherPushError):
    """Fetching current conditions for a location failed.

    ``kind`` tells the caller whether the provider did not recognize the
    location (``NOT_FOUND``), could not be reached or refused to answer
    (``UNAVAILABLE``), or answered with something that cannot be parsed
    (``MALFORMED``).
    """

    def __init__(self, message: str, *, kind: FetchErrorKind, location: str = "") -> None:
        self.kind = kind
        self.location = location
        super().__init__(message)


class DeliveryError(WeatherPushError):
    """A notification could not be delivered to a chat."""

    def __init__(self, message: str, *, chat_id: Any = None) -> None:
        self.chat_id = chat_id
        super().__init__(message)
