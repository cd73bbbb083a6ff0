"""Current-weather endpoint of the OpenWeatherMap API.

Endpoint:
  - /data/2.5/weather?q=<location>&appid=<key>&units=<units>

This is the only module that knows the provider's response shape. Every
failure leaves here as a :class:`FetchError` with a kind.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from weatherpush._constants import WEATHER_CURRENT_ENDPOINT
from weatherpush._transport import Transport
from weatherpush.config import WeatherPushConfig
from weatherpush.exceptions import (
    FetchError,
    FetchErrorKind,
    MalformedResponseError,
    WeatherPushTransportError,
)
from weatherpush.models.condition import ConditionSnapshot

_logger = logging.getLogger(__name__)

NOT_FOUND_CODES: frozenset[str] = frozenset({"404"})


def build_weather_params(config: WeatherPushConfig, location: str) -> dict[str, str]:
    return {
        "q": location,
        "appid": config.weather_api_key,
        "units": config.units,
    }


def _payload_code(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("cod", "")).strip()
    return ""


def _payload_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("message", ""))
    return ""


def _classify_transport_error(exc: WeatherPushTransportError, location: str) -> FetchError:
    if isinstance(exc, MalformedResponseError):
        return FetchError(
            f"Unparsable weather response for {location!r}: {exc}",
            kind=FetchErrorKind.MALFORMED,
            location=location,
        )
    if exc.status_code == 404 or _payload_code(exc.payload) in NOT_FOUND_CODES:
        message = _payload_message(exc.payload) or "location not found"
        return FetchError(
            f"Weather provider does not know {location!r}: {message}",
            kind=FetchErrorKind.NOT_FOUND,
            location=location,
        )
    return FetchError(
        f"Weather provider unavailable for {location!r}: {exc}",
        kind=FetchErrorKind.UNAVAILABLE,
        location=location,
    )


def parse_weather_response(payload: Any, location: str) -> ConditionSnapshot:
    """Validate a decoded current-weather payload.

    Some provider errors come back with HTTP 200 and a ``cod`` field, so
    the code is checked before the payload is parsed.
    """
    if not isinstance(payload, dict):
        raise FetchError(
            f"Weather response for {location!r} is not an object",
            kind=FetchErrorKind.MALFORMED,
            location=location,
        )

    code = _payload_code(payload)
    if code in NOT_FOUND_CODES:
        raise FetchError(
            f"Weather provider does not know {location!r}: {_payload_message(payload) or 'location not found'}",
            kind=FetchErrorKind.NOT_FOUND,
            location=location,
        )
    if code and code != "200":
        raise FetchError(
            f"Weather provider error for {location!r}: cod={code} message={_payload_message(payload)}",
            kind=FetchErrorKind.UNAVAILABLE,
            location=location,
        )

    try:
        return ConditionSnapshot.from_provider(payload, location=location)
    except ValidationError as exc:
        raise FetchError(
            f"Weather response for {location!r} is missing fields: {exc.error_count()} validation error(s)",
            kind=FetchErrorKind.MALFORMED,
            location=location,
        ) from exc


async def fetch_current_conditions(
    config: WeatherPushConfig,
    transport: Transport,
    location: str,
) -> ConditionSnapshot:
    """Fetch and parse current conditions for *location*."""
    url = f"{config.weather_base_url}{WEATHER_CURRENT_ENDPOINT}"
    try:
        payload = await transport.get_json(
            url,
            build_weather_params(config, location),
            timeout=config.fetch_timeout,
        )
    except WeatherPushTransportError as exc:
        raise _classify_transport_error(exc, location) from exc

    snapshot = parse_weather_response(payload, location)
    _logger.debug(
        "Fetched conditions location=%s temp=%s humidity=%s wind=%s",
        snapshot.location,
        snapshot.temperature,
        snapshot.humidity,
        snapshot.wind_speed,
    )
    return snapshot
