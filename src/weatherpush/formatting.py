"""Outbound message text."""

from __future__ import annotations

from collections.abc import Sequence

from weatherpush.exceptions import FetchErrorKind
from weatherpush.models.condition import ConditionSnapshot

_UNIT_SUFFIXES: dict[str, tuple[str, str]] = {
    "metric": ("°C", "m/s"),
    "imperial": ("°F", "mph"),
    "standard": ("K", "m/s"),
}


def _suffixes(units: str) -> tuple[str, str]:
    return _UNIT_SUFFIXES.get(units, _UNIT_SUFFIXES["metric"])


def _number(value: float) -> str:
    # Adding 0.0 turns a rounded -0.0 into 0.0.
    return f"{round(value, 1) + 0.0:.1f}".rstrip("0").rstrip(".")


def format_conditions(snapshot: ConditionSnapshot, *, units: str = "metric") -> str:
    temp_unit, wind_unit = _suffixes(units)
    return "\n".join(
        [
            f"🌤 Weather in {snapshot.location}:",
            f"🌡 Temp: {_number(snapshot.temperature)}{temp_unit}",
            f"💧 Humidity: {_number(snapshot.humidity)}%",
            f"🌬 Wind: {_number(snapshot.wind_speed)} {wind_unit}",
            f"☁ Condition: {snapshot.description}",
        ]
    )


def format_push(snapshot: ConditionSnapshot, *, units: str = "metric") -> str:
    return f"⏰ Scheduled update:\n{format_conditions(snapshot, units=units)}"


def format_fetch_error(location: str, kind: FetchErrorKind) -> str:
    if kind is FetchErrorKind.NOT_FOUND:
        return f"❌ Could not find a location called {location}."
    if kind is FetchErrorKind.MALFORMED:
        return f"⚠ Got an unreadable answer for {location}, try again later."
    return f"⚠ Weather service unavailable for {location}, try again later."


def format_location_list(locations: Sequence[str]) -> str:
    if not locations:
        return "❌ You have no subscribed cities."
    return f"📍 Your cities: {', '.join(locations)}"
