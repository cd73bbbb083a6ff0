"""Current-condition snapshot model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import Field, field_validator, model_validator

from weatherpush.models._base import UnixTimestamp, WeatherBaseModel
from weatherpush.normalize import safe_float, safe_str


def _first(items: Any) -> dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


class ConditionSnapshot(WeatherBaseModel):
    """One fetched, timestamped weather reading for a location.

    Accepts either the flat field names below or an OpenWeatherMap
    current-weather payload (``main.temp``, ``main.humidity``,
    ``wind.speed``, ``weather[0].description``, ``dt``, ``name``).

    Parameters
    ----------
    location : str
        Location name as reported by the provider, falling back to the
        requested name.
    temperature : float
        Temperature in the configured unit system.
    humidity : float
        Relative humidity in percent (0-100).
    wind_speed : float
        Wind speed in the configured unit system.
    description : str
        Short human-readable condition description.
    observed_at : datetime
        UTC time of the observation. Defaults to the parse time when the
        provider omits it.
    raw : dict
        Full provider payload.
    """

    location: str = Field(min_length=1)
    temperature: float
    humidity: float = Field(ge=0, le=100)
    wind_speed: float = Field(ge=0)
    description: str = Field(min_length=1)
    observed_at: UnixTimestamp = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="before")
    @classmethod
    def _flatten_provider_payload(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "main" not in values:
            return values
        main = values.get("main") if isinstance(values.get("main"), dict) else {}
        wind = values.get("wind") if isinstance(values.get("wind"), dict) else {}
        flat: dict[str, Any] = {
            "location": values.get("name") or values.get("location"),
            "temperature": main.get("temp"),
            "humidity": main.get("humidity"),
            "wind_speed": wind.get("speed"),
            "description": _first(values.get("weather")).get("description"),
            "observed_at": values.get("dt"),
            "raw": values.get("raw", dict(values)),
        }
        return {key: value for key, value in flat.items() if value is not None}

    @field_validator("temperature", "humidity", "wind_speed", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> Any:
        parsed = safe_float(value)
        return value if parsed is None else parsed

    @field_validator("location", "description", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return safe_str(value) if isinstance(value, str) else value

    @classmethod
    def from_provider(cls, payload: dict[str, Any], *, location: str) -> ConditionSnapshot:
        """Build a snapshot from a provider payload, defaulting ``location``."""
        data = dict(payload)
        if not safe_str(data.get("name")):
            data["name"] = location
        data.setdefault("raw", dict(payload))
        return cls.model_validate(data)
