"""Base model for provider payloads.

Every payload model inherits from :class:`WeatherBaseModel` which
provides:

* frozen instances with unknown keys ignored,
* a ``model_validator(mode="before")`` that drops ``None`` values so the
  field default is used,
* a ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_unix_timestamp(value: Any) -> datetime | None:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime.

    Returns ``None`` when the value is ``None``. Naive datetimes are taken
    as UTC. Values outside the platform's time range raise ``ValueError``.
    """
    if value is None:
        return value
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    try:
        ts = int(value)
        if ts >= _MS_THRESHOLD:
            ts = ts // 1000
        return datetime.fromtimestamp(ts, tz=UTC)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp out of range: {value!r}") from exc


UnixTimestamp = Annotated[datetime | None, BeforeValidator(parse_unix_timestamp)]
"""Annotated type that coerces epoch ints (seconds or ms) to UTC datetimes."""


class WeatherBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        # Only auto-stash raw when the caller did not provide one.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
