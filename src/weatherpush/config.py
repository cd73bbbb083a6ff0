"""Runtime configuration for weatherpush."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from weatherpush._constants import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_SHUTDOWN_GRACE,
    DEFAULT_TICK_INTERVAL,
    TELEGRAM_BASE_URL,
    WEATHER_BASE_URL,
)
from weatherpush.exceptions import WeatherPushConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise WeatherPushConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class WeatherPushConfig:
    """Bot configuration.

    Parameters
    ----------
    weather_api_key : str
        OpenWeatherMap API key (``appid``).
    telegram_token : str
        Telegram bot token. Only required for the bot runtime.
    weather_base_url : str
        Weather provider base URL.
    units : str
        Unit system passed to the provider (``metric``, ``imperial``,
        ``standard``).
    telegram_base_url : str
        Telegram Bot API base URL.
    tick_interval : float
        Seconds between broadcast cycles. Defaults to one hour.
    fetch_timeout : float
        Upper bound in seconds for a single weather fetch.
    max_concurrent_fetches : int
        How many fetches a broadcast cycle may have in flight at once.
        ``1`` processes pairs sequentially.
    shutdown_grace : float
        Seconds an in-flight cycle is given to finish on shutdown before
        it is cancelled.
    poll_timeout : int
        Telegram ``getUpdates`` long-poll timeout in seconds, passed to
        ``Application.run_polling``.
    send_on_start : bool
        Run one broadcast cycle immediately when the scheduler starts
        instead of waiting a full interval.
    """

    weather_api_key: str = ""
    telegram_token: str = ""
    weather_base_url: str = WEATHER_BASE_URL
    units: str = "metric"
    telegram_base_url: str = TELEGRAM_BASE_URL
    tick_interval: float = DEFAULT_TICK_INTERVAL
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_concurrent_fetches: int = 1
    shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE
    poll_timeout: int = DEFAULT_POLL_TIMEOUT
    send_on_start: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> WeatherPushConfig:
        """Create configuration from environment variables.

        Reads ``OPENWEATHER_API_KEY`` and ``TELEGRAM_TOKEN`` plus the
        optional ``WEATHERPUSH_*`` variables. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "OPENWEATHER_API_KEY": "weather_api_key",
            "TELEGRAM_TOKEN": "telegram_token",
            "WEATHERPUSH_WEATHER_BASE_URL": "weather_base_url",
            "WEATHERPUSH_UNITS": "units",
            "WEATHERPUSH_TELEGRAM_BASE_URL": "telegram_base_url",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "WEATHERPUSH_TICK_INTERVAL": ("tick_interval", float),
            "WEATHERPUSH_FETCH_TIMEOUT": ("fetch_timeout", float),
            "WEATHERPUSH_MAX_CONCURRENT_FETCHES": ("max_concurrent_fetches", int),
            "WEATHERPUSH_SHUTDOWN_GRACE": ("shutdown_grace", float),
            "WEATHERPUSH_POLL_TIMEOUT": ("poll_timeout", int),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "send_on_start" not in overrides:
            config_kwargs["send_on_start"] = _env_bool(env.get("WEATHERPUSH_SEND_ON_START"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

    def validate(self, *, require_telegram: bool = False) -> WeatherPushConfig:
        """Check value ranges and required credentials, returning ``self``."""
        if not self.weather_api_key:
            raise WeatherPushConfigError("weather_api_key is required (set OPENWEATHER_API_KEY)")
        if require_telegram and not self.telegram_token:
            raise WeatherPushConfigError("telegram_token is required (set TELEGRAM_TOKEN)")
        if self.tick_interval <= 0:
            raise WeatherPushConfigError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.fetch_timeout <= 0:
            raise WeatherPushConfigError(f"fetch_timeout must be positive, got {self.fetch_timeout}")
        if self.max_concurrent_fetches < 1:
            raise WeatherPushConfigError(
                f"max_concurrent_fetches must be >= 1, got {self.max_concurrent_fetches}"
            )
        if self.shutdown_grace < 0:
            raise WeatherPushConfigError(f"shutdown_grace must not be negative, got {self.shutdown_grace}")
        if self.poll_timeout < 0:
            raise WeatherPushConfigError(f"poll_timeout must not be negative, got {self.poll_timeout}")
        return self
