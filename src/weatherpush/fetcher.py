"""Async weather fetcher: one location in, one condition snapshot out."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp

from weatherpush._api.weather import fetch_current_conditions
from weatherpush._transport import HttpTransport, Transport
from weatherpush.config import WeatherPushConfig
from weatherpush.exceptions import FetchError, FetchErrorKind, WeatherPushError
from weatherpush.models.condition import ConditionSnapshot
from weatherpush.normalize import normalize_location

_logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """What the scheduler and router need from a fetcher."""

    async def fetch(self, location: str) -> ConditionSnapshot: ...


class WeatherFetcher:
    """Fetch current conditions from the weather provider.

    Usage::

        async with WeatherFetcher(config) as fetcher:
            snapshot = await fetcher.fetch("Paris")

    Every call goes to the provider; nothing is cached. A call never
    takes longer than ``config.fetch_timeout`` and never retries: any
    failure surfaces immediately as :class:`FetchError`.
    """

    def __init__(
        self,
        config: WeatherPushConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        if transport is None and session is not None:
            self._transport = HttpTransport(session, default_timeout=config.fetch_timeout)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> WeatherFetcher:
        await self.open()
        return self

    async def open(self) -> None:
        """Create the HTTP session unless one was supplied. Idempotent."""
        if self._transport is None:
            self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, default_timeout=self._config.fetch_timeout)

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise WeatherPushError("Fetcher not initialized. Use 'async with WeatherFetcher(...) as fetcher:'")
        return self._transport

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def fetch(self, location: str) -> ConditionSnapshot:
        """Fetch current conditions for *location*.

        Raises
        ------
        InvalidLocationError
            If *location* is empty.
        FetchError
            ``NOT_FOUND``, ``UNAVAILABLE`` (including timeouts) or
            ``MALFORMED``.
        """
        name = normalize_location(location)
        transport = self._require_transport()
        try:
            return await asyncio.wait_for(
                fetch_current_conditions(self._config, transport, name),
                timeout=self._config.fetch_timeout,
            )
        except TimeoutError as exc:
            _logger.debug("Fetch for %s timed out after %.1fs", name, self._config.fetch_timeout)
            raise FetchError(
                f"Weather fetch for {name!r} timed out after {self._config.fetch_timeout:g}s",
                kind=FetchErrorKind.UNAVAILABLE,
                location=name,
            ) from exc
