"""JSON-over-HTTP transport used by the weather adapter."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from weatherpush._constants import USER_AGENT
from weatherpush._redact import redact_for_log, redact_url
from weatherpush.exceptions import MalformedResponseError, WeatherPushTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the API modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        params: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any: ...


def _decode_text(body: bytes) -> str | None:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _decode_json(text: str | None) -> Any:
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


class HttpTransport:
    """aiohttp-backed transport returning decoded JSON bodies.

    Non-200 responses raise :class:`WeatherPushTransportError` carrying the
    status code and, when the body is JSON, the decoded payload. A 200
    response that is not UTF-8 JSON raises :class:`MalformedResponseError`.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, default_timeout: float | None = None) -> None:
        self._http = http_session
        self._default_timeout = default_timeout

    async def get_json(
        self,
        url: str,
        params: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        endpoint = redact_url(url)
        effective_timeout = timeout if timeout is not None else self._default_timeout
        client_timeout = aiohttp.ClientTimeout(total=effective_timeout)
        headers = {"accept": "application/json", "user-agent": USER_AGENT}

        _logger.debug("GET %s params=%s", endpoint, redact_for_log(dict(params or {})))

        try:
            async with self._http.get(url, params=params, headers=headers, timeout=client_timeout) as resp:
                body = await resp.read()
                status = resp.status
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise WeatherPushTransportError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        text = _decode_text(body)
        preview = text[:200] if text is not None else f"<{len(body)} undecodable bytes>"

        if status != 200:
            raise WeatherPushTransportError(
                f"HTTP {status} from {endpoint}: {preview}",
                status_code=status,
                endpoint=endpoint,
                payload=_decode_json(text),
            )

        if text is None:
            raise MalformedResponseError(
                f"Response from {endpoint} is not valid UTF-8: {preview}",
                status_code=status,
                endpoint=endpoint,
            )
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(
                f"Invalid JSON from {endpoint}: {preview}",
                status_code=status,
                endpoint=endpoint,
            ) from exc
