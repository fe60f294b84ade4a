"""
backend/poolsettle/providers/fetcher.py

Purpose:
    The HTTP capability handed to the event resolver. The resolver never
    builds its own client; DON-side it is the sandbox's request helper,
    locally it is HttpFetcher over ResilientClient.

Dependencies:
    - httpx
    - poolsettle.providers.http_client
    - poolsettle.services.rate_limiter
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import httpx

from poolsettle.providers.http_client import ResilientClient
from poolsettle.services.rate_limiter import RateLimiter, rate_limiter
from poolsettle.utils.logging_setup import safe_url

logger = logging.getLogger("poolsettle.fetcher")


class ProviderError(RuntimeError):
    """Provider call failed (timeout, transport error, non-2xx after all variants)."""


@dataclass(frozen=True)
class FetchResponse:
    status: int
    data: Any


class Fetcher(Protocol):
    async def get_json(self, url: str, headers: Optional[Mapping[str, str]] = None) -> FetchResponse:
        ...


class HttpFetcher:
    """Fetcher backed by httpx with explicit timeouts and an optional RPM throttle."""

    def __init__(
        self,
        timeout: float = 10.0,
        rate_limit_rpm: int | None = None,
        limiter: RateLimiter | None = None,
        channel: str = "thesportsdb",
    ) -> None:
        self._client = ResilientClient(channel, timeout=timeout)
        self._rpm = rate_limit_rpm
        self._limiter = limiter or rate_limiter
        self._channel = channel

    async def get_json(self, url: str, headers: Optional[Mapping[str, str]] = None) -> FetchResponse:
        await self._limiter.acquire(self._channel, self._rpm)
        try:
            resp = await self._client.get(url, headers=dict(headers or {}))
        except httpx.HTTPError as exc:
            raise ProviderError(f"{type(exc).__name__} fetching {safe_url(url)}") from exc

        if not resp.content:
            return FetchResponse(status=resp.status_code, data=None)
        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("Non-JSON body (%d bytes) from %s", len(resp.content), safe_url(url))
            if resp.is_success:
                # Maintenance pages arrive as 200 HTML; that is an outage, not "no events"
                raise ProviderError(f"non-JSON body from {safe_url(url)}") from exc
            data = None
        return FetchResponse(status=resp.status_code, data=data)

    async def aclose(self) -> None:
        await self._client.aclose()
