"""
backend/poolsettle/providers/http_client.py

Purpose:
    Shared httpx client for outbound HTTP (TheSportsDB, the remote secrets
    pointer). Transient statuses get a bounded number of retries with
    exponential backoff; a transport failure that outlives the retries is
    raised so callers fail closed.

Dependencies:
    - httpx
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from poolsettle.utils.logging_setup import safe_url

logger = logging.getLogger("poolsettle.http_client")

_TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})
_TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError)
_USER_AGENT = "poolsettle/0.1 (+settlement-bot)"


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 1
    base_delay: float = 0.25
    max_delay: float = 5.0

    def delay(self, attempt: int, hinted: Optional[float] = None) -> float:
        wait = hinted if hinted is not None else self.base_delay * (2 ** attempt)
        return max(0.0, min(wait, self.max_delay))


def retry_after_seconds(response: httpx.Response) -> Optional[float]:
    """Server-suggested wait in seconds, when given as a number."""
    raw = response.headers.get("retry-after") or response.headers.get("x-ratelimit-retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class ResilientClient:
    """httpx.AsyncClient with a per-request timeout and transient-failure retries."""

    def __init__(
        self,
        name: str,
        timeout: float = 10.0,
        max_retries: int = 1,
        base_delay: float = 0.25,
        max_delay: float = 5.0,
    ):
        self._name = name
        self._policy = RetryPolicy(max_retries, base_delay, max_delay)
        self._client = httpx.AsyncClient(timeout=timeout, headers={"User-Agent": _USER_AGENT})

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        attempts = self._policy.max_retries + 1
        for attempt in range(attempts):
            final = attempt == attempts - 1
            try:
                resp = await self._client.request(method, url, **kwargs)
            except _TRANSIENT_ERRORS as exc:
                logger.warning(
                    "[%s] %s %s failed (%d/%d): %s",
                    self._name, method, safe_url(url), attempt + 1, attempts, type(exc).__name__,
                )
                if final:
                    raise
                await asyncio.sleep(self._policy.delay(attempt))
                continue

            if resp.status_code not in _TRANSIENT_STATUSES or final:
                if resp.status_code in _TRANSIENT_STATUSES:
                    logger.error(
                        "[%s] %s %s still %d after %d attempt(s)",
                        self._name, method, safe_url(url), resp.status_code, attempts,
                    )
                return resp

            logger.warning(
                "[%s] %s %s returned %d (%d/%d), backing off",
                self._name, method, safe_url(url), resp.status_code, attempt + 1, attempts,
            )
            await asyncio.sleep(self._policy.delay(attempt, retry_after_seconds(resp)))

        raise RuntimeError("unreachable")  # pragma: no cover

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
