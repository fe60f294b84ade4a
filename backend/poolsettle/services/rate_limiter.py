"""
backend/poolsettle/services/rate_limiter.py

Purpose:
    Process-local token-bucket RPM limiter keyed by channel ("thesportsdb",
    "chain_submit"). Used to throttle provider calls during the results
    precheck and, optionally, on-chain submissions within one dispatch pass.

Dependencies:
    - asyncio
    - time
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field


@dataclass
class _Bucket:
    rpm: int
    tokens: float
    updated_at: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def per_second(self) -> float:
        return self.rpm / 60.0

    def take(self, now: float) -> float:
        """Spend one token if available; otherwise return seconds until one accrues."""
        self.tokens = min(float(self.rpm), self.tokens + max(0.0, now - self.updated_at) * self.per_second)
        self.updated_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return 0.0
        return (1.0 - self.tokens) / self.per_second


class RateLimiter:
    """Token bucket per channel; a missing or non-positive rpm disables limiting."""

    def __init__(self) -> None:
        self._buckets: dict[str, _Bucket] = {}

    def _bucket_for(self, channel: str, rpm: int) -> _Bucket:
        bucket = self._buckets.get(channel)
        if bucket is None:
            # A fresh channel starts with a full minute's budget
            bucket = self._buckets[channel] = _Bucket(rpm=rpm, tokens=float(rpm), updated_at=time.monotonic())
        elif bucket.rpm != rpm:
            bucket.rpm = rpm
            bucket.tokens = min(bucket.tokens, float(rpm))
        return bucket

    async def acquire(self, channel: str, rpm: int | None) -> None:
        channel = str(channel or "").strip().lower()
        if not channel or rpm is None or int(rpm) <= 0:
            return
        bucket = self._bucket_for(channel, int(rpm))
        wait = 1.0
        while wait > 0:
            async with bucket.lock:
                wait = bucket.take(time.monotonic())
            if wait > 0:
                await asyncio.sleep(wait)


rate_limiter = RateLimiter()
