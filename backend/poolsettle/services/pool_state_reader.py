"""
backend/poolsettle/services/pool_state_reader.py

Purpose:
    Load a fresh PoolSnapshot from a pool's view functions. The nine reads
    are independent and issued concurrently under one timeout; any failure
    fails the whole read for that pool.

Dependencies:
    - asyncio
    - poolsettle.chain.pool_contract
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from poolsettle.chain.abi import POOL_VIEW_FIELDS
from poolsettle.models.pool import PoolSnapshot

logger = logging.getLogger("poolsettle.pool_state")


class PoolStateReadError(RuntimeError):
    """A pool's state could not be read (RPC failure, timeout, bad address)."""


class ViewCaller(Protocol):
    timeout: float

    async def call_view(self, address: str, name: str) -> Any:
        ...


class PoolStateReader:
    def __init__(self, gateway: ViewCaller) -> None:
        self._gateway = gateway

    async def read(self, address: str) -> PoolSnapshot:
        calls = [self._gateway.call_view(address, name) for name in POOL_VIEW_FIELDS]
        try:
            values = await asyncio.wait_for(asyncio.gather(*calls), timeout=self._gateway.timeout)
        except asyncio.TimeoutError as exc:
            raise PoolStateReadError(f"{address}: state read timed out") from exc
        except Exception as exc:
            raise PoolStateReadError(f"{address}: {type(exc).__name__}: {exc}") from exc

        fields = dict(zip(POOL_VIEW_FIELDS, values))
        snapshot = PoolSnapshot(
            address=address,
            league=str(fields["league"] or "").strip().lower(),
            team_a_name=str(fields["teamAName"] or ""),
            team_b_name=str(fields["teamBName"] or ""),
            team_a_code=str(fields["teamACode"] or ""),
            team_b_code=str(fields["teamBCode"] or ""),
            is_locked=bool(fields["isLocked"]),
            request_sent=bool(fields["requestSent"]),
            winning_team=int(fields["winningTeam"]),
            lock_time=int(fields["lockTime"] or 0),
        )
        logger.debug(
            "%s: %s %s vs %s locked=%s sent=%s winner=%d lock=%d",
            address, snapshot.league, snapshot.team_a_name, snapshot.team_b_name,
            snapshot.is_locked, snapshot.request_sent, snapshot.winning_team, snapshot.lock_time,
        )
        return snapshot
