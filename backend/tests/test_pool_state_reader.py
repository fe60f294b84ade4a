"""
backend/tests/test_pool_state_reader.py

Purpose:
    Snapshot assembly from the nine pool views and failure wrapping.
"""

from __future__ import annotations

import asyncio

import pytest

from poolsettle.services.pool_state_reader import PoolStateReader, PoolStateReadError

VIEWS = {
    "league": "  MLB ",
    "teamAName": "New York Yankees",
    "teamBName": "Boston Red Sox",
    "teamACode": "NYY",
    "teamBCode": "BOS",
    "isLocked": True,
    "requestSent": False,
    "winningTeam": 0,
    "lockTime": 1_700_000_000,
}


class _FakeGateway:
    def __init__(self, views: dict, timeout: float = 1.0, fail_on: str | None = None, hang_on: str | None = None):
        self.views = views
        self.timeout = timeout
        self.fail_on = fail_on
        self.hang_on = hang_on
        self.calls: list[str] = []

    async def call_view(self, address, name):
        self.calls.append(name)
        if name == self.hang_on:
            await asyncio.sleep(10)
        if name == self.fail_on:
            raise ConnectionError("rpc reset")
        return self.views[name]


@pytest.mark.asyncio
async def test_reads_full_snapshot():
    gateway = _FakeGateway(VIEWS)
    snap = await PoolStateReader(gateway).read("0xabc")

    assert snap.address == "0xabc"
    assert snap.league == "mlb"
    assert (snap.team_a_code, snap.team_b_code) == ("NYY", "BOS")
    assert snap.is_locked is True
    assert snap.request_sent is False
    assert snap.winning_team == 0
    assert snap.lock_time == 1_700_000_000
    assert sorted(gateway.calls) == sorted(VIEWS)


@pytest.mark.asyncio
async def test_any_view_failure_fails_the_read():
    with pytest.raises(PoolStateReadError) as info:
        await PoolStateReader(_FakeGateway(VIEWS, fail_on="teamBCode")).read("0xabc")
    assert "ConnectionError" in str(info.value)


@pytest.mark.asyncio
async def test_read_timeout():
    gateway = _FakeGateway(VIEWS, timeout=0.01, hang_on="lockTime")
    with pytest.raises(PoolStateReadError) as info:
        await PoolStateReader(gateway).read("0xabc")
    assert "timed out" in str(info.value)
