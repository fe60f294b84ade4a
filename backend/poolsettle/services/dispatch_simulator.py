"""
backend/poolsettle/services/dispatch_simulator.py

Purpose:
    Dry-run a settlement request with eth_call before any fee is spent, and
    turn a revert into the decoded error name for the operator log.

Dependencies:
    - poolsettle.chain.pool_contract
    - poolsettle.chain.revert_decoder
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from poolsettle.chain.revert_decoder import UNKNOWN, decode_exception
from poolsettle.models.pool import RequestParams

logger = logging.getLogger("poolsettle.simulator")


@dataclass(frozen=True)
class SimulationResult:
    ok: bool
    selector: Optional[str] = None
    decoded_name: Optional[str] = None
    detail: str = ""


class RequestSimulator(Protocol):
    async def simulate(self, address: str, args: Sequence[str], params: RequestParams) -> None:
        ...


class DispatchSimulator:
    def __init__(self, gateway: RequestSimulator) -> None:
        self._gateway = gateway

    async def simulate(self, address: str, args: Sequence[str], params: RequestParams) -> SimulationResult:
        try:
            await self._gateway.simulate(address, args, params)
        except asyncio.TimeoutError:
            return SimulationResult(ok=False, decoded_name=UNKNOWN, detail="simulation timed out")
        except Exception as exc:
            decoded = decode_exception(exc)
            detail = decoded.describe() if decoded.name != UNKNOWN else f"{type(exc).__name__}: {exc}"
            return SimulationResult(
                ok=False,
                selector=decoded.selector,
                decoded_name=decoded.name,
                detail=detail,
            )
        return SimulationResult(ok=True)
