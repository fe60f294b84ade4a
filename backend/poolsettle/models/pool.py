"""
backend/poolsettle/models/pool.py

Purpose:
    Pydantic models for on-chain pool state and the request parameters sent
    with every settlement request.

Dependencies:
    - pydantic.BaseModel
    - enum.IntEnum
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class WinningTeam(IntEnum):
    """Mirror of the contract's uint8 winningTeam; NONE means undecided."""
    NONE = 0
    TEAM_A = 1
    TEAM_B = 2
    DRAW = 3


class PoolSnapshot(BaseModel):
    """One read of a pool's view functions. Never reused across passes."""
    model_config = ConfigDict(frozen=True)

    address: str
    league: str                     # lower-cased label, e.g. "mlb"
    team_a_name: str
    team_b_name: str
    team_a_code: str
    team_b_code: str
    is_locked: bool
    request_sent: bool
    winning_team: int = WinningTeam.NONE  # raw uint8; unknown values count as decided
    lock_time: int = Field(default=0, ge=0)  # epoch seconds, 0 = unset


SecretsSource = Literal["explicit-config", "remote-config", "local-fallback"]


class SecretsPointer(BaseModel):
    model_config = ConfigDict(frozen=True)

    secrets_version: int = Field(ge=0)
    don_id: str
    source: SecretsSource


@dataclass(frozen=True)
class RequestParams:
    subscription_id: int     # uint64
    gas_limit: int           # uint32 callback compute budget
    secrets_slot_id: int     # uint8
    secrets_version: int     # uint64
    don_id: bytes            # bytes32

    def as_call_args(self) -> tuple[int, int, int, int, bytes]:
        return (
            self.subscription_id,
            self.gas_limit,
            self.secrets_slot_id,
            self.secrets_version,
            self.don_id,
        )
