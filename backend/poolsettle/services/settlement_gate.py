"""
backend/poolsettle/services/settlement_gate.py

Purpose:
    Single choke point deciding whether a pool may request settlement now.
    Pure: the same snapshot, clock and gap always give the same decision.
    Every later dispatch step trusts this verdict.

Dependencies:
    - poolsettle.models.pool
"""

from __future__ import annotations

from dataclasses import dataclass

from poolsettle.models.pool import PoolSnapshot, WinningTeam


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason_code: str


def evaluate_gate(snapshot: PoolSnapshot, now_epoch: int, gap_seconds: int) -> GateDecision:
    """Rules in order: locked, no request yet, undecided, lock time + gap elapsed."""
    if not snapshot.is_locked:
        return GateDecision(False, "not_locked")
    if snapshot.request_sent:
        return GateDecision(False, "request_sent")
    if snapshot.winning_team != WinningTeam.NONE:
        return GateDecision(False, "already_settled")
    # lock_time == 0 means unset: treated as already due
    if snapshot.lock_time > 0 and now_epoch < snapshot.lock_time + gap_seconds:
        return GateDecision(False, "too_early")
    return GateDecision(True, "eligible")


def is_eligible(snapshot: PoolSnapshot, now_epoch: int, gap_seconds: int) -> bool:
    return evaluate_gate(snapshot, now_epoch, gap_seconds).allowed
