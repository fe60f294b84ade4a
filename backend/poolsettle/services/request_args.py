"""
backend/poolsettle/services/request_args.py

Purpose:
    Build the ordered string argument tuple of a settlement request from a
    pool snapshot. The game-day window is anchored to the US Eastern civil
    date of the lock time, so late games spanning midnight ET still resolve
    against the right local day.

Dependencies:
    - poolsettle.utils (eastern_date, add_days_iso)
"""

from __future__ import annotations

from poolsettle.models.pool import PoolSnapshot
from poolsettle.utils import add_days_iso, eastern_date

FULL_ARG_COUNT = 8
COMPAT_ARG_COUNT = 6


class InvalidArgsError(ValueError):
    """The tuple would contain a blank field; the pool must not be dispatched."""


def request_window(lock_time: int) -> tuple[str, str]:
    """(dateFrom, dateTo): ET game-day and the next calendar day."""
    date_from = eastern_date(lock_time).isoformat()
    return date_from, add_days_iso(date_from, 1)


def build_request_args(snapshot: PoolSnapshot, compat_mode: bool = False) -> list[str]:
    """Full: league, from, to, codeA, codeB, nameA, nameB, lockTime. Compat drops to + lockTime."""
    date_from, date_to = request_window(snapshot.lock_time)
    code_a = snapshot.team_a_code.upper()
    code_b = snapshot.team_b_code.upper()

    if compat_mode:
        raw = [snapshot.league, date_from, code_a, code_b, snapshot.team_a_name, snapshot.team_b_name]
    else:
        raw = [
            snapshot.league,
            date_from,
            date_to,
            code_a,
            code_b,
            snapshot.team_a_name,
            snapshot.team_b_name,
            str(snapshot.lock_time),
        ]

    args = [str(value if value is not None else "").strip() for value in raw]
    if not args:
        raise InvalidArgsError("empty argument tuple")
    blank = [index for index, value in enumerate(args) if not value]
    if blank:
        raise InvalidArgsError(f"blank argument(s) at position(s) {blank}")
    return args
