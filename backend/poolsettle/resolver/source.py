"""
backend/poolsettle/resolver/source.py

Purpose:
    Entrypoint of one resolution unit, as executed for a settlement request:
    positional request args + secrets + an HTTP capability in, one JSON
    verdict string out. Stateless between invocations.

Dependencies:
    - poolsettle.providers.thesportsdb
    - poolsettle.resolver.tiers
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from poolsettle.providers.fetcher import Fetcher
from poolsettle.providers.thesportsdb import DEFAULT_BASE_URL, TheSportsDBClient, resolve_league
from poolsettle.resolver.payload import ResolutionOutcome
from poolsettle.resolver.tiers import ResolutionRequest, resolve_event

logger = logging.getLogger("poolsettle.resolver")

ACCEPTED_ARG_COUNTS = (8, 9)


class ResolutionFatalError(RuntimeError):
    """Aborts the resolution unit without a payload (bad arg count, missing key)."""


def parse_request_args(args: Sequence[str]) -> ResolutionRequest:
    if len(args) not in ACCEPTED_ARG_COUNTS:
        raise ResolutionFatalError(f"expected 8 or 9 args, got {len(args)}")

    values = [str(arg if arg is not None else "").strip() for arg in args]
    league_label, date_from, date_to, code_a, code_b, name_a, name_b, lock_raw = values[:8]
    try:
        lock_time = int(float(lock_raw or "0"))
    except (ValueError, OverflowError) as exc:
        raise ResolutionFatalError(f"lock time is not numeric: {lock_raw!r}") from exc

    id_event: Optional[str] = None
    if len(values) == 9 and values[8]:
        id_event = values[8]

    return ResolutionRequest(
        league=resolve_league(league_label),
        date_from=date_from,
        date_to=date_to,
        code_a=code_a.upper(),
        code_b=code_b.upper(),
        name_a=name_a,
        name_b=name_b,
        lock_time=lock_time,
        id_event=id_event,
    )


def pick_api_key(tag: str, secret_values: Mapping[str, str]) -> str:
    """Global THESPORTSDB_API_KEY first, else the league-specific <TAG>_API_KEY."""
    key = str(secret_values.get("THESPORTSDB_API_KEY") or "").strip()
    if key:
        return key
    if tag == "GEN":
        return ""
    return str(secret_values.get(f"{tag}_API_KEY") or "").strip()


def pick_endpoint(tag: str, secret_values: Mapping[str, str]) -> str:
    """League-specific <TAG>_ENDPOINT, then THESPORTSDB_ENDPOINT, then the public API."""
    for name in (f"{tag}_ENDPOINT", "THESPORTSDB_ENDPOINT"):
        override = str(secret_values.get(name) or "").strip()
        if override:
            return override.rstrip("/")
    return DEFAULT_BASE_URL.rstrip("/")


async def resolve_from_args(
    args: Sequence[str],
    secret_values: Mapping[str, str],
    fetcher: Fetcher,
) -> ResolutionOutcome:
    req = parse_request_args(args)
    api_key = pick_api_key(req.league.tag, secret_values)
    if not api_key:
        raise ResolutionFatalError(
            "missing API key (expected THESPORTSDB_API_KEY or league-specific *_API_KEY)"
        )
    client = TheSportsDBClient(fetcher, api_key, pick_endpoint(req.league.tag, secret_values))
    return await resolve_event(req, client)


async def run_source(
    args: Sequence[str],
    secret_values: Mapping[str, str],
    fetcher: Fetcher,
) -> str:
    """Resolve and serialize; ResolutionFatalError and ProviderError propagate."""
    outcome = await resolve_from_args(args, secret_values, fetcher)
    return outcome.to_payload().to_json()
