"""
backend/poolsettle/resolver/tiers.py

Purpose:
    Ordered fallback search for the provider event behind one pool. Each tier
    is a coroutine returning a TierHit or None; resolve_event() walks them in
    order and stops at the first hit, then applies the finality rule.

Dependencies:
    - poolsettle.providers.thesportsdb
    - poolsettle.resolver.records
    - poolsettle.utils.team_matching
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from poolsettle.providers.thesportsdb import LeagueRef, TheSportsDBClient
from poolsettle.resolver.payload import (
    MatchTier,
    NotFinal,
    NotFound,
    Resolved,
    ResolutionOutcome,
)
from poolsettle.resolver.records import ProviderEvent, closest_to, matching, wrap
from poolsettle.utils.team_matching import teams_match

logger = logging.getLogger("poolsettle.resolver")

SEASONS_TO_SEARCH = 2


@dataclass(frozen=True)
class ResolutionRequest:
    league: LeagueRef
    date_from: str
    date_to: str
    code_a: str
    code_b: str
    name_a: str
    name_b: str
    lock_time: int
    id_event: Optional[str] = None


@dataclass(frozen=True)
class TierHit:
    tier: MatchTier
    event: ProviderEvent


Tier = Callable[[ResolutionRequest, TheSportsDBClient], Awaitable[Optional[TierHit]]]


async def id_lookup(req: ResolutionRequest, client: TheSportsDBClient) -> Optional[TierHit]:
    """Explicit provider id: results record merged over the base record."""
    if req.id_event is None:
        return None
    results = await client.lookup_event_results(req.id_event)
    base = await client.lookup_event(req.id_event)
    if results is None and base is None:
        logger.info("id_lookup: event %s not found by id", req.id_event)
        return None
    merged = dict(base or {})
    for key, value in (results or {}).items():
        if value is not None and str(value).strip() != "":
            merged[key] = value
    return TierHit("id_lookup", ProviderEvent(merged))


async def previous_league_match(req: ResolutionRequest, client: TheSportsDBClient) -> Optional[TierHit]:
    if req.league.league_id is None:
        return None
    events = wrap(await client.past_league_events(req.league.league_id))
    picked = closest_to(matching(events, req.name_a, req.name_b), req.lock_time)
    return TierHit("prev_league_match", picked) if picked is not None else None


async def _day_schedule_match(req: ResolutionRequest, client: TheSportsDBClient) -> Optional[TierHit]:
    """Leagues without a season list: the ET game-day and the following day."""
    if req.league.name is None:
        return None
    events: list[ProviderEvent] = []
    for day in (req.date_from, req.date_to):
        if day:
            events.extend(wrap(await client.events_by_day(day, req.league.name)))
    picked = closest_to(matching(events, req.name_a, req.name_b), req.lock_time)
    return TierHit("season_day_match", picked) if picked is not None else None


async def season_match(req: ResolutionRequest, client: TheSportsDBClient) -> Optional[TierHit]:
    seasons: list[str] = []
    if req.league.league_id is not None:
        seasons = sorted(set(await client.seasons(req.league.league_id)), reverse=True)
    if not seasons:
        return await _day_schedule_match(req, client)

    for season in seasons[:SEASONS_TO_SEARCH]:
        events = wrap(await client.season_events(req.league.league_id, season))
        day_slice = [event for event in events if event.on_day(req.date_from)]
        picked = closest_to(matching(day_slice, req.name_a, req.name_b), req.lock_time)
        if picked is not None:
            return TierHit("season_day_match", picked)
        picked = closest_to(matching(events, req.name_a, req.name_b), req.lock_time)
        if picked is not None:
            return TierHit("season_closest", picked)
    return None


TIERS: tuple[Tier, ...] = (id_lookup, previous_league_match, season_match)


def winner_code(req: ResolutionRequest, event: ProviderEvent) -> str:
    """Code of the requested team that won, or "Tie"."""
    home_score, away_score = event.home_score, event.away_score
    if home_score is None or away_score is None or home_score == away_score:
        return "Tie"
    home, away = event.home_name, event.away_name
    if teams_match(home, req.name_a) and teams_match(away, req.name_b):
        home_is_a = True
    elif teams_match(home, req.name_b) and teams_match(away, req.name_a):
        home_is_a = False
    else:
        home_is_a = teams_match(home, req.name_a)
    home_code, away_code = (req.code_a, req.code_b) if home_is_a else (req.code_b, req.code_a)
    return home_code if home_score > away_score else away_code


async def resolve_event(
    req: ResolutionRequest,
    client: TheSportsDBClient,
    tiers: tuple[Tier, ...] = TIERS,
) -> ResolutionOutcome:
    hit: Optional[TierHit] = None
    for tier in tiers:
        hit = await tier(req, client)
        if hit is not None:
            break

    if hit is None:
        reason = "id_missing" if req.id_event is not None else "none"
        logger.info("No candidate for %s vs %s (%s)", req.name_a, req.name_b, reason)
        return NotFound(reason)

    if not hit.event.is_final():
        logger.info(
            "Candidate %s via %s not final (status=%s)",
            hit.event.id_event, hit.tier, hit.event.status,
        )
        return NotFinal(hit.tier, hit.event)

    return Resolved(hit.tier, hit.event, winner_code(req, hit.event))
