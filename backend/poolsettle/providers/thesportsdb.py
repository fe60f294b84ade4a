"""
backend/poolsettle/providers/thesportsdb.py

Purpose:
    TheSportsDB v1 adapter used by the event resolver: day schedule, previous
    league events, event lookup (base + results), season list and season
    schedule. Returns raw records; shaping is left to the resolver.

Dependencies:
    - poolsettle.providers.fetcher
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import unquote, urlencode

from poolsettle.providers.fetcher import Fetcher, ProviderError
from poolsettle.utils.logging_setup import safe_url

logger = logging.getLogger("poolsettle.thesportsdb")

DEFAULT_BASE_URL = "https://www.thesportsdb.com/api/v1/json"

# Statuses worth another header variant before giving up on a fetch
_VARIANT_RETRY_STATUSES = {401, 403, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class LeagueRef:
    tag: str                    # "MLB", "EPL", ... or "GEN"
    league_id: Optional[str]    # TheSportsDB idLeague
    name: Optional[str]         # name accepted by eventsday.php


# TheSportsDB league ids / names for the leagues pools are created for
KNOWN_LEAGUES = {
    "MLB": LeagueRef("MLB", "4424", "MLB"),
    "NFL": LeagueRef("NFL", "4391", "NFL"),
    "NBA": LeagueRef("NBA", "4387", "NBA"),
    "NHL": LeagueRef("NHL", "4380", "NHL"),
    "EPL": LeagueRef("EPL", "4328", "English Premier League"),
    "UCL": LeagueRef("UCL", "4480", "UEFA Champions League"),
}


def clean_league_label(label: str) -> str:
    """Accept "MLB", "English_Premier_League", "UEFA%20Champions%20League", ..."""
    text = unquote(str(label or ""))
    text = re.sub(r"_+", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def league_tag(label: str) -> str:
    lc = clean_league_label(label).lower()
    for tag in ("mlb", "nfl", "nba", "nhl"):
        if re.search(rf"\b{tag}\b", lc):
            return tag.upper()
    if "premier" in lc or re.search(r"\bepl\b", lc):
        return "EPL"
    if "champions" in lc or re.search(r"\bucl\b", lc):
        return "UCL"
    return "GEN"


def resolve_league(label: str) -> LeagueRef:
    tag = league_tag(label)
    if tag in KNOWN_LEAGUES:
        return KNOWN_LEAGUES[tag]
    cleaned = clean_league_label(label)
    # A bare number is taken as a TheSportsDB league id
    return LeagueRef("GEN", cleaned if cleaned.isdigit() else None, cleaned or None)


def _records(payload: dict[str, Any], *keys: str) -> list[dict[str, Any]]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return [row for row in value if isinstance(row, dict)]
    return []


class TheSportsDBClient:
    """Thin endpoint wrapper; every call goes through the injected Fetcher."""

    def __init__(self, fetcher: Fetcher, api_key: str, base_url: str = DEFAULT_BASE_URL):
        if not api_key:
            raise ValueError("TheSportsDB API key is required")
        self._fetcher = fetcher
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")

    async def _get(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        url = f"{self._base_url}/{self._api_key}/{endpoint}?{urlencode(params)}"
        # Key-in-path first; some plans/proxies expect the header instead
        variants: tuple[dict[str, str], ...] = ({}, {"X-API-KEY": self._api_key})
        last_status: Optional[int] = None

        for headers in variants:
            resp = await self._fetcher.get_json(url, headers or None)
            if 200 <= resp.status < 300:
                if resp.data is None:
                    return {}
                if not isinstance(resp.data, dict):
                    raise ProviderError(f"{endpoint}: unexpected payload type {type(resp.data).__name__}")
                return resp.data
            last_status = resp.status
            logger.warning("%s returned %d (%s)", endpoint, resp.status, safe_url(url))
            if resp.status not in _VARIANT_RETRY_STATUSES:
                break

        raise ProviderError(f"{endpoint} failed with status {last_status}")

    async def events_by_day(self, day: str, league_name: str) -> list[dict[str, Any]]:
        payload = await self._get("eventsday.php", {"d": day, "l": league_name})
        return _records(payload, "events")

    async def past_league_events(self, league_id: str) -> list[dict[str, Any]]:
        payload = await self._get("eventspastleague.php", {"id": league_id})
        return _records(payload, "events")

    async def lookup_event(self, event_id: str) -> Optional[dict[str, Any]]:
        payload = await self._get("lookupevent.php", {"id": event_id})
        rows = _records(payload, "events")
        return rows[0] if rows else None

    async def lookup_event_results(self, event_id: str) -> Optional[dict[str, Any]]:
        payload = await self._get("lookupeventresults.php", {"id": event_id})
        rows = _records(payload, "results", "events")
        return rows[0] if rows else None

    async def seasons(self, league_id: str) -> list[str]:
        payload = await self._get("search_all_seasons.php", {"id": league_id})
        names = (str(row.get("strSeason") or "").strip() for row in _records(payload, "seasons"))
        return [name for name in names if name]

    async def season_events(self, league_id: str, season: str) -> list[dict[str, Any]]:
        payload = await self._get("eventsseason.php", {"id": league_id, "s": season})
        return _records(payload, "events")
