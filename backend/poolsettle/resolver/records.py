"""
backend/poolsettle/resolver/records.py

Purpose:
    Typed view over TheSportsDB event records. Provider rows are partially
    populated and loosely typed ("4", 4, "", null); accessors return None as
    the explicit absent marker so callers never rely on truthiness.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from poolsettle.utils import parse_utc
from poolsettle.utils.team_matching import pair_matches, title_mentions

_FINISHED_STATUS = re.compile(r"^(FT|AOT|AET|PEN|FINISHED|MATCH FINISHED)$")
_FAR = 10**15


def coerce_score(value: Any) -> Optional[int]:
    """Integer score from a provider field, or None when absent/garbled."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


@dataclass(frozen=True)
class ProviderEvent:
    raw: Mapping[str, Any]

    def text(self, key: str) -> Optional[str]:
        value = self.raw.get(key)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def id_event(self) -> Optional[str]:
        return self.text("idEvent")

    @property
    def home_name(self) -> Optional[str]:
        return self.text("strHomeTeam")

    @property
    def away_name(self) -> Optional[str]:
        return self.text("strAwayTeam")

    @property
    def home_id(self) -> Optional[str]:
        return self.text("idHomeTeam")

    @property
    def away_id(self) -> Optional[str]:
        return self.text("idAwayTeam")

    @property
    def status(self) -> Optional[str]:
        return self.text("strStatus")

    @property
    def progress(self) -> Optional[str]:
        return self.text("strProgress")

    @property
    def date_event(self) -> Optional[str]:
        return self.text("dateEvent")

    @property
    def home_score(self) -> Optional[int]:
        return coerce_score(self.raw.get("intHomeScore"))

    @property
    def away_score(self) -> Optional[int]:
        return coerce_score(self.raw.get("intAwayScore"))

    def on_day(self, day: str) -> bool:
        return day in (self.date_event, self.text("dateEventLocal"))

    def kickoff_epoch(self) -> Optional[int]:
        """strTimestamp, else dateEvent + strTime, else dateEvent midnight (all UTC)."""
        candidates = []
        stamp = self.text("strTimestamp")
        if stamp is not None:
            candidates.append(stamp)
        day, clock = self.date_event, self.text("strTime")
        if day is not None and clock is not None:
            candidates.append(f"{day}T{clock}")
        if day is not None:
            candidates.append(f"{day}T00:00:00")

        for value in candidates:
            try:
                return int(parse_utc(value).timestamp())
            except ValueError:
                continue
        return None

    def is_final(self) -> bool:
        """Finished status with both scores, or scores with no status string at all."""
        have_scores = self.home_score is not None and self.away_score is not None
        status = self.status
        if status is None:
            # Some historical rows carry final scores but no status
            return have_scores
        progress = (self.progress or "").lower()
        finished = (
            _FINISHED_STATUS.match(status.upper()) is not None
            or "final" in status.lower()
            or "final" in progress
        )
        return finished and have_scores

    def involves(self, team_a: str, team_b: str) -> bool:
        home, away = self.home_name, self.away_name
        if home is not None and away is not None:
            return pair_matches(home, away, team_a, team_b)
        return title_mentions(self.text("strEvent"), team_a, team_b) or title_mentions(
            self.text("strEventAlternate"), team_a, team_b
        )


def wrap(rows: Iterable[Mapping[str, Any]]) -> list[ProviderEvent]:
    return [ProviderEvent(row) for row in rows]


def matching(events: Iterable[ProviderEvent], team_a: str, team_b: str) -> list[ProviderEvent]:
    return [event for event in events if event.involves(team_a, team_b)]


def closest_to(events: Iterable[ProviderEvent], lock_time: int) -> Optional[ProviderEvent]:
    """Minimum |kickoff - lock_time|; ties go to the earlier kickoff, unknown kickoffs last."""

    def _key(event: ProviderEvent) -> tuple[int, int]:
        epoch = event.kickoff_epoch()
        if epoch is None:
            return (_FAR, _FAR)
        return (abs(epoch - lock_time), epoch)

    return min(events, key=_key, default=None)
