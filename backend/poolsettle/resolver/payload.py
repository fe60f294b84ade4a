"""
backend/poolsettle/resolver/payload.py

Purpose:
    Tagged resolution outcomes and the normalized JSON verdict returned to the
    pool contract. Recoverable outcomes are values (Resolved / NotFinal /
    NotFound); fatal conditions are exceptions raised by the entrypoint.

Dependencies:
    - pydantic
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from poolsettle.resolver.records import ProviderEvent

MatchTier = Literal[
    "id_lookup",
    "prev_league_match",
    "season_day_match",
    "season_closest",
]
FailureReason = Literal["none", "not_final", "id_missing"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class TeamResult(_CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    score: Optional[int] = None


class ResolvedEvent(_CamelModel):
    ok: Literal[True] = True
    match_tier: MatchTier
    id_event: Optional[str] = None
    home: TeamResult
    away: TeamResult
    status: Optional[str] = None
    date_event: Optional[str] = None
    timestamp: Optional[int] = None
    winner: str


class ResolutionFailure(_CamelModel):
    ok: Literal[False] = False
    reason: FailureReason
    match_tier: Optional[MatchTier] = None
    id_event: Optional[str] = None
    status: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class Resolved:
    tier: MatchTier
    event: ProviderEvent
    winner: str

    def to_payload(self) -> ResolvedEvent:
        ev = self.event
        return ResolvedEvent(
            match_tier=self.tier,
            id_event=ev.id_event,
            home=TeamResult(id=ev.home_id, name=ev.home_name, score=ev.home_score),
            away=TeamResult(id=ev.away_id, name=ev.away_name, score=ev.away_score),
            status=ev.status,
            date_event=ev.date_event,
            timestamp=ev.kickoff_epoch(),
            winner=self.winner,
        )


@dataclass(frozen=True)
class NotFinal:
    """A candidate exists but has not finished; the caller should retry later."""

    tier: MatchTier
    event: ProviderEvent

    def to_payload(self) -> ResolutionFailure:
        return ResolutionFailure(
            reason="not_final",
            match_tier=self.tier,
            id_event=self.event.id_event,
            status=self.event.status,
        )


@dataclass(frozen=True)
class NotFound:
    reason: Literal["none", "id_missing"] = "none"

    def to_payload(self) -> ResolutionFailure:
        return ResolutionFailure(reason=self.reason)


ResolutionOutcome = Union[Resolved, NotFinal, NotFound]
