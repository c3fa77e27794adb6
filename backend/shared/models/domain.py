"""
Pydantic v2 domain models for the Live Board.
Field names are canonical snake_case; validation aliases accept the upstream wire shape.
"""
from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import AliasChoices, AliasPath, BaseModel, ConfigDict, Field, field_validator

from shared.models.enums import ConnectionState, StandingsStatus


def coerce_text(value: Any) -> Optional[str]:
    """Render a loosely-typed upstream scalar as text; None stays None."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Reference entities ──────────────────────────────────────────────────
class CompetitionRef(DomainModel):
    id: Optional[str] = None
    name: Optional[str] = None
    country: Optional[str] = None

    @field_validator("id", "name", "country", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return coerce_text(v)


class TeamRef(DomainModel):
    id: Optional[str] = None
    name: Optional[str] = None
    logo_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("logo", "logo_url"))

    @field_validator("id", "name", "logo_url", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return coerce_text(v)


# ── Match event ─────────────────────────────────────────────────────────
class MatchEvent(DomainModel):
    """One timeline entry exactly as the feed sent it (free-text fields)."""
    id: Optional[str] = None
    kind: Optional[str] = Field(default=None, validation_alias=AliasChoices("event", "kind"))
    minute_raw: Optional[str] = Field(default=None, validation_alias=AliasChoices("time", "minute_raw"))
    player: Optional[str] = None
    side: Optional[str] = Field(default=None, validation_alias=AliasChoices("home_away", "side"))
    match_id: Optional[str] = None
    ts: Optional[str] = None

    @field_validator("id", "kind", "minute_raw", "player", "side", "match_id", "ts", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return coerce_text(v)


# ── Match state ─────────────────────────────────────────────────────────
class MatchState(DomainModel):
    """
    One live match. Identity is `id`; a re-delivered match replaces the
    previous record wholesale.
    """
    id: Optional[str] = None
    competition: Optional[CompetitionRef] = None
    status: Optional[str] = None
    clock_minute: Optional[str] = Field(default=None, validation_alias=AliasChoices("time", "clock_minute"))
    scheduled_time: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("scheduled", "scheduled_time")
    )
    home_team: TeamRef = Field(default_factory=TeamRef, validation_alias=AliasChoices("home", "home_team"))
    away_team: TeamRef = Field(default_factory=TeamRef, validation_alias=AliasChoices("away", "away_team"))
    score_text: Optional[str] = Field(
        default=None, validation_alias=AliasChoices(AliasPath("scores", "score"), "score_text")
    )
    timeline: list[MatchEvent] = Field(
        default_factory=list, validation_alias=AliasChoices("lastEvents", "timeline")
    )

    @field_validator("id", "status", "clock_minute", "scheduled_time", "score_text", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return coerce_text(v)

    # Nested values are loosely typed upstream; a malformed one must not reject the match.
    @field_validator("competition", mode="before")
    @classmethod
    def _competition_or_none(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, CompetitionRef)) else None

    @field_validator("home_team", "away_team", mode="before")
    @classmethod
    def _team_or_empty(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, TeamRef)) else {}

    @field_validator("timeline", mode="before")
    @classmethod
    def _timeline_objects_only(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return []
        return [e for e in v if isinstance(e, (dict, MatchEvent))]


# ── Derived views ───────────────────────────────────────────────────────
class CompetitionGroup(DomainModel):
    """Matches of one competition, ordered by scheduled time."""
    key: str
    competition: CompetitionRef
    matches: list[MatchState] = Field(default_factory=list)


class BoardView(DomainModel):
    """What consumers observe: connection state plus the grouped board."""
    connection_state: ConnectionState = ConnectionState.DISCONNECTED
    groups: list[CompetitionGroup] = Field(default_factory=list)

    @property
    def connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED

    @property
    def match_count(self) -> int:
        return sum(len(g.matches) for g in self.groups)


class TimelineView(DomainModel):
    """A deduped, time-descending timeline split by team side."""
    home: list[MatchEvent] = Field(default_factory=list)
    away: list[MatchEvent] = Field(default_factory=list)
    unknown: list[MatchEvent] = Field(default_factory=list)


# ── Standings ───────────────────────────────────────────────────────────
class StandingsRow(DomainModel):
    """One team's row, already in display form."""
    rank: str
    team: str
    points: str
    played: str
    goal_difference: str


class StandingsView(DomainModel):
    status: StandingsStatus = StandingsStatus.IDLE
    competition: Optional[CompetitionRef] = None
    rows: list[StandingsRow] = Field(default_factory=list)
    error: Optional[str] = None
