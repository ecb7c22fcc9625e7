"""
Pydantic v2 domain models for the Match Tracker.
These are the canonical internal representations, NOT ORM models.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.models.enums import FixtureStatus


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ── Teams ───────────────────────────────────────────────────────────────
class TeamRef(DomainModel):
    full_name: str = Field(alias="fullName")
    id: Optional[str] = None
    abbreviation: Optional[str] = Field(default=None, alias="abbName")
    common_name: Optional[str] = Field(default=None, alias="commonName")


# ── Score ───────────────────────────────────────────────────────────────
class TeamScore(DomainModel):
    """Provider scores are string-encoded integers and are kept as strings."""
    total: Optional[str] = Field(default=None, alias="totalScore")
    sub: Optional[str] = Field(default=None, alias="subScore")

    @field_validator("total", "sub", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @property
    def as_int(self) -> int:
        """Numeric value for display; malformed or missing totals read as 0."""
        try:
            return int(self.total or 0)
        except ValueError:
            return 0


class Score(DomainModel):
    home: TeamScore = Field(default_factory=TeamScore, alias="homeTeam")
    away: TeamScore = Field(default_factory=TeamScore, alias="awayTeam")
    winner: Optional[str] = None
    period: Optional[str] = None

    def display(self) -> str:
        return f"{self.home.as_int}-{self.away.as_int}"


# ── Fixture ─────────────────────────────────────────────────────────────
class Fixture(DomainModel):
    """One scheduled match, identified by its stable provider code."""
    code: str
    date: datetime
    status: str
    home_team: TeamRef
    away_team: TeamRef
    score: Score = Field(default_factory=Score)
    tournament_name: Optional[str] = None
    location: Optional[str] = None
    match_day: Optional[str] = None
    season: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def typed_status(self) -> FixtureStatus | None:
        return FixtureStatus.parse(self.status)

    @property
    def is_in_progress(self) -> bool:
        return self.status == FixtureStatus.IN_PROGRESS.value

    @property
    def is_finished(self) -> bool:
        return self.status == FixtureStatus.FINISHED.value

    @property
    def label(self) -> str:
        return f"{self.home_team.full_name} vs {self.away_team.full_name}"


# ── Poll outcome ────────────────────────────────────────────────────────
class PollOutcome(DomainModel):
    """What changed between two snapshots of the same fixture."""
    model_config = ConfigDict(frozen=True)

    status_changed: bool = False
    home_scored: bool = False
    away_scored: bool = False

    @property
    def has_goal(self) -> bool:
        return self.home_scored or self.away_scored

    @property
    def is_empty(self) -> bool:
        return not (self.status_changed or self.has_goal)
