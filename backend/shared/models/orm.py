"""
SQLAlchemy 2.0 ORM models for the Match Tracker.
One table: fixtures, keyed by the provider's stable fixture code.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shared.models.domain import Fixture


class Base(DeclarativeBase):
    pass


class FixtureORM(Base):
    __tablename__ = "fixtures"

    code: Mapped[str] = mapped_column(String(64), primary_key=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    home_team: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    away_team: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    score: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    tournament_name: Mapped[Optional[str]] = mapped_column(String(200))
    location: Mapped[Optional[str]] = mapped_column(String(200))
    match_day: Mapped[Optional[str]] = mapped_column(String(20))
    season: Mapped[Optional[str]] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def to_domain(self) -> Fixture:
        return Fixture.model_validate(
            {
                "code": self.code,
                "date": self.date,
                "status": self.status,
                "home_team": self.home_team,
                "away_team": self.away_team,
                "score": self.score,
                "tournament_name": self.tournament_name,
                "location": self.location,
                "match_day": self.match_day,
                "season": self.season,
            }
        )


def fixture_row(fixture: Fixture) -> dict[str, Any]:
    """Column values for a fixture, as used by inserts and updates."""
    # Stored in UTC; sqlite drops tzinfo on write.
    return {
        "code": fixture.code,
        "date": fixture.date.astimezone(timezone.utc),
        "status": fixture.status,
        "home_team": fixture.home_team.model_dump(mode="json"),
        "away_team": fixture.away_team.model_dump(mode="json"),
        "score": fixture.score.model_dump(mode="json"),
        "tournament_name": fixture.tournament_name,
        "location": fixture.location,
        "match_day": fixture.match_day,
        "season": fixture.season,
    }
