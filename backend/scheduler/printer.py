"""
Presentation of tracker signals as structured log events.
Constructed once per process and passed to the components that report.
"""
from __future__ import annotations

from datetime import datetime

import structlog

from shared.models.domain import Fixture
from shared.models.enums import FixtureStatus
from shared.utils.logging import get_logger


class MatchPrinter:
    """Human-oriented event stream for fixture tracking."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._log = logger or get_logger("tracker.printer")

    def service_start(self, now: datetime) -> None:
        self._log.info("service_started", started_at=now.isoformat())

    def tracker_start(self, fixture: Fixture) -> None:
        self._log.info("tracker_started", code=fixture.code, fixture=fixture.label)

    def countdown(self, fixture: Fixture, minutes_left: int) -> None:
        self._log.info("tracker_countdown", code=fixture.code, fixture=fixture.label, minutes_left=minutes_left)

    def fixture_not_found(self, fixture: Fixture) -> None:
        self._log.warning("fixture_not_found", code=fixture.code, fixture=fixture.label)

    def fixture_header(self, fixture: Fixture) -> None:
        self._log.info("fixture_polled", code=fixture.code, fixture=fixture.label, score=fixture.score.display())

    def status_changed(self, fixture: Fixture) -> None:
        self._log.info("fixture_status_changed", code=fixture.code, status=fixture.status)

    def status_current(self, fixture: Fixture) -> None:
        self._log.debug("fixture_status", code=fixture.code, status=fixture.status)

    def goal(self, fixture: Fixture, side: str) -> None:
        team = fixture.home_team if side == "home" else fixture.away_team
        score = fixture.score.home if side == "home" else fixture.score.away
        self._log.info("goal_scored", code=fixture.code, side=side, team=team.full_name, total=score.as_int)

    def no_goals(self, fixture: Fixture) -> None:
        self._log.debug("no_goals", code=fixture.code)

    def fixture_finished(self, fixture: Fixture) -> None:
        self._log.info("fixture_finished", code=fixture.code, fixture=fixture.label, final_score=fixture.score.display())

    def no_fixtures_today(self) -> None:
        self._log.info("no_fixtures_today")

    def todays_fixtures(self, fixtures: list[Fixture]) -> None:
        self._log.info("todays_fixtures", count=len(fixtures))
        for fixture in fixtures:
            self.fixture_info(fixture)

    def fixture_info(self, fixture: Fixture) -> None:
        if fixture.status == FixtureStatus.PENDING.value:
            self._log.info(
                "fixture_scheduled",
                code=fixture.code,
                fixture=fixture.label,
                kickoff=fixture.date.isoformat(),
            )
        else:
            self._log.info(
                "fixture_state",
                code=fixture.code,
                fixture=fixture.label,
                status=fixture.status,
                score=fixture.score.display(),
            )
