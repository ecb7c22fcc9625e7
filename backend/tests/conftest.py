"""
Shared fixtures for the Match Tracker test suite.
"""
from __future__ import annotations

import os

os.environ.setdefault("MT_ENVIRONMENT", "test")

from datetime import datetime, timezone
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.config import Settings
from shared.models.domain import Fixture

KICKOFF = datetime(2024, 5, 10, 19, 0, tzinfo=timezone.utc)

FixtureFactory = Callable[..., Fixture]


def _build_fixture(
    code: str = "4001",
    status: str = "En juego",
    home: str | None = "0",
    away: str | None = "0",
    date: datetime = KICKOFF,
    home_name: str = "Real Madrid",
    away_name: str = "FC Barcelona",
) -> Fixture:
    return Fixture(
        code=code,
        date=date,
        status=status,
        home_team={"full_name": home_name},
        away_team={"full_name": away_name},
        score={"home": {"total": home}, "away": {"total": away}},
    )


@pytest.fixture
def make_fixture() -> FixtureFactory:
    return _build_fixture


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        telegram_enabled=False,
        metrics_enabled=False,
        provider_max_retries=1,
    )


@pytest.fixture
def provider() -> MagicMock:
    p = MagicMock()
    p.fetch = AsyncMock(return_value=[])
    return p


@pytest.fixture
def store() -> MagicMock:
    s = MagicMock()
    s.upsert_many = AsyncMock(return_value=None)
    s.get_by_code = AsyncMock(return_value=None)
    s.update_by_code = AsyncMock(return_value=None)
    return s


@pytest.fixture
def notifier() -> MagicMock:
    n = MagicMock()
    n.report_error = AsyncMock(return_value=None)
    n.send_startup = AsyncMock(return_value=None)
    n.send_shutdown = AsyncMock(return_value=None)
    return n


@pytest.fixture
def printer() -> MagicMock:
    return MagicMock()


def fixed_clock(moment: datetime) -> Callable[[], datetime]:
    return lambda: moment


@pytest.fixture
def clock_at() -> Callable[[datetime], Callable[[], datetime]]:
    return fixed_clock



@pytest.fixture
def kickoff() -> datetime:
    return KICKOFF
