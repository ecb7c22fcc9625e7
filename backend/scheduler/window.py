"""
Rolling window ingestion.

Pulls every calendar day from yesterday through eight days ahead, one
provider call per day, upserting each day's fixtures into the store, and
returns the fixtures that fall on today in the operating timezone.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterator

from shared.config import Settings, get_settings
from shared.models.domain import Fixture
from shared.store import FixtureStore
from shared.utils.logging import get_logger
from shared.utils.metrics import TODAY_FIXTURES, WINDOW_DURATION, WINDOW_REFRESHES, atrack_latency
from shared.utils.notifier import TelegramNotifier

from ingest.providers.base import FixtureProvider

logger = get_logger(__name__)

WINDOW_ERROR_CONTEXT = "window_refresh"


def window_days(today: date, days_back: int, days_ahead: int) -> Iterator[date]:
    """Calendar days [today - days_back, today + days_ahead], oldest first."""
    day = today - timedelta(days=days_back)
    last = today + timedelta(days=days_ahead)
    while day <= last:
        yield day
        day += timedelta(days=1)


class WindowScheduler:
    """Keeps the rolling fixture window fresh in the store."""

    def __init__(
        self,
        provider: FixtureProvider,
        store: FixtureStore,
        notifier: TelegramNotifier,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._provider = provider
        self._store = store
        self._notifier = notifier
        self._settings = settings or get_settings()
        self._clock = clock

    def today(self) -> date:
        return self._clock().astimezone(self._settings.tz).date()

    async def run(self) -> list[Fixture]:
        """
        Ingest the whole window and return today's fixtures.

        Fail-fast: the first provider or store error aborts the remaining days
        and the run returns an empty list, never a partial one.
        """
        today = self.today()
        today_fixtures: list[Fixture] = []
        ingested = 0

        try:
            async with atrack_latency(WINDOW_DURATION):
                for day in window_days(today, self._settings.window_days_back, self._settings.window_days_ahead):
                    fixtures = await self._provider.fetch(day)
                    if day == today:
                        today_fixtures.extend(fixtures)
                    await self._store.upsert_many(fixtures)
                    ingested += len(fixtures)
                    logger.debug("window_day_ingested", day=day.isoformat(), count=len(fixtures))
        except Exception as exc:
            logger.error("window_refresh_failed", error=str(exc), exc_info=True)
            WINDOW_REFRESHES.labels(result="error").inc()
            await self._notifier.report_error(str(exc), WINDOW_ERROR_CONTEXT)
            return []

        WINDOW_REFRESHES.labels(result="ok").inc()
        TODAY_FIXTURES.set(len(today_fixtures))
        logger.info("window_refreshed", today=today.isoformat(), ingested=ingested, today_count=len(today_fixtures))
        return today_fixtures
