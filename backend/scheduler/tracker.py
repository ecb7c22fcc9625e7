"""
Live tracking of a single fixture.

One LiveTracker owns one per-minute job. Before kickoff each tick only counts
down. From kickoff on, each tick fetches today's fixtures, diffs the matching
entry against the last persisted snapshot, reports what changed and persists
the fetched snapshot. The tracker stops itself once it has persisted a
Finished snapshot; that is the only way out.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from shared.config import Settings, get_settings
from shared.models.domain import Fixture, PollOutcome
from shared.models.enums import TickOutcome, TrackerState
from shared.store import FixtureStore
from shared.utils.logging import fixture_context, get_logger
from shared.utils.metrics import ACTIVE_TRACKERS, GOALS_DETECTED, STATUS_CHANGES, TRACKER_TICKS
from shared.utils.notifier import TelegramNotifier

from ingest.providers.base import FixtureProvider
from scheduler.engine.diff import diff_fixtures
from scheduler.engine.jobs import JobRegistry, TrackingJob
from scheduler.printer import MatchPrinter

logger = get_logger(__name__)

TRACKER_JOB_PREFIX = "tracker:"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def tracker_job_id(code: str) -> str:
    return f"{TRACKER_JOB_PREFIX}{code}"


class LiveTracker:
    """Per-fixture polling job: Waiting -> Polling -> Stopped."""

    def __init__(
        self,
        fixture: Fixture,
        provider: FixtureProvider,
        store: FixtureStore,
        notifier: TelegramNotifier,
        printer: MatchPrinter,
        registry: JobRegistry,
        settings: Settings | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._fixture = fixture
        self._provider = provider
        self._store = store
        self._notifier = notifier
        self._printer = printer
        self._registry = registry
        self._settings = settings or get_settings()
        self._clock = clock
        self._job: Optional[TrackingJob] = None
        self._stopped = False
        self._last_known = fixture

    @property
    def code(self) -> str:
        return self._fixture.code

    @property
    def job(self) -> Optional[TrackingJob]:
        return self._job

    @property
    def state(self) -> TrackerState:
        if self._stopped:
            return TrackerState.STOPPED
        if self._clock() < self._fixture.date:
            return TrackerState.WAITING
        return TrackerState.POLLING

    def start(self) -> TrackingJob:
        """Schedule the per-minute job. Ticks begin on the next scheduler fire."""
        if self._job is not None:
            return self._job
        self._job = self._registry.schedule(
            tracker_job_id(self.code),
            self._settings.tracker_cron,
            self.tick,
            name=f"Live tracker {self._fixture.label}",
        )
        self._printer.tracker_start(self._fixture)
        self._job.start()
        ACTIVE_TRACKERS.inc()
        return self._job

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        if self._job is not None:
            self._job.stop()
            ACTIVE_TRACKERS.dec()
        logger.info("tracker_stopped", code=self.code)

    async def tick(self) -> TickOutcome:
        """One scheduled invocation. Never raises for I/O failures."""
        if self._stopped:
            return TickOutcome.SKIPPED
        with fixture_context(self.code, self._fixture.label):
            return await self._tick()

    async def _tick(self) -> TickOutcome:
        now = self._clock()
        if now < self._fixture.date:
            minutes_left = int((self._fixture.date - now).total_seconds() // 60)
            self._printer.countdown(self._fixture, minutes_left)
            TRACKER_TICKS.labels(outcome=TickOutcome.COUNTDOWN.value).inc()
            return TickOutcome.COUNTDOWN

        try:
            outcome = await self._poll(now)
        except Exception as exc:
            logger.error("tracker_tick_error", error=str(exc), exc_info=True)
            TRACKER_TICKS.labels(outcome=TickOutcome.ERROR.value).inc()
            await self._notifier.report_error(str(exc), f"Real-time tracker - {self._fixture.label}")
            return TickOutcome.ERROR

        TRACKER_TICKS.labels(outcome=outcome.value).inc()
        return outcome

    async def _poll(self, now: datetime) -> TickOutcome:
        today = now.astimezone(self._settings.tz).date()
        fixtures = await self._provider.fetch(today)
        live = next((f for f in fixtures if f.code == self.code), None)
        if live is None:
            self._printer.fixture_not_found(self._fixture)
            return TickOutcome.NOT_FOUND

        previous = await self._store.get_by_code(self.code)
        if previous is None:
            logger.warning("fixture_missing_from_store")
            previous = self._last_known

        outcome = diff_fixtures(previous, live)
        self._report(live, outcome)

        await self._store.update_by_code(live)
        self._last_known = live

        if live.is_finished:
            self._printer.fixture_finished(live)
            self.stop()
            return TickOutcome.FINISHED
        return TickOutcome.UPDATED

    def _report(self, live: Fixture, outcome: PollOutcome) -> None:
        self._printer.fixture_header(live)

        if outcome.status_changed:
            STATUS_CHANGES.labels(status=live.status).inc()
            self._printer.status_changed(live)
        else:
            self._printer.status_current(live)

        if outcome.home_scored:
            GOALS_DETECTED.labels(side="home").inc()
            self._printer.goal(live, "home")
        if outcome.away_scored:
            GOALS_DETECTED.labels(side="away").inc()
            self._printer.goal(live, "away")
        if not outcome.has_goal:
            self._printer.no_goals(live)
