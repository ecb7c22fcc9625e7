"""
Tracking scheduler service for the Match Tracker.
Refreshes the rolling fixture window at startup and daily, and spawns one
live tracker per fixture that is already in progress when the window runs.
"""
from __future__ import annotations

import asyncio
import signal
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from shared.config import Settings, get_settings
from shared.models.domain import Fixture
from shared.store import FixtureStore
from shared.utils.database import DatabaseManager
from shared.utils.health_server import start_health_server
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server
from shared.utils.notifier import TelegramNotifier

from ingest.providers.base import FixtureProvider
from ingest.providers.unidad_editorial import UnidadEditorialProvider
from scheduler.engine.jobs import JobRegistry, TrackingJob
from scheduler.printer import MatchPrinter
from scheduler.tracker import TRACKER_JOB_PREFIX, Clock, LiveTracker
from scheduler.window import WindowScheduler

logger = get_logger(__name__)

WINDOW_JOB_ID = "window_refresh"

# Retry connection on startup (e.g. DB not ready yet in Docker)
CONNECT_RETRY_ATTEMPTS = 10
CONNECT_RETRY_BASE_DELAY_S = 2.0


class TrackingOrchestrator:
    """
    Wires the window refresh and the live trackers together:
    1. Runs the window ingestion once and blocks on it
    2. Registers the daily window job
    3. Starts a LiveTracker for every today's fixture already in progress
    4. Never tracks the same fixture code twice in its lifetime
    """

    def __init__(
        self,
        provider: FixtureProvider,
        store: FixtureStore,
        notifier: TelegramNotifier,
        printer: MatchPrinter,
        registry: JobRegistry,
        settings: Settings | None = None,
        window: WindowScheduler | None = None,
        clock: Clock = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._provider = provider
        self._store = store
        self._notifier = notifier
        self._printer = printer
        self._registry = registry
        self._settings = settings or get_settings()
        self._clock = clock
        self._window = window or WindowScheduler(provider, store, notifier, self._settings, clock=clock)
        self._trackers: dict[str, LiveTracker] = {}
        self._window_job: Optional[TrackingJob] = None

    @property
    def trackers(self) -> dict[str, LiveTracker]:
        return dict(self._trackers)

    @property
    def window_job(self) -> Optional[TrackingJob]:
        return self._window_job

    async def start(self) -> list[LiveTracker]:
        """Run the first window refresh, register the daily job, spawn trackers."""
        self._printer.service_start(self._clock().astimezone(self._settings.tz))
        self._registry.start()

        today_fixtures = await self._window.run()

        self._window_job = self._registry.schedule(
            WINDOW_JOB_ID,
            self._settings.window_cron,
            self.refresh,
            name="Daily window refresh",
        )
        self._window_job.start()

        return self._promote(today_fixtures)

    async def refresh(self) -> list[LiveTracker]:
        """Daily job body: same ingestion and promotion as at startup."""
        return self._promote(await self._window.run())

    def _promote(self, fixtures: list[Fixture]) -> list[LiveTracker]:
        if not fixtures:
            self._printer.no_fixtures_today()
            return []

        self._printer.todays_fixtures(fixtures)

        # Pending fixtures are not tracked even if they kick off later today.
        started: list[LiveTracker] = []
        for fixture in fixtures:
            if not fixture.is_in_progress or fixture.code in self._trackers:
                continue
            tracker = LiveTracker(
                fixture,
                provider=self._provider,
                store=self._store,
                notifier=self._notifier,
                printer=self._printer,
                registry=self._registry,
                settings=self._settings,
                clock=self._clock,
            )
            self._trackers[fixture.code] = tracker
            tracker.start()
            started.append(tracker)

        logger.info("trackers_promoted", started=len(started), total=len(self._trackers))
        return started

    def stop(self) -> None:
        """Stop every timer. In-flight ticks are not awaited."""
        self._registry.shutdown()


async def _connect_with_retry(connect_fn: Callable[[], Awaitable[None]], name: str) -> None:
    """Call async connect_fn(); retry with exponential backoff on failure."""
    for attempt in range(1, CONNECT_RETRY_ATTEMPTS + 1):
        try:
            await connect_fn()
            return
        except Exception as exc:
            if attempt == CONNECT_RETRY_ATTEMPTS:
                raise
            delay = CONNECT_RETRY_BASE_DELAY_S * (2 ** (attempt - 1))
            logger.warning(
                "connect_retry",
                name=name,
                attempt=attempt,
                max_attempts=CONNECT_RETRY_ATTEMPTS,
                delay_s=delay,
                error=str(exc),
            )
            await asyncio.sleep(delay)


async def main() -> None:
    """Tracker service entrypoint."""
    settings = get_settings()
    setup_logging("tracker")
    start_metrics_server()

    db = DatabaseManager(settings)
    await _connect_with_retry(db.connect, "Database")
    await db.create_all()

    provider = UnidadEditorialProvider(settings)
    await provider.start()

    notifier = TelegramNotifier(settings)
    registry = JobRegistry(timezone=settings.tz)
    orchestrator = TrackingOrchestrator(
        provider=provider,
        store=FixtureStore(db),
        notifier=notifier,
        printer=MatchPrinter(),
        registry=registry,
        settings=settings,
    )
    start_health_server(
        "tracker",
        lambda: {"active_trackers": len(registry.running_ids(TRACKER_JOB_PREFIX))},
    )

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except (ValueError, OSError, RuntimeError, NotImplementedError) as exc:
            logger.warning("signal_handler_unavailable", signal=sig, error=str(exc))

    await notifier.send_startup()
    logger.info("tracker_service_started", instance_id=settings.instance_id)

    try:
        await orchestrator.start()
        await shutdown.wait()
    finally:
        orchestrator.stop()
        await provider.close()
        await notifier.send_shutdown()
        await db.disconnect()
        logger.info("tracker_service_stopped")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
