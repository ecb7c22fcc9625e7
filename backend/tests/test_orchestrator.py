"""
Unit tests for the tracking orchestrator: promotion of today's fixtures to live trackers.

Run: pytest backend/tests/test_orchestrator.py -v
"""
from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

from scheduler.engine.jobs import JobRegistry
from scheduler.service import WINDOW_JOB_ID, TrackingOrchestrator


@pytest.fixture
def scheduler() -> MagicMock:
    return MagicMock()


@pytest.fixture
def registry(scheduler: MagicMock) -> JobRegistry:
    return JobRegistry(scheduler=scheduler, timezone=ZoneInfo("Europe/Madrid"))


@pytest.fixture
def window() -> MagicMock:
    w = MagicMock()
    w.run = AsyncMock(return_value=[])
    return w


@pytest.fixture
def orchestrator(provider, store, notifier, printer, registry, settings, window, kickoff, clock_at):
    return TrackingOrchestrator(
        provider=provider,
        store=store,
        notifier=notifier,
        printer=printer,
        registry=registry,
        settings=settings,
        window=window,
        clock=clock_at(kickoff + timedelta(minutes=20)),
    )


@pytest.mark.asyncio
async def test_only_in_progress_fixtures_are_tracked(orchestrator, window, registry, printer, make_fixture) -> None:
    live = make_fixture(code="1", status="En juego")
    pending = make_fixture(code="2", status="Pendiente")
    done = make_fixture(code="3", status="Finalizado")
    window.run.return_value = [live, pending, done]

    started = await orchestrator.start()

    assert [t.code for t in started] == ["1"]
    assert set(orchestrator.trackers) == {"1"}
    assert registry.running_ids("tracker:") == ["tracker:1"]
    printer.todays_fixtures.assert_called_once_with([live, pending, done])


@pytest.mark.asyncio
async def test_start_registers_daily_window_job(orchestrator, scheduler, registry, settings) -> None:
    await orchestrator.start()

    assert orchestrator.window_job is not None
    assert orchestrator.window_job.running
    assert orchestrator.window_job.schedule == settings.window_cron
    assert WINDOW_JOB_ID in registry.running_ids()
    added_ids = [c.kwargs["id"] for c in scheduler.add_job.call_args_list]
    assert added_ids == [WINDOW_JOB_ID]


@pytest.mark.asyncio
async def test_empty_day_spawns_nothing(orchestrator, printer) -> None:
    started = await orchestrator.start()

    assert started == []
    assert orchestrator.trackers == {}
    printer.no_fixtures_today.assert_called_once()
    printer.todays_fixtures.assert_not_called()


@pytest.mark.asyncio
async def test_refresh_never_tracks_a_code_twice(orchestrator, window, registry, make_fixture) -> None:
    window.run.return_value = [make_fixture(code="1")]
    await orchestrator.start()

    window.run.return_value = [make_fixture(code="1"), make_fixture(code="5")]
    started = await orchestrator.refresh()

    assert [t.code for t in started] == ["5"]
    assert sorted(registry.running_ids("tracker:")) == ["tracker:1", "tracker:5"]


@pytest.mark.asyncio
async def test_finished_tracker_is_not_restarted_by_refresh(orchestrator, window, make_fixture) -> None:
    window.run.return_value = [make_fixture(code="1")]
    await orchestrator.start()
    orchestrator.trackers["1"].stop()

    started = await orchestrator.refresh()

    assert started == []


@pytest.mark.asyncio
async def test_failed_window_run_spawns_nothing(orchestrator, window, printer) -> None:
    # WindowScheduler.run reports its own errors and hands back an empty list.
    window.run.return_value = []
    await orchestrator.start()
    assert await orchestrator.refresh() == []
    assert printer.no_fixtures_today.call_count == 2


@pytest.mark.asyncio
async def test_stop_shuts_down_every_job(orchestrator, window, scheduler, registry, make_fixture) -> None:
    window.run.return_value = [make_fixture(code="1"), make_fixture(code="2")]
    await orchestrator.start()

    orchestrator.stop()

    assert registry.running_ids() == []
    assert scheduler.remove_job.call_count == 3
    scheduler.shutdown.assert_called_once_with(wait=False)
