"""
Unit tests for the rolling window ingestion.

Run: pytest backend/tests/test_window.py -v
"""
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from shared.errors import ProviderError, StoreError
from scheduler.window import WINDOW_ERROR_CONTEXT, WindowScheduler, window_days

# 23:30 UTC on May 9 is already May 10 in Madrid.
NOW = datetime(2024, 5, 9, 23, 30, tzinfo=timezone.utc)
TODAY = date(2024, 5, 10)


@pytest.fixture
def window(provider, store, notifier, settings, clock_at) -> WindowScheduler:
    return WindowScheduler(provider, store, notifier, settings, clock=clock_at(NOW))


def test_window_days_spans_ten_days() -> None:
    days = list(window_days(TODAY, 1, 8))
    assert len(days) == 10
    assert days[0] == date(2024, 5, 9)
    assert days[-1] == date(2024, 5, 18)


def test_today_uses_operating_timezone(window: WindowScheduler) -> None:
    assert window.today() == TODAY


@pytest.mark.asyncio
async def test_run_fetches_each_day_once_and_returns_today(window, provider, store, make_fixture) -> None:
    today_fixtures = [make_fixture(code="1"), make_fixture(code="2", status="Pendiente")]
    other_day = [make_fixture(code="3")]

    async def fetch(day: date):
        return today_fixtures if day == TODAY else other_day

    provider.fetch.side_effect = fetch

    result = await window.run()

    assert result == today_fixtures
    assert provider.fetch.await_count == 10
    fetched = [c.args[0] for c in provider.fetch.await_args_list]
    assert fetched == list(window_days(TODAY, 1, 8))
    assert store.upsert_many.await_count == 10


@pytest.mark.asyncio
async def test_empty_days_are_still_upserted(window, provider, store) -> None:
    provider.fetch.return_value = []

    result = await window.run()

    assert result == []
    assert store.upsert_many.await_count == 10
    store.upsert_many.assert_awaited_with([])


@pytest.mark.asyncio
async def test_provider_error_aborts_remaining_days(window, provider, store, notifier, make_fixture) -> None:
    provider.fetch.side_effect = [
        [make_fixture(code="1")],
        [make_fixture(code="2")],
        ProviderError("timeout"),
    ]

    result = await window.run()

    assert result == []
    assert provider.fetch.await_count == 3
    assert store.upsert_many.await_count == 2
    notifier.report_error.assert_awaited_once_with("timeout", WINDOW_ERROR_CONTEXT)


@pytest.mark.asyncio
async def test_store_error_discards_collected_today(window, provider, store, notifier, make_fixture) -> None:
    provider.fetch.return_value = [make_fixture()]
    # Day 1 (yesterday) and day 2 (today) succeed, day 3 fails.
    store.upsert_many.side_effect = [None, None, StoreError("disk full")]

    result = await window.run()

    assert result == []
    assert provider.fetch.await_count == 3
    notifier.report_error.assert_awaited_once_with("disk full", "window_refresh")
