"""
Backfill script for the Match Tracker.

Fetches the fixtures for today and the following days from the Unidad
Editorial API and upserts them into the fixtures table. Unlike the daily
window refresh it stops on the first error instead of reporting it, so a
failed run is visible from the exit code.

Usage:
    python -m backfill [days_ahead]
"""
from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from typing import Optional

from shared.config import Settings, get_settings
from shared.store import FixtureStore
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger, setup_logging

from ingest.providers.base import FixtureProvider
from ingest.providers.unidad_editorial import UnidadEditorialProvider
from scheduler.window import window_days

logger = get_logger(__name__)

DEFAULT_DAYS_AHEAD = 8


async def backfill(
    provider: FixtureProvider,
    store: FixtureStore,
    settings: Settings,
    days_ahead: int = DEFAULT_DAYS_AHEAD,
    today: Optional[datetime] = None,
) -> int:
    """Ingest today..today+days_ahead, one provider call per day. Returns the fixture count."""
    start = (today or datetime.now(settings.tz)).astimezone(settings.tz).date()
    total = 0
    for day in window_days(start, 0, days_ahead):
        logger.info("backfill_day", day=day.isoformat())
        fixtures = await provider.fetch(day)
        await store.upsert_many(fixtures)
        total += len(fixtures)
    return total


async def main(argv: list[str]) -> int:
    settings = get_settings()
    setup_logging("backfill")

    days_ahead = int(argv[0]) if argv else DEFAULT_DAYS_AHEAD

    db = DatabaseManager(settings)
    await db.connect()
    await db.create_all()
    provider = UnidadEditorialProvider(settings)
    await provider.start()

    try:
        total = await backfill(provider, FixtureStore(db), settings, days_ahead=days_ahead)
    except Exception as exc:
        logger.error("backfill_failed", error=str(exc), exc_info=True)
        return 1
    finally:
        await provider.close()
        await db.disconnect()

    logger.info("backfill_complete", fixtures=total, days=days_ahead + 1)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
