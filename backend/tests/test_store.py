"""
Integration tests for FixtureStore against an in-memory sqlite database.

Run: pytest backend/tests/test_store.py -v
"""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from shared.errors import StoreError
from shared.models.orm import FixtureORM
from shared.store import FixtureStore
from shared.utils.database import DatabaseManager


@pytest_asyncio.fixture
async def db(settings):
    manager = DatabaseManager(settings)
    await manager.connect()
    await manager.create_all()
    yield manager
    await manager.disconnect()


@pytest.fixture
def fixture_store(db: DatabaseManager) -> FixtureStore:
    return FixtureStore(db)


async def _row_count(db: DatabaseManager) -> int:
    async with db.read_session() as session:
        return await session.scalar(select(func.count()).select_from(FixtureORM))


@pytest.mark.asyncio
async def test_upsert_then_get_round_trips(fixture_store, make_fixture) -> None:
    fixture = make_fixture(code="1", home="2", away="1")

    await fixture_store.upsert_many([fixture])
    stored = await fixture_store.get_by_code("1")

    assert stored is not None
    assert stored.code == "1"
    assert stored.status == "En juego"
    assert stored.score.home.total == "2"
    assert stored.home_team.full_name == "Real Madrid"
    assert stored.date == datetime(2024, 5, 10, 19, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_upsert_is_idempotent(fixture_store, db, make_fixture) -> None:
    fixtures = [make_fixture(code="1"), make_fixture(code="2")]

    await fixture_store.upsert_many(fixtures)
    await fixture_store.upsert_many(fixtures)

    assert await _row_count(db) == 2


@pytest.mark.asyncio
async def test_upsert_replaces_existing_row(fixture_store, make_fixture) -> None:
    await fixture_store.upsert_many([make_fixture(code="1", status="Pendiente")])
    await fixture_store.upsert_many([make_fixture(code="1", status="Finalizado", home="3")])

    stored = await fixture_store.get_by_code("1")
    assert stored.status == "Finalizado"
    assert stored.score.home.total == "3"


@pytest.mark.asyncio
async def test_upsert_last_duplicate_in_batch_wins(fixture_store, db, make_fixture) -> None:
    await fixture_store.upsert_many([make_fixture(code="1", home="0"), make_fixture(code="1", home="1")])

    assert await _row_count(db) == 1
    assert (await fixture_store.get_by_code("1")).score.home.total == "1"


@pytest.mark.asyncio
async def test_upsert_empty_is_noop(fixture_store, db) -> None:
    await fixture_store.upsert_many([])
    assert await _row_count(db) == 0


@pytest.mark.asyncio
async def test_get_missing_code_returns_none(fixture_store) -> None:
    assert await fixture_store.get_by_code("nope") is None


@pytest.mark.asyncio
async def test_update_by_code_overwrites_snapshot(fixture_store, make_fixture) -> None:
    await fixture_store.upsert_many([make_fixture(code="1", home="0", away="0")])

    await fixture_store.update_by_code(make_fixture(code="1", home="1", away="0"))

    stored = await fixture_store.get_by_code("1")
    assert stored.score.home.total == "1"
    assert stored.score.away.total == "0"


@pytest.mark.asyncio
async def test_update_missing_code_inserts_nothing(fixture_store, db, make_fixture) -> None:
    await fixture_store.update_by_code(make_fixture(code="ghost"))
    assert await _row_count(db) == 0


@pytest.mark.asyncio
async def test_database_failure_raises_store_error(make_fixture) -> None:
    session = MagicMock()
    session.execute.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))

    class _BrokenSession:
        async def __aenter__(self):
            return session

        async def __aexit__(self, *exc):
            return False

    db = MagicMock()
    db.dialect = "sqlite"
    db.write_session.return_value = _BrokenSession()

    with pytest.raises(StoreError):
        await FixtureStore(db).upsert_many([make_fixture()])
