"""
Fixture store: durable keyed storage for fixtures.
Every write is keyed by fixture code (bulk upsert, update-by-code).
"""
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from shared.errors import StoreError
from shared.models.domain import Fixture
from shared.models.orm import FixtureORM, fixture_row
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger

logger = get_logger(__name__)

_UPSERT_COLUMNS = (
    "date",
    "status",
    "home_team",
    "away_team",
    "score",
    "tournament_name",
    "location",
    "match_day",
    "season",
)


class FixtureStore:
    """SQLAlchemy-backed fixture repository."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    def _insert(self) -> Any:
        if self._db.dialect == "sqlite":
            return sqlite_insert(FixtureORM)
        return pg_insert(FixtureORM)

    async def upsert_many(self, fixtures: Sequence[Fixture]) -> None:
        """Insert or replace fixtures by code. Re-running with the same input is a no-op."""
        if not fixtures:
            return
        # Last occurrence wins when the provider repeats a code within one batch.
        rows = list({f.code: fixture_row(f) for f in fixtures}.values())
        stmt = self._insert().values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[FixtureORM.code],
            set_={**{col: stmt.excluded[col] for col in _UPSERT_COLUMNS}, "updated_at": func.now()},
        )
        try:
            async with self._db.write_session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"upsert of {len(rows)} fixtures failed: {exc}") from exc
        logger.debug("fixtures_upserted", count=len(rows))

    async def get_by_code(self, code: str) -> Fixture | None:
        """Point lookup; a missing code is not an error."""
        try:
            async with self._db.read_session() as session:
                row = await session.scalar(select(FixtureORM).where(FixtureORM.code == code))
        except SQLAlchemyError as exc:
            raise StoreError(f"lookup of fixture {code} failed: {exc}") from exc
        return row.to_domain() if row is not None else None

    async def update_by_code(self, fixture: Fixture) -> None:
        """Replace the stored row for fixture.code with the given snapshot."""
        values = fixture_row(fixture)
        values.pop("code")
        stmt = update(FixtureORM).where(FixtureORM.code == fixture.code).values(**values)
        try:
            async with self._db.write_session() as session:
                result = await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"update of fixture {fixture.code} failed: {exc}") from exc
        if result.rowcount == 0:
            logger.warning("fixture_update_missed", code=fixture.code)
