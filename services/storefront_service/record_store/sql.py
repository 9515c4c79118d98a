"""Postgres-backed record store using SQLAlchemy Core over an async session.

Each public call runs in its own session and commits before returning, so
callers see the same per-request atomicity a hosted PostgREST gives them.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.storefront_service.errors import CONNECTION_FAILURE, StoreError
from services.storefront_service.record_store.base import (
    Filter,
    RecordStore,
    Row,
    Sort,
    is_membership,
)
from sqlalchemy import MetaData, Table, delete, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    return getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)


class SqlRecordStore(RecordStore):
    """Record store over the tables registered on ``metadata``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        metadata: Optional[MetaData] = None,
    ):
        if metadata is None:
            from libs.db.base import Base
            import services.storefront_service.models  # noqa: F401

            metadata = Base.metadata
        self.session_factory = session_factory
        self.metadata = metadata

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise StoreError(f'relation "{name}" does not exist', code="42P01")
        return table

    def _column(self, table: Table, name: str):
        if name not in table.c:
            raise StoreError(
                f"column {table.name}.{name} does not exist", code="42703"
            )
        return table.c[name]

    def _where(self, table: Table, filter: Optional[Filter]) -> list[Any]:
        clauses = []
        for name, value in (filter or {}).items():
            column = self._column(table, name)
            if is_membership(value):
                clauses.append(column.in_(list(value)))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)
        return clauses

    async def _execute(self, statement, params: Any = None) -> list[Row]:
        async with self.session_factory() as session:
            try:
                if params is None:
                    result = await session.execute(statement)
                else:
                    result = await session.execute(statement, params)
                rows = [dict(r._mapping) for r in result] if result.returns_rows else []
                await session.commit()
            except DBAPIError as e:
                await session.rollback()
                code = _sqlstate(e)
                if e.connection_invalidated or code is None:
                    code = code or CONNECTION_FAILURE
                logger.error("Record store statement failed [%s]: %s", code, e.orig)
                raise StoreError(str(e.orig), code=code) from e
        return rows

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    async def _fetch(
        self,
        table: str,
        filter: Optional[Filter],
        order_by: Sequence[Sort],
        limit: Optional[int],
    ) -> list[Row]:
        t = self._table(table)
        statement = select(t).where(*self._where(t, filter))
        for sort in order_by:
            column = self._column(t, sort.column)
            statement = statement.order_by(column.desc() if sort.descending else column.asc())
        if limit is not None:
            statement = statement.limit(limit)
        return await self._execute(statement)

    async def _insert(self, table: str, rows: list[Row]) -> list[Row]:
        t = self._table(table)
        for row in rows:
            for name in row:
                self._column(t, name)
        if len(rows) == 1:
            return await self._execute(insert(t).values(rows[0]).returning(*t.c))
        # executemany applies Python-side defaults per row
        await self._execute(insert(t), rows)
        return rows

    async def _update(self, table: str, patch: Row, filter: Filter) -> list[Row]:
        t = self._table(table)
        for name in patch:
            self._column(t, name)
        statement = (
            update(t)
            .where(*self._where(t, filter))
            .values(patch)
            .returning(*t.c)
        )
        return await self._execute(statement)

    async def _upsert(self, table: str, row: Row, conflict_keys: Sequence[str]) -> Row:
        t = self._table(table)
        for name in row:
            self._column(t, name)
        statement = pg_insert(t).values(row)
        overwrite = {
            name: statement.excluded[name] for name in row if name not in conflict_keys
        }
        if overwrite:
            if "updated_at" in t.c:
                overwrite["updated_at"] = utc_now()
            statement = statement.on_conflict_do_update(
                index_elements=list(conflict_keys), set_=overwrite
            )
        else:
            statement = statement.on_conflict_do_nothing(index_elements=list(conflict_keys))

        rows = await self._execute(statement.returning(*t.c))
        if rows:
            return rows[0]
        # DO NOTHING returns no row when the pair already existed
        return await self.select_one(table, {k: row[k] for k in conflict_keys})

    async def _delete(self, table: str, filter: Filter) -> None:
        t = self._table(table)
        await self._execute(delete(t).where(*self._where(t, filter)))

    async def _adjust(
        self,
        table: str,
        column: str,
        delta: int,
        filter: Filter,
        minimum: Optional[int],
    ) -> Optional[Row]:
        t = self._table(table)
        target = self._column(t, column)
        clauses = self._where(t, filter)
        if minimum is not None:
            clauses.append(target >= minimum)
        statement = (
            update(t)
            .where(*clauses)
            .values({column: target + delta})
            .returning(*t.c)
        )
        rows = await self._execute(statement)
        return rows[0] if rows else None
