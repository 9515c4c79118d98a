"""Record store contract.

A record store is typed table access in the shape of a PostgREST client:
rows are plain dicts, filters are a conjunction of equality/membership
predicates, and joins attach related rows by foreign key. Every call either
returns a result or raises ``StoreError``; callers never assume success.

Each call is its own unit of work. There is no multi-statement transaction
visible to callers, so multi-step workflows must compensate on failure.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from services.storefront_service.errors import NO_ROWS, StoreError

Row = dict[str, Any]
Filter = Mapping[str, Any]


@dataclass(frozen=True)
class Sort:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class Join:
    """Attach rows of ``table`` whose ``remote_key`` equals the row's ``local_key``.

    With ``many=False`` the attached value is a single row (or None); with
    ``many=True`` it is a list. Joins nest through ``joins``.
    """

    alias: str
    table: str
    local_key: str
    remote_key: str = "id"
    many: bool = False
    joins: tuple["Join", ...] = ()
    order_by: tuple[Sort, ...] = field(default=())


def is_membership(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def row_matches(row: Mapping[str, Any], filter: Optional[Filter]) -> bool:
    """Evaluate a filter against a row. ``None`` values mean IS NULL."""
    if not filter:
        return True
    for column, expected in filter.items():
        actual = row.get(column)
        if is_membership(expected):
            if actual not in expected:
                return False
        elif expected is None:
            if actual is not None:
                return False
        elif actual != expected:
            return False
    return True


class RecordStore(abc.ABC):
    """Shared public surface; backends implement the underscore primitives."""

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def _fetch(
        self,
        table: str,
        filter: Optional[Filter],
        order_by: Sequence[Sort],
        limit: Optional[int],
    ) -> list[Row]:
        ...

    @abc.abstractmethod
    async def _insert(self, table: str, rows: list[Row]) -> list[Row]:
        ...

    @abc.abstractmethod
    async def _update(self, table: str, patch: Row, filter: Filter) -> list[Row]:
        ...

    @abc.abstractmethod
    async def _upsert(self, table: str, row: Row, conflict_keys: Sequence[str]) -> Row:
        ...

    @abc.abstractmethod
    async def _delete(self, table: str, filter: Filter) -> None:
        ...

    @abc.abstractmethod
    async def _adjust(
        self,
        table: str,
        column: str,
        delta: int,
        filter: Filter,
        minimum: Optional[int],
    ) -> Optional[Row]:
        """Atomically add ``delta`` to ``column`` where the filter matches.

        When ``minimum`` is given the row only changes if ``column >= minimum``
        at the moment of the write; otherwise None is returned.
        """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def select(
        self,
        table: str,
        filter: Optional[Filter] = None,
        *,
        order_by: Sequence[Sort] = (),
        joins: Sequence[Join] = (),
        limit: Optional[int] = None,
    ) -> list[Row]:
        rows = await self._fetch(table, filter, order_by, limit)
        return await self.attach(rows, joins)

    async def select_one(
        self,
        table: str,
        filter: Filter,
        *,
        joins: Sequence[Join] = (),
    ) -> Row:
        """Return exactly one row or raise ``StoreError(code=PGRST116)``."""
        rows = await self.select(table, filter, joins=joins, limit=2)
        if len(rows) != 1:
            raise StoreError(
                "JSON object requested, multiple (or no) rows returned",
                code=NO_ROWS,
                details=f"The result contains {len(rows)} rows",
            )
        return rows[0]

    async def attach(self, rows: list[Row], joins: Iterable[Join]) -> list[Row]:
        for join in joins:
            keys = {row.get(join.local_key) for row in rows} - {None}
            related = []
            if keys:
                related = await self.select(
                    join.table,
                    {join.remote_key: sorted(keys)},
                    order_by=join.order_by,
                    joins=join.joins,
                )
            for row in rows:
                key = row.get(join.local_key)
                matches = [r for r in related if key is not None and r.get(join.remote_key) == key]
                if join.many:
                    row[join.alias] = matches
                else:
                    row[join.alias] = matches[0] if matches else None
        return rows

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, table: str, row: Row, *, joins: Sequence[Join] = ()) -> Row:
        inserted = await self._insert(table, [dict(row)])
        return (await self.attach(inserted, joins))[0]

    async def insert_many(self, table: str, rows: Sequence[Row]) -> None:
        if rows:
            await self._insert(table, [dict(r) for r in rows])

    async def update(self, table: str, patch: Row, filter: Filter) -> list[Row]:
        return await self._update(table, dict(patch), filter)

    async def update_one(
        self,
        table: str,
        patch: Row,
        filter: Filter,
        *,
        joins: Sequence[Join] = (),
    ) -> Row:
        rows = await self._update(table, dict(patch), filter)
        if len(rows) != 1:
            raise StoreError(
                "JSON object requested, multiple (or no) rows returned",
                code=NO_ROWS,
                details=f"The result contains {len(rows)} rows",
            )
        return (await self.attach(rows, joins))[0]

    async def upsert(
        self,
        table: str,
        row: Row,
        conflict_keys: Sequence[str],
        *,
        joins: Sequence[Join] = (),
    ) -> Row:
        """Insert, or overwrite the non-key fields of the row matching ``conflict_keys``."""
        upserted = await self._upsert(table, dict(row), tuple(conflict_keys))
        return (await self.attach([upserted], joins))[0]

    async def delete(self, table: str, filter: Filter) -> None:
        await self._delete(table, filter)

    async def decrement(
        self, table: str, column: str, amount: int, filter: Filter
    ) -> Optional[Row]:
        """``column = column - amount WHERE <filter> AND column >= amount``.

        Returns the updated row, or None when the guard rejected the write.
        """
        if amount <= 0:
            raise ValueError("decrement amount must be positive")
        return await self._adjust(table, column, -amount, filter, amount)

    async def increment(
        self, table: str, column: str, amount: int, filter: Filter
    ) -> Optional[Row]:
        if amount <= 0:
            raise ValueError("increment amount must be positive")
        return await self._adjust(table, column, amount, filter, None)
