"""In-process record store built from SQLAlchemy table metadata.

Column defaults, NOT NULL, unique constraints, foreign keys (with their
ON DELETE behaviour) and check constraints carrying an ``info["check"]``
predicate are enforced the way Postgres would, so workflows tested here
fail in the same places they fail against the database.

Every call yields to the event loop once before touching state, which
models the network round trip; the mutation itself then runs without
suspension, so single calls are atomic with respect to other tasks.
"""

from __future__ import annotations

import asyncio
import copy
from decimal import Decimal
from typing import Any, Optional, Sequence

from libs.common.logging import get_logger
from services.storefront_service.errors import (
    CHECK_VIOLATION,
    FOREIGN_KEY_VIOLATION,
    NOT_NULL_VIOLATION,
    UNIQUE_VIOLATION,
    StoreError,
)
from services.storefront_service.record_store.base import (
    Filter,
    RecordStore,
    Row,
    Sort,
    row_matches,
)
from sqlalchemy import CheckConstraint, MetaData, Numeric, Table, UniqueConstraint

logger = get_logger(__name__)


def _default_for(column) -> Any:
    default = column.default
    if default is None:
        return None
    if default.is_callable:
        return default.arg(None)
    return copy.deepcopy(default.arg)


def _normalise(column, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(column.type, Numeric) and column.type.scale is not None:
        if isinstance(value, float):
            value = str(value)
        return Decimal(value).quantize(Decimal(1).scaleb(-column.type.scale))
    return value


def _sort_key(column: str):
    def key(row: Row):
        value = row.get(column)
        return (value is None, value if value is not None else 0)

    return key


class MemoryRecordStore(RecordStore):
    """Tables held in dicts keyed by primary key, in insertion order."""

    def __init__(self, metadata: Optional[MetaData] = None):
        if metadata is None:
            from libs.db.base import Base
            import services.storefront_service.models  # noqa: F401

            metadata = Base.metadata
        self.metadata = metadata
        self._rows: dict[str, dict[Any, Row]] = {name: {} for name in metadata.tables}

    # ------------------------------------------------------------------
    # Schema helpers
    # ------------------------------------------------------------------

    def _table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise StoreError(f'relation "{name}" does not exist', code="42P01")
        return table

    def _pk(self, table: Table) -> str:
        return list(table.primary_key.columns)[0].name

    def _check_columns(self, table: Table, row: Row) -> None:
        for key in row:
            if key not in table.c:
                raise StoreError(
                    f"Could not find the '{key}' column of '{table.name}'",
                    code="PGRST204",
                )

    def _unique_sets(self, table: Table) -> list[tuple[str, ...]]:
        sets = [tuple(c.name for c in table.primary_key.columns)]
        for constraint in table.constraints:
            if isinstance(constraint, UniqueConstraint):
                sets.append(tuple(c.name for c in constraint.columns))
        for column in table.columns:
            if column.unique:
                sets.append((column.name,))
        return sets

    def _validate(self, table: Table, row: Row, *, exclude_pk: Any = None) -> None:
        for column in table.columns:
            if not column.nullable and row.get(column.name) is None:
                raise StoreError(
                    f'null value in column "{column.name}" of relation "{table.name}" '
                    "violates not-null constraint",
                    code=NOT_NULL_VIOLATION,
                )

        for constraint in table.constraints:
            predicate = constraint.info.get("check")
            if isinstance(constraint, CheckConstraint) and predicate is not None:
                if not predicate(row):
                    raise StoreError(
                        f'new row for relation "{table.name}" violates check '
                        f'constraint "{constraint.name}"',
                        code=CHECK_VIOLATION,
                    )

        for fk in table.foreign_keys:
            value = row.get(fk.parent.name)
            if value is None:
                continue
            target = fk.column.table.name
            if not any(r.get(fk.column.name) == value for r in self._rows[target].values()):
                raise StoreError(
                    f'insert or update on table "{table.name}" violates foreign key '
                    f'constraint on "{fk.parent.name}"',
                    code=FOREIGN_KEY_VIOLATION,
                    details=f"Key ({fk.parent.name})=({value}) is not present in table \"{target}\".",
                )

        for keys in self._unique_sets(table):
            values = tuple(row.get(k) for k in keys)
            if any(v is None for v in values):
                continue
            for existing_pk, existing in self._rows[table.name].items():
                if existing_pk == exclude_pk:
                    continue
                if tuple(existing.get(k) for k in keys) == values:
                    raise StoreError(
                        f'duplicate key value violates unique constraint on "{table.name}"',
                        code=UNIQUE_VIOLATION,
                        details=f"Key ({', '.join(keys)}) already exists.",
                    )

    def _build(self, table: Table, row: Row) -> Row:
        self._check_columns(table, row)
        built = {}
        for column in table.columns:
            if column.name in row:
                built[column.name] = _normalise(column, row[column.name])
            else:
                built[column.name] = _default_for(column)
        return built

    def _apply_patch(self, table: Table, row: Row, patch: Row) -> Row:
        updated = dict(row)
        for key, value in patch.items():
            updated[key] = _normalise(table.c[key], value)
        for column in table.columns:
            onupdate = column.onupdate
            if onupdate is not None and column.name not in patch:
                updated[column.name] = onupdate.arg(None) if onupdate.is_callable else onupdate.arg
        return updated

    def _matching(self, table: Table, filter: Optional[Filter]) -> list[tuple[Any, Row]]:
        if filter:
            self._check_columns(table, dict(filter))
        return [
            (pk, row)
            for pk, row in self._rows[table.name].items()
            if row_matches(row, filter)
        ]

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
        await asyncio.sleep(0)
        t = self._table(table)
        rows = [copy.deepcopy(row) for _, row in self._matching(t, filter)]
        for sort in reversed(order_by):
            # NULLS LAST ascending, NULLS FIRST descending, as Postgres does
            rows.sort(key=_sort_key(sort.column), reverse=sort.descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def _insert(self, table: str, rows: list[Row]) -> list[Row]:
        await asyncio.sleep(0)
        t = self._table(table)
        pk = self._pk(t)
        staged: dict[Any, Row] = {}
        for row in rows:
            built = self._build(t, row)
            self._validate(t, built)
            if built[pk] in staged:
                raise StoreError("duplicate key value violates unique constraint", code=UNIQUE_VIOLATION)
            staged[built[pk]] = built
        # All rows validated before any is stored, as a multi-row INSERT would
        self._rows[table].update(staged)
        return [copy.deepcopy(r) for r in staged.values()]

    async def _update(self, table: str, patch: Row, filter: Filter) -> list[Row]:
        await asyncio.sleep(0)
        t = self._table(table)
        self._check_columns(t, patch)
        staged = []
        for pk, row in self._matching(t, filter):
            updated = self._apply_patch(t, row, patch)
            self._validate(t, updated, exclude_pk=pk)
            staged.append((pk, updated))
        for pk, updated in staged:
            self._rows[table][pk] = updated
        return [copy.deepcopy(r) for _, r in staged]

    async def _upsert(self, table: str, row: Row, conflict_keys: Sequence[str]) -> Row:
        await asyncio.sleep(0)
        t = self._table(table)
        self._check_columns(t, row)
        target = {k: row.get(k) for k in conflict_keys}
        existing = self._matching(t, target)
        if existing:
            pk, current = existing[0]
            patch = {k: v for k, v in row.items() if k not in conflict_keys}
            updated = self._apply_patch(t, current, patch)
            self._validate(t, updated, exclude_pk=pk)
            self._rows[table][pk] = updated
            return copy.deepcopy(updated)

        built = self._build(t, row)
        self._validate(t, built)
        self._rows[table][built[self._pk(t)]] = built
        return copy.deepcopy(built)

    async def _delete(self, table: str, filter: Filter) -> None:
        await asyncio.sleep(0)
        t = self._table(table)
        self._delete_rows(t, [pk for pk, _ in self._matching(t, filter)])

    def _delete_rows(self, table: Table, pks: list[Any]) -> None:
        if not pks:
            return
        removed = [self._rows[table.name][pk] for pk in pks]

        # Resolve referencing rows first so a RESTRICT failure leaves state intact
        for other in self.metadata.tables.values():
            for fk in other.foreign_keys:
                if fk.column.table is not table:
                    continue
                values = {r[fk.column.name] for r in removed}
                referencing = [
                    pk for pk, r in self._rows[other.name].items()
                    if r.get(fk.parent.name) in values
                ]
                if not referencing:
                    continue
                ondelete = (fk.ondelete or "").upper()
                if ondelete == "CASCADE":
                    self._delete_rows(other, referencing)
                elif ondelete == "SET NULL":
                    for pk in referencing:
                        self._rows[other.name][pk][fk.parent.name] = None
                else:
                    raise StoreError(
                        f'update or delete on table "{table.name}" violates foreign key '
                        f'constraint on table "{other.name}"',
                        code=FOREIGN_KEY_VIOLATION,
                    )

        for pk in pks:
            self._rows[table.name].pop(pk, None)

    async def _adjust(
        self,
        table: str,
        column: str,
        delta: int,
        filter: Filter,
        minimum: Optional[int],
    ) -> Optional[Row]:
        await asyncio.sleep(0)
        t = self._table(table)
        self._check_columns(t, {column: None})
        for pk, row in self._matching(t, filter):
            if minimum is not None and row[column] < minimum:
                continue
            updated = self._apply_patch(t, row, {column: row[column] + delta})
            self._validate(t, updated, exclude_pk=pk)
            self._rows[table][pk] = updated
            return copy.deepcopy(updated)
        return None
