"""Row-level security applied in front of any record store.

The rules are the storefront's RLS policies, evaluated for one principal:

- categories: anyone reads; admins write.
- products: anyone reads active rows; admins read everything and write.
  Only admins adjust stock; checkout does it through its system store.
- profiles: a user reads, creates and updates only their own row and can
  never grant themselves ``is_admin``.
- cart_items, favorites: owner only (admins bypass).
- orders: owner reads and creates; only admins update; nobody but admins
  deletes.
- order_items: visible through ownership of the parent order. Lines can
  only be added to an owned order that has none yet, and are never
  changed or deleted by shoppers.

As with Postgres RLS, reads and updates/deletes outside a policy silently
match no rows, while inserts that fail a policy raise ``StoreError(42501)``.
"""

from __future__ import annotations

from typing import Optional, Sequence

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.storefront_service.errors import INSUFFICIENT_PRIVILEGE, StoreError
from services.storefront_service.record_store.base import (
    Filter,
    RecordStore,
    Row,
    Sort,
    is_membership,
)

logger = get_logger(__name__)

OWNER_TABLES = {"cart_items", "favorites", "orders"}
ADMIN_WRITE_TABLES = {"categories", "products"}

_NOTHING = object()


def _narrow(filter: Optional[Filter], column: str, allowed: set) -> object:
    """Intersect ``filter[column]`` with ``allowed``; ``_NOTHING`` if empty."""
    narrowed = dict(filter or {})
    if column in narrowed:
        current = narrowed[column]
        values = set(current) if is_membership(current) else {current}
        allowed = allowed & values
    if not allowed:
        return _NOTHING
    narrowed[column] = sorted(allowed) if len(allowed) > 1 else next(iter(allowed))
    return narrowed


def _denied(table: str) -> StoreError:
    return StoreError(
        f'new row violates row-level security policy for table "{table}"',
        code=INSUFFICIENT_PRIVILEGE,
    )


class PolicyRecordStore(RecordStore):
    """Wrap ``inner`` so every call is evaluated as ``principal``."""

    def __init__(
        self,
        inner: RecordStore,
        principal: Optional[AuthUser],
        *,
        is_admin: bool = False,
    ):
        self.inner = inner
        self.principal = principal
        self.is_admin = is_admin or bool(principal and principal.is_service_role)

    @property
    def uid(self) -> Optional[str]:
        return self.principal.user_id if self.principal else None

    async def _own_order_ids(self) -> set:
        rows = await self.inner._fetch("orders", {"user_id": self.uid}, (), None)
        return {row["id"] for row in rows}

    async def _scope(self, table: str, filter: Optional[Filter], action: str) -> object:
        """Return the filter narrowed to visible rows, or ``_NOTHING``."""
        if self.is_admin:
            return dict(filter or {})

        if table == "categories":
            return dict(filter or {}) if action == "read" else _NOTHING

        if table == "products":
            if action != "read":
                return _NOTHING
            return _narrow(filter, "is_active", {True})

        if self.uid is None:
            return _NOTHING

        if table == "profiles":
            return _narrow(filter, "id", {self.uid})

        if table in OWNER_TABLES:
            if table == "orders" and action != "read":
                return _NOTHING
            return _narrow(filter, "user_id", {self.uid})

        if table == "order_items":
            if action != "read":
                return _NOTHING
            return _narrow(filter, "order_id", await self._own_order_ids())

        return _NOTHING

    async def _check_rows(self, table: str, rows: Sequence[Row]) -> None:
        """WITH CHECK for inserts/upserts."""
        if self.is_admin:
            return
        if table in ADMIN_WRITE_TABLES or self.uid is None:
            raise _denied(table)
        if table == "profiles":
            for row in rows:
                if row.get("id") != self.uid or row.get("is_admin"):
                    raise _denied(table)
        elif table in OWNER_TABLES:
            for row in rows:
                if row.get("user_id") != self.uid:
                    raise _denied(table)
        elif table == "order_items":
            owned = await self._own_order_ids()
            targets = {row.get("order_id") for row in rows}
            if not targets <= owned:
                raise _denied(table)
            # An order's lines are written once, together
            if await self.inner._fetch(table, {"order_id": sorted(targets)}, (), 1):
                raise _denied(table)
        else:
            raise _denied(table)

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
        scoped = await self._scope(table, filter, "read")
        if scoped is _NOTHING:
            return []
        return await self.inner._fetch(table, scoped, order_by, limit)

    async def _insert(self, table: str, rows: list[Row]) -> list[Row]:
        await self._check_rows(table, rows)
        return await self.inner._insert(table, rows)

    async def _update(self, table: str, patch: Row, filter: Filter) -> list[Row]:
        if table == "profiles" and "is_admin" in patch and not self.is_admin:
            raise _denied(table)
        scoped = await self._scope(table, filter, "update")
        if scoped is _NOTHING:
            logger.info("Update on %s matched no rows visible to %s", table, self.uid)
            return []
        return await self.inner._update(table, patch, scoped)

    async def _upsert(self, table: str, row: Row, conflict_keys: Sequence[str]) -> Row:
        await self._check_rows(table, [row])
        return await self.inner._upsert(table, row, conflict_keys)

    async def _delete(self, table: str, filter: Filter) -> None:
        scoped = await self._scope(table, filter, "delete")
        if scoped is _NOTHING:
            return
        await self.inner._delete(table, scoped)

    async def _adjust(
        self,
        table: str,
        column: str,
        delta: int,
        filter: Filter,
        minimum: Optional[int],
    ) -> Optional[Row]:
        if not self.is_admin:
            raise _denied(table)
        return await self.inner._adjust(table, column, delta, filter, minimum)
