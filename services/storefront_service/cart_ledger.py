"""Cart ledger: the signed-in user's cart, kept in sync with the record store.

The module is split in two layers:

- pure reducer functions over a tuple of ``CartEntry`` (no I/O), and
- ``CartLedger``, which issues record store calls and feeds confirmed rows
  back through the reducers. Local state only changes after the store has
  accepted the write.

Ledger operations never raise store failures to the caller: they log, send a
notice, and leave local state as it was.
"""

from decimal import Decimal
from typing import Callable, Optional

from libs.auth.identity import SupabaseIdentityProvider
from libs.auth.models import AuthSession, AuthUser
from libs.common.currency import line_total, sum_money
from libs.common.logging import get_logger
from services.storefront_service.errors import NO_ROWS, AuthRequired, StoreError
from services.storefront_service.notify import NoticeCollector, Notifier
from services.storefront_service.record_store import Join, RecordStore, Row
from services.storefront_service.schemas import CartEntry

logger = get_logger(__name__)

CART_TABLE = "cart_items"
PRODUCT_JOIN = Join(alias="product", table="products", local_key="product_id")

Entries = tuple[CartEntry, ...]


# ============================================================================
# REDUCER
# ============================================================================


def upsert_entry(entries: Entries, entry: CartEntry) -> Entries:
    """Replace the entry for the same product in place, or append it."""
    for index, existing in enumerate(entries):
        if existing.product_id == entry.product_id:
            return entries[:index] + (entry,) + entries[index + 1:]
    return entries + (entry,)


def drop_entry(entries: Entries, product_id: str) -> Entries:
    return tuple(e for e in entries if e.product_id != product_id)


def cart_total(entries: Entries) -> Decimal:
    return sum_money(line_total(e.product.price, e.quantity) for e in entries)


def cart_count(entries: Entries) -> int:
    return sum(e.quantity for e in entries)


def entries_from_rows(rows: list[Row]) -> Entries:
    """Build entries from joined rows, skipping products the reader cannot see."""
    entries = []
    for row in rows:
        if row.get("product") is None:
            logger.warning(
                "Skipping cart row %s: product %s is not visible",
                row.get("id"),
                row.get("product_id"),
            )
            continue
        entries.append(CartEntry.model_validate(row))
    return tuple(entries)


# ============================================================================
# LEDGER
# ============================================================================


class CartLedger:
    """Cart state for one identity, synchronised with ``cart_items``."""

    def __init__(
        self,
        store: RecordStore,
        identity: Optional[AuthUser] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.identity = identity
        self.notifier = notifier or NoticeCollector()
        self.entries: Entries = ()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def total(self) -> Decimal:
        return cart_total(self.entries)

    def count(self) -> int:
        return cart_count(self.entries)

    def entry_for(self, product_id: str) -> Optional[CartEntry]:
        return next((e for e in self.entries if e.product_id == product_id), None)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    async def load(self, identity: Optional[AuthUser]) -> Entries:
        """Replace local state with the identity's cart. Signed out means empty."""
        self.identity = identity
        if identity is None:
            self.entries = ()
            return self.entries

        try:
            rows = await self.store.select(
                CART_TABLE,
                {"user_id": identity.user_id},
                joins=[PRODUCT_JOIN],
            )
        except StoreError as e:
            logger.error("Error fetching cart items for %s: %s", identity.user_id, e)
            self.notifier.error("Failed to load cart", code=e.code)
            return self.entries

        self.entries = entries_from_rows(rows)
        return self.entries

    async def add(self, product_id: str, quantity: int = 1) -> Optional[CartEntry]:
        """Upsert (user, product). An existing entry's quantity is overwritten, not summed."""
        if self.identity is None:
            logger.info("Add to cart rejected for %s: not signed in", product_id)
            self.notifier.error("Please sign in to add items to cart", code=AuthRequired.code)
            return None

        try:
            visible = await self.store.select("products", {"id": product_id}, limit=1)
            if not visible:
                logger.info("Add to cart rejected for %s: product not visible", product_id)
                self.notifier.error("This product is no longer available", code=NO_ROWS)
                return None

            row = await self.store.upsert(
                CART_TABLE,
                {
                    "user_id": self.identity.user_id,
                    "product_id": product_id,
                    "quantity": quantity,
                },
                conflict_keys=("user_id", "product_id"),
                joins=[PRODUCT_JOIN],
            )
        except StoreError as e:
            logger.error("Error adding %s to cart for %s: %s", product_id, self.identity.user_id, e)
            self.notifier.error("Failed to add to cart", code=e.code)
            return None

        added = entries_from_rows([row])
        if not added:
            # Hidden between the check and the write
            await self._discard(product_id)
            self.notifier.error("This product is no longer available", code=NO_ROWS)
            return None

        self.entries = upsert_entry(self.entries, added[0])
        self.notifier.success("Added to cart")
        return added[0]

    async def _discard(self, product_id: str) -> None:
        try:
            await self.store.delete(
                CART_TABLE,
                {"user_id": self.identity.user_id, "product_id": product_id},
            )
        except StoreError as e:
            logger.error("Could not discard hidden cart row %s for %s: %s", product_id, self.identity.user_id, e)
        self.entries = drop_entry(self.entries, product_id)

    async def set_quantity(self, product_id: str, quantity: int) -> Optional[CartEntry]:
        """Set an entry's quantity; zero or less removes it."""
        if quantity <= 0:
            await self.remove(product_id)
            return None

        if self.identity is None:
            logger.info("Quantity update for %s ignored: not signed in", product_id)
            return None

        try:
            row = await self.store.update_one(
                CART_TABLE,
                {"quantity": quantity},
                {"user_id": self.identity.user_id, "product_id": product_id},
                joins=[PRODUCT_JOIN],
            )
        except StoreError as e:
            logger.error("Error updating quantity of %s for %s: %s", product_id, self.identity.user_id, e)
            self.notifier.error("Failed to update quantity", code=e.code)
            return None

        updated = entries_from_rows([row])
        if not updated:
            return None
        self.entries = upsert_entry(self.entries, updated[0])
        return updated[0]

    async def remove(self, product_id: str) -> bool:
        if self.identity is None:
            logger.info("Remove from cart for %s ignored: not signed in", product_id)
            return False

        try:
            await self.store.delete(
                CART_TABLE,
                {"user_id": self.identity.user_id, "product_id": product_id},
            )
        except StoreError as e:
            logger.error("Error removing %s from cart for %s: %s", product_id, self.identity.user_id, e)
            self.notifier.error("Failed to remove from cart", code=e.code)
            return False

        self.entries = drop_entry(self.entries, product_id)
        self.notifier.success("Removed from cart")
        return True

    async def clear(self, identity: Optional[AuthUser] = None) -> bool:
        """Delete every cart row of ``identity`` (default: the loaded identity)."""
        identity = identity or self.identity
        if identity is None:
            logger.info("Clear cart ignored: not signed in")
            return False

        try:
            await self.store.delete(CART_TABLE, {"user_id": identity.user_id})
        except StoreError as e:
            logger.error("Error clearing cart for %s: %s", identity.user_id, e)
            self.notifier.error("Failed to clear cart", code=e.code)
            return False

        self.entries = ()
        return True

    # ------------------------------------------------------------------
    # Session tracking
    # ------------------------------------------------------------------

    def follow(self, provider: SupabaseIdentityProvider) -> Callable[[], None]:
        """Reload whenever the provider's session changes. Returns the unsubscribe callable."""

        async def on_change(event: str, session: Optional[AuthSession]) -> None:
            logger.info("Session change %s: reloading cart", event)
            await self.load(session.user if session else None)

        return provider.on_session_change(on_change)
