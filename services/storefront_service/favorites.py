"""Favorites (wishlist). Follows the cart ledger's conventions: store
failures are logged and notified, never raised."""

from __future__ import annotations

from typing import Optional

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.storefront_service.cart_ledger import PRODUCT_JOIN
from services.storefront_service.errors import AuthRequired, StoreError
from services.storefront_service.notify import NoticeCollector, Notifier
from services.storefront_service.record_store import RecordStore, Sort
from services.storefront_service.schemas import FavoriteResponse

logger = get_logger(__name__)

FAVORITES_TABLE = "favorites"


class FavoritesService:
    def __init__(
        self,
        store: RecordStore,
        identity: Optional[AuthUser] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.identity = identity
        self.notifier = notifier or NoticeCollector()

    def _require_identity(self, action: str) -> Optional[AuthUser]:
        if self.identity is None:
            logger.info("%s rejected: not signed in", action)
            self.notifier.error("Please sign in to save favorites", code=AuthRequired.code)
        return self.identity

    async def list(self, identity: Optional[AuthUser] = None) -> list[FavoriteResponse]:
        """Favorites of ``identity`` (default: the service's identity), newest first."""
        identity = identity or self.identity
        if identity is None:
            return []
        try:
            rows = await self.store.select(
                FAVORITES_TABLE,
                {"user_id": identity.user_id},
                order_by=[Sort("created_at", descending=True)],
                joins=[PRODUCT_JOIN],
            )
        except StoreError as e:
            logger.error("Error fetching favorites for %s: %s", identity.user_id, e)
            self.notifier.error("Failed to load favorites", code=e.code)
            return []
        return [FavoriteResponse.model_validate(r) for r in rows]

    async def is_favorite(self, product_id: str) -> bool:
        if self.identity is None:
            return False
        rows = await self.store.select(
            FAVORITES_TABLE,
            {"user_id": self.identity.user_id, "product_id": product_id},
            limit=1,
        )
        return bool(rows)

    async def add(self, product_id: str) -> bool:
        """Idempotent: adding an existing favorite succeeds without a duplicate."""
        identity = self._require_identity("Add favorite")
        if identity is None:
            return False
        try:
            await self.store.upsert(
                FAVORITES_TABLE,
                {"user_id": identity.user_id, "product_id": product_id},
                conflict_keys=("user_id", "product_id"),
            )
        except StoreError as e:
            logger.error("Error adding favorite %s for %s: %s", product_id, identity.user_id, e)
            self.notifier.error("Failed to add to favorites", code=e.code)
            return False
        self.notifier.success("Added to favorites")
        return True

    async def remove(self, product_id: str) -> bool:
        identity = self._require_identity("Remove favorite")
        if identity is None:
            return False
        try:
            await self.store.delete(
                FAVORITES_TABLE,
                {"user_id": identity.user_id, "product_id": product_id},
            )
        except StoreError as e:
            logger.error("Error removing favorite %s for %s: %s", product_id, identity.user_id, e)
            self.notifier.error("Failed to remove from favorites", code=e.code)
            return False
        self.notifier.success("Removed from favorites")
        return True

    async def toggle(self, product_id: str) -> Optional[bool]:
        """Flip the favorite state. Returns the new state, or None on failure."""
        if self._require_identity("Toggle favorite") is None:
            return None
        try:
            current = await self.is_favorite(product_id)
        except StoreError as e:
            logger.error("Error reading favorite %s: %s", product_id, e)
            self.notifier.error("Failed to update favorites", code=e.code)
            return None

        if current:
            return False if await self.remove(product_id) else None
        return True if await self.add(product_id) else None
