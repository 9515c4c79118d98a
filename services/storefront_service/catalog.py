"""Catalog view: fetched products and categories plus the filtered view."""

from dataclasses import dataclass
from typing import Optional, Sequence

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.storefront_service.errors import StoreError
from services.storefront_service.notify import NoticeCollector, Notifier
from services.storefront_service.record_store import Join, RecordStore, Sort
from services.storefront_service.schemas import CategoryResponse, ProductResponse

logger = get_logger(__name__)

CATEGORY_JOIN = Join(alias="category", table="categories", local_key="category_id")


def filter_products(
    products: Sequence[ProductResponse],
    query: Optional[str] = None,
    category_id: Optional[str] = None,
) -> list[ProductResponse]:
    """Case-insensitive substring match on name or description, AND category equality.

    A blank query (after trimming) and an empty category match everything.
    Input order is preserved.
    """
    filtered = list(products)

    if query and query.strip():
        needle = query.lower()
        filtered = [
            p for p in filtered
            if needle in p.name.lower()
            or (p.description is not None and needle in p.description.lower())
        ]

    if category_id:
        filtered = [p for p in filtered if p.category_id == category_id]

    return filtered


def featured_products(products: Sequence[ProductResponse], limit: int = 4) -> list[ProductResponse]:
    """First ``limit`` featured products, in the given order."""
    return [p for p in products if p.is_featured][:limit]


@dataclass
class CatalogPage:
    products: list[ProductResponse]
    featured: list[ProductResponse]
    categories: list[CategoryResponse]


class CatalogView:
    """Holds the loaded catalog; ``view`` computes what the shopper sees."""

    def __init__(self, store: RecordStore, notifier: Optional[Notifier] = None):
        self.store = store
        self.notifier = notifier or NoticeCollector()
        self.products: list[ProductResponse] = []
        self.categories: list[CategoryResponse] = []

    async def load(self) -> bool:
        """Fetch active products (newest first, with category) and categories by name."""
        try:
            product_rows = await self.store.select(
                "products",
                {"is_active": True},
                order_by=[Sort("created_at", descending=True)],
                joins=[CATEGORY_JOIN],
            )
            category_rows = await self.store.select(
                "categories", order_by=[Sort("name")]
            )
        except StoreError as e:
            logger.error("Error fetching catalog: %s", e)
            self.notifier.error("Failed to load products", code=e.code)
            return False

        self.products = [ProductResponse.model_validate(r) for r in product_rows]
        self.categories = [CategoryResponse.model_validate(r) for r in category_rows]
        return True

    def view(self, query: Optional[str] = None, category_id: Optional[str] = None) -> CatalogPage:
        products = filter_products(self.products, query, category_id)
        filtering = bool((query and query.strip()) or category_id)
        featured = [] if filtering else featured_products(products, get_settings().FEATURED_LIMIT)
        return CatalogPage(products=products, featured=featured, categories=self.categories)
