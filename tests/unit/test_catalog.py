"""Unit tests for the catalog filter and the catalog view."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from services.storefront_service.catalog import (
    CatalogView,
    featured_products,
    filter_products,
)
from services.storefront_service.errors import CONNECTION_FAILURE, StoreError
from services.storefront_service.notify import NoticeCollector
from services.storefront_service.record_store import MemoryRecordStore, PolicyRecordStore
from services.storefront_service.schemas import ProductResponse


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

NOW = datetime(2025, 7, 27, tzinfo=timezone.utc)


def _product(name, description=None, category_id=None, is_featured=False) -> ProductResponse:
    return ProductResponse(
        id=name.lower().replace(" ", "-"),
        name=name,
        description=description,
        price=Decimal("1.00"),
        category_id=category_id,
        is_featured=is_featured,
        created_at=NOW,
        updated_at=NOW,
    )


PRODUCTS = [
    _product("Running Shoes", "Comfortable running shoes", "clothing", is_featured=True),
    _product("Designer T-Shirt", "Premium cotton t-shirt", "clothing"),
    _product("Wireless Headphones", "Noise cancellation", "electronics", is_featured=True),
    _product("Mystery Box"),
]


def _names(products):
    return [p.name for p in products]


# ---------------------------------------------------------------------------
# filter_products
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize("query", [None, "", "   "])
def test_blank_query_matches_everything(query):
    assert _names(filter_products(PRODUCTS, query)) == _names(PRODUCTS)


@pytest.mark.unit
def test_query_matches_name_case_insensitively():
    assert _names(filter_products(PRODUCTS, "SHOES")) == ["Running Shoes"]


@pytest.mark.unit
def test_query_matches_description():
    assert _names(filter_products(PRODUCTS, "cotton")) == ["Designer T-Shirt"]


@pytest.mark.unit
def test_query_does_not_match_missing_description():
    assert filter_products(PRODUCTS, "box contents") == []


@pytest.mark.unit
def test_category_filter_preserves_order():
    assert _names(filter_products(PRODUCTS, category_id="clothing")) == [
        "Running Shoes",
        "Designer T-Shirt",
    ]


@pytest.mark.unit
def test_query_and_category_combine():
    assert _names(filter_products(PRODUCTS, "shirt", "clothing")) == ["Designer T-Shirt"]
    assert filter_products(PRODUCTS, "shirt", "electronics") == []


@pytest.mark.unit
def test_featured_products_respects_limit_and_order():
    assert _names(featured_products(PRODUCTS)) == ["Running Shoes", "Wireless Headphones"]
    assert _names(featured_products(PRODUCTS, limit=1)) == ["Running Shoes"]


# ---------------------------------------------------------------------------
# CatalogView
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_fetches_active_products_with_category(store, catalog):
    await store.update("products", {"is_active": False}, {"id": catalog["Yoga Mat"]["id"]})
    view = CatalogView(PolicyRecordStore(store, None))

    assert await view.load() is True

    assert len(view.products) == 7
    assert "Yoga Mat" not in _names(view.products)
    shoes = next(p for p in view.products if p.name == "Running Shoes")
    assert shoes.category.name == "Clothing"
    assert [c.name for c in view.categories] == [
        "Books",
        "Clothing",
        "Electronics",
        "Home & Garden",
        "Sports",
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_view_without_filters_lists_featured(store, catalog):
    view = CatalogView(store)
    await view.load()

    page = view.view()

    assert len(page.products) == 8
    assert set(_names(page.featured)) == {
        "Wireless Headphones",
        "Smart Watch",
        "Laptop Computer",
        "Running Shoes",
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_view_with_filters_hides_featured(store, catalog):
    view = CatalogView(store)
    await view.load()
    clothing = catalog["Running Shoes"]["category_id"]

    page = view.view(category_id=clothing)

    assert set(_names(page.products)) == {"Running Shoes", "Designer T-Shirt"}
    assert page.featured == []

    page = view.view(query="book")
    assert _names(page.products) == ["Programming Book"]
    assert page.featured == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_failure_keeps_previous_lists(store, catalog):
    notices = NoticeCollector()
    view = CatalogView(store, notices)
    await view.load()

    class Broken(MemoryRecordStore):
        async def _fetch(self, table, filter, order_by, limit):
            raise StoreError("connection refused", code=CONNECTION_FAILURE)

    view.store = Broken()
    assert await view.load() is False

    assert len(view.products) == 8
    assert notices.errors[0].message == "Failed to load products"
