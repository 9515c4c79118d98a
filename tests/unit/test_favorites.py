"""Unit tests for favorites."""

from datetime import datetime, timezone

import pytest
from services.storefront_service.favorites import FavoritesService
from services.storefront_service.notify import NoticeCollector
from services.storefront_service.record_store import PolicyRecordStore


def _favorites(store, user) -> FavoritesService:
    return FavoritesService(PolicyRecordStore(store, user), user, NoticeCollector())


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_is_idempotent(store, catalog, shopper):
    favorites = _favorites(store, shopper)
    product_id = catalog["Smart Watch"]["id"]

    assert await favorites.add(product_id) is True
    assert await favorites.add(product_id) is True

    assert len(await store.select("favorites")) == 1
    assert await favorites.is_favorite(product_id) is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_is_newest_first_with_products(store, catalog, shopper, other_shopper):
    favorites = _favorites(store, shopper)
    await favorites.add(catalog["Yoga Mat"]["id"])
    await favorites.add(catalog["Smart Watch"]["id"])
    await _favorites(store, other_shopper).add(catalog["Coffee Maker"]["id"])
    await store.update(
        "favorites",
        {"created_at": datetime(2025, 1, 1, tzinfo=timezone.utc)},
        {"product_id": catalog["Yoga Mat"]["id"]},
    )

    listed = await favorites.list()

    assert [f.product.name for f in listed] == ["Smart Watch", "Yoga Mat"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_toggle_flips_state(store, catalog, shopper):
    favorites = _favorites(store, shopper)
    product_id = catalog["Laptop Computer"]["id"]

    assert await favorites.toggle(product_id) is True
    assert await favorites.toggle(product_id) is False
    assert await favorites.is_favorite(product_id) is False
    assert [n.message for n in favorites.notifier.notices] == [
        "Added to favorites",
        "Removed from favorites",
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_signed_out_favorites_notify(store, catalog):
    favorites = FavoritesService(store)

    assert await favorites.toggle(catalog["Yoga Mat"]["id"]) is None
    assert await favorites.list() == []
    assert favorites.notifier.errors[0].message == "Please sign in to save favorites"
    assert await store.select("favorites") == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_unknown_product_notifies(store, catalog, shopper):
    favorites = _favorites(store, shopper)

    assert await favorites.add("00000000-0000-0000-0000-000000000000") is False

    assert favorites.notifier.errors[0].message == "Failed to add to favorites"
    assert favorites.notifier.errors[0].code == "23503"
