"""Unit tests for row-level security in front of the record store."""

from decimal import Decimal

import pytest
from services.storefront_service.errors import INSUFFICIENT_PRIVILEGE, StoreError
from services.storefront_service.record_store import PolicyRecordStore
from tests.factories import create_product, make_service_user


def _order(user, total="10.00") -> dict:
    return {
        "user_id": user.user_id,
        "total_amount": Decimal(total),
        "shipping_address": {"city": "London"},
    }


# ---------------------------------------------------------------------------
# Catalog tables
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_anonymous_reads_only_active_products(store):
    await create_product(store, name="Visible")
    await create_product(store, name="Hidden", is_active=False)
    anonymous = PolicyRecordStore(store, None)

    rows = await anonymous.select("products")
    assert [r["name"] for r in rows] == ["Visible"]

    assert await anonymous.select("products", {"is_active": False}) == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_admin_reads_every_product(store):
    await create_product(store, name="Visible")
    await create_product(store, name="Hidden", is_active=False)
    admin = PolicyRecordStore(store, make_service_user())

    assert admin.is_admin is True
    assert len(await admin.select("products")) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_shopper_cannot_write_catalog(store, shopper_store):
    with pytest.raises(StoreError) as exc_info:
        await shopper_store.insert("categories", {"name": "Contraband"})
    assert exc_info.value.code == INSUFFICIENT_PRIVILEGE

    product = await create_product(store, name="Fixed")
    assert await shopper_store.update("products", {"name": "Changed"}, {"id": product["id"]}) == []
    await shopper_store.delete("products", {"id": product["id"]})
    assert (await store.select_one("products", {"id": product["id"]}))["name"] == "Fixed"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_only_admins_adjust_stock(store, shopper_store):
    product = await create_product(store, stock_quantity=4)

    for adjust in (shopper_store.increment, shopper_store.decrement):
        with pytest.raises(StoreError) as exc_info:
            await adjust("products", "stock_quantity", 1, {"id": product["id"]})
        assert exc_info.value.code == INSUFFICIENT_PRIVILEGE
    with pytest.raises(StoreError):
        await PolicyRecordStore(store, None).decrement(
            "products", "stock_quantity", 1, {"id": product["id"]}
        )
    assert (await store.select_one("products", {"id": product["id"]}))["stock_quantity"] == 4

    admin = PolicyRecordStore(store, make_service_user())
    row = await admin.decrement("products", "stock_quantity", 1, {"id": product["id"]})
    assert row["stock_quantity"] == 3


# ---------------------------------------------------------------------------
# Owner tables
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cart_rows_are_private(store, shopper, other_shopper):
    product = await create_product(store)
    mine = PolicyRecordStore(store, shopper)
    theirs = PolicyRecordStore(store, other_shopper)
    await mine.insert("cart_items", {"user_id": shopper.user_id, "product_id": product["id"], "quantity": 1})

    assert await theirs.select("cart_items") == []
    assert await theirs.select("cart_items", {"user_id": shopper.user_id}) == []
    await theirs.delete("cart_items", {"user_id": shopper.user_id})
    assert len(await mine.select("cart_items")) == 1

    with pytest.raises(StoreError) as exc_info:
        await theirs.insert(
            "cart_items", {"user_id": shopper.user_id, "product_id": product["id"], "quantity": 1}
        )
    assert exc_info.value.code == INSUFFICIENT_PRIVILEGE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_orders_are_owner_readable_but_admin_updatable(store, shopper, other_shopper):
    mine = PolicyRecordStore(store, shopper)
    order = await mine.insert("orders", _order(shopper))

    assert await PolicyRecordStore(store, other_shopper).select("orders") == []
    assert await mine.update("orders", {"status": "shipped"}, {"id": order["id"]}) == []

    admin = PolicyRecordStore(store, other_shopper, is_admin=True)
    [updated] = await admin.update("orders", {"status": "shipped"}, {"id": order["id"]})
    assert updated["status"] == "shipped"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_items_follow_parent_order(store, shopper, other_shopper):
    product = await create_product(store)
    mine = PolicyRecordStore(store, shopper)
    theirs = PolicyRecordStore(store, other_shopper)
    order = await mine.insert("orders", _order(shopper))
    line = {"order_id": order["id"], "product_id": product["id"], "quantity": 1, "price": Decimal("10.00")}

    with pytest.raises(StoreError):
        await theirs.insert("order_items", line)

    await mine.insert("order_items", line)
    assert len(await mine.select("order_items")) == 1
    assert await theirs.select("order_items") == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_placed_order_is_immutable_for_its_shopper(store, shopper):
    product = await create_product(store)
    mine = PolicyRecordStore(store, shopper)
    order = await mine.insert("orders", {**_order(shopper), "status": "confirmed", "payment_status": "paid"})
    line = {"order_id": order["id"], "product_id": product["id"], "quantity": 1, "price": Decimal("10.00")}
    await mine.insert_many("order_items", [line, {**line, "quantity": 2}])

    await mine.delete("order_items", {"order_id": order["id"]})
    await mine.delete("orders", {"id": order["id"]})
    assert await mine.update("order_items", {"price": Decimal("0.00")}, {"order_id": order["id"]}) == []
    with pytest.raises(StoreError) as exc_info:
        await mine.insert("order_items", {**line, "quantity": 5})
    assert exc_info.value.code == INSUFFICIENT_PRIVILEGE

    [kept] = await store.select("orders", {"id": order["id"]})
    assert kept["payment_status"] == "paid"
    lines = await store.select("order_items", {"order_id": order["id"]})
    assert sorted(r["quantity"] for r in lines) == [1, 2]
    assert {r["price"] for r in lines} == {Decimal("10.00")}


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_profile_cannot_self_grant_admin(store, shopper):
    mine = PolicyRecordStore(store, shopper)

    with pytest.raises(StoreError):
        await mine.insert("profiles", {"id": shopper.user_id, "email": shopper.email, "is_admin": True})

    await mine.insert("profiles", {"id": shopper.user_id, "email": shopper.email})
    with pytest.raises(StoreError) as exc_info:
        await mine.update("profiles", {"is_admin": True}, {"id": shopper.user_id})
    assert exc_info.value.code == INSUFFICIENT_PRIVILEGE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_profiles_of_others_are_invisible(store, shopper, other_shopper):
    await store.insert("profiles", {"id": other_shopper.user_id, "email": other_shopper.email})
    mine = PolicyRecordStore(store, shopper)

    assert await mine.select("profiles") == []
    assert await mine.select("profiles", {"id": other_shopper.user_id}) == []
