"""Integration tests for the admin store API.

Admins are profiles flagged ``is_admin`` or callers with the service_role
claim; everyone else gets 403.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from services.storefront_service.app.main import app
from tests.factories import (
    create_profile,
    make_service_user,
    override_auth,
    shipping_form,
)


@pytest_asyncio.fixture
async def admin(store, other_shopper):
    """A profile-flagged admin."""
    await create_profile(store, other_shopper, is_admin=True)
    return other_shopper


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_shopper_is_forbidden(client):
    response = await client.get("/admin/store/products")

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin privileges required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signed_out_is_unauthorized(client):
    with override_auth(app, None):
        response = await client.get("/admin/store/orders")

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_service_role_is_admin(client):
    with override_auth(app, make_service_user()):
        response = await client.get("/admin/store/products")

    assert response.status_code == 200
    assert len(response.json()) == 8


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_category_lifecycle(client, admin, store, catalog):
    with override_auth(app, admin):
        response = await client.post("/admin/store/categories", json={"name": "Toys"})
        assert response.status_code == 201
        category_id = response.json()["id"]

        duplicate = await client.post("/admin/store/categories", json={"name": "Toys"})
        assert duplicate.status_code == 409

        response = await client.patch(
            f"/admin/store/categories/{category_id}", json={"description": "Games and toys"}
        )
        assert response.json()["description"] == "Games and toys"

        empty = await client.patch(f"/admin/store/categories/{category_id}", json={})
        assert empty.status_code == 400

        books = catalog["Programming Book"]["category_id"]
        response = await client.delete(f"/admin/store/categories/{books}")
        assert response.status_code == 204

    product = await store.select_one("products", {"id": catalog["Programming Book"]["id"]})
    assert product["category_id"] is None


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_lifecycle(client, admin, catalog):
    sports = catalog["Yoga Mat"]["category_id"]

    with override_auth(app, admin):
        response = await client.post(
            "/admin/store/products",
            json={
                "name": "Kettlebell",
                "price": "45.00",
                "category_id": sports,
                "stock_quantity": 12,
            },
        )
        assert response.status_code == 201
        product = response.json()
        assert product["category"]["name"] == "Sports"

        response = await client.patch(
            f"/admin/store/products/{product['id']}", json={"is_active": False}
        )
        assert response.json()["is_active"] is False

        all_products = (await client.get("/admin/store/products")).json()
        assert "Kettlebell" in [p["name"] for p in all_products]

    # Inactive products are hidden from shoppers
    listed = (await client.get("/store/products")).json()["products"]
    assert "Kettlebell" not in [p["name"] for p in listed]

    with override_auth(app, admin):
        response = await client.delete(f"/admin/store/products/{product['id']}")
        assert response.status_code == 204
        missing = await client.patch(
            f"/admin/store/products/{product['id']}", json={"stock_quantity": 1}
        )
        assert missing.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_validation(client, admin):
    with override_auth(app, admin):
        response = await client.post(
            "/admin/store/products", json={"name": "Free lunch", "price": "-1.00"}
        )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_deleting_product_removes_it_from_carts(client, admin, catalog, store, shopper):
    mat = catalog["Yoga Mat"]["id"]
    await client.post("/store/cart/items", json={"product_id": mat})

    with override_auth(app, admin):
        await client.delete(f"/admin/store/products/{mat}")

    assert await store.select("cart_items", {"user_id": shopper.user_id}) == []


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_sees_and_updates_orders(client, admin, catalog):
    await client.post("/store/cart/items", json={"product_id": catalog["Smart Watch"]["id"]})
    order = (await client.post("/store/checkout", json=shipping_form())).json()["order"]

    with override_auth(app, admin):
        orders = (await client.get("/admin/store/orders")).json()
        assert [o["id"] for o in orders] == [order["id"]]

        response = await client.patch(
            f"/admin/store/orders/{order['id']}",
            json={"status": "shipped", "payment_status": "refunded"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "shipped"
        assert response.json()["payment_status"] == "refunded"
        assert Decimal(response.json()["total_amount"]) == Decimal("299.99")

        bad = await client.patch(f"/admin/store/orders/{order['id']}", json={"status": "lost"})
        assert bad.status_code == 422

        empty = await client.patch(f"/admin/store/orders/{order['id']}", json={})
        assert empty.status_code == 400

    # The shopper sees the new status but cannot change it
    mine = (await client.get(f"/store/orders/{order['id']}")).json()
    assert mine["status"] == "shipped"
    response = await client.patch(f"/admin/store/orders/{order['id']}", json={"status": "delivered"})
    assert response.status_code == 403
