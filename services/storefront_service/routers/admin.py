"""Admin store router: catalog management and order status."""

from fastapi import APIRouter, Depends, HTTPException, status
from libs.common.logging import get_logger
from services.storefront_service.catalog import CATEGORY_JOIN
from services.storefront_service.dependencies import StoreContext, require_store_admin
from services.storefront_service.errors import StorefrontError
from services.storefront_service.orders import (
    list_orders,
    set_order_status,
    set_payment_status,
)
from services.storefront_service.record_store import Sort
from services.storefront_service.routers._helpers import to_http_exception
from services.storefront_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    OrderResponse,
    OrderStatusUpdate,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])


def _empty_update() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update"
    )


# ============================================================================
# CATEGORY MANAGEMENT
# ============================================================================


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_in: CategoryCreate,
    ctx: StoreContext = Depends(require_store_admin),
):
    try:
        row = await ctx.store.insert("categories", category_in.model_dump())
    except StorefrontError as e:
        raise to_http_exception(e) from e
    logger.info("Category %s created by %s", row["id"], ctx.user.user_id)
    return row


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    category_in: CategoryUpdate,
    ctx: StoreContext = Depends(require_store_admin),
):
    patch = category_in.model_dump(exclude_unset=True)
    if not patch:
        raise _empty_update()
    try:
        return await ctx.store.update_one("categories", patch, {"id": category_id})
    except StorefrontError as e:
        raise to_http_exception(e) from e


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    ctx: StoreContext = Depends(require_store_admin),
):
    """Delete a category. Its products stay, uncategorised."""
    try:
        await ctx.store.delete("categories", {"id": category_id})
    except StorefrontError as e:
        raise to_http_exception(e) from e
    logger.info("Category %s deleted by %s", category_id, ctx.user.user_id)


# ============================================================================
# PRODUCT MANAGEMENT
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_all_products(ctx: StoreContext = Depends(require_store_admin)):
    """All products, including inactive ones."""
    try:
        return await ctx.store.select(
            "products",
            order_by=[Sort("created_at", descending=True)],
            joins=[CATEGORY_JOIN],
        )
    except StorefrontError as e:
        raise to_http_exception(e) from e


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_in: ProductCreate,
    ctx: StoreContext = Depends(require_store_admin),
):
    try:
        row = await ctx.store.insert(
            "products", product_in.model_dump(), joins=[CATEGORY_JOIN]
        )
    except StorefrontError as e:
        raise to_http_exception(e) from e
    logger.info("Product %s created by %s", row["id"], ctx.user.user_id)
    return row


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_in: ProductUpdate,
    ctx: StoreContext = Depends(require_store_admin),
):
    patch = product_in.model_dump(exclude_unset=True)
    if not patch:
        raise _empty_update()
    try:
        return await ctx.store.update_one(
            "products", patch, {"id": product_id}, joins=[CATEGORY_JOIN]
        )
    except StorefrontError as e:
        raise to_http_exception(e) from e


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str,
    ctx: StoreContext = Depends(require_store_admin),
):
    """Delete a product. Cart rows, favorites and order lines referencing it go with it."""
    try:
        await ctx.store.delete("products", {"id": product_id})
    except StorefrontError as e:
        raise to_http_exception(e) from e
    logger.info("Product %s deleted by %s", product_id, ctx.user.user_id)


# ============================================================================
# ORDER MANAGEMENT
# ============================================================================


@router.get("/orders", response_model=list[OrderResponse])
async def list_all_orders(ctx: StoreContext = Depends(require_store_admin)):
    try:
        return await list_orders(ctx.store, ctx.user, all_users=True)
    except StorefrontError as e:
        raise to_http_exception(e) from e


@router.patch("/orders/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    update_in: OrderStatusUpdate,
    ctx: StoreContext = Depends(require_store_admin),
):
    """Set order and/or payment status."""
    if update_in.status is None and update_in.payment_status is None:
        raise _empty_update()
    try:
        order = None
        if update_in.status is not None:
            order = await set_order_status(ctx.store, order_id, update_in.status)
        if update_in.payment_status is not None:
            order = await set_payment_status(ctx.store, order_id, update_in.payment_status)
    except StorefrontError as e:
        raise to_http_exception(e) from e
    logger.info("Order %s updated by %s", order_id, ctx.user.user_id)
    return order
