"""Store orders router: order history for the signed-in shopper."""

from fastapi import APIRouter, Depends
from services.storefront_service.dependencies import StoreContext, get_member_context
from services.storefront_service.errors import StorefrontError
from services.storefront_service.orders import get_order, list_orders
from services.storefront_service.routers._helpers import to_http_exception
from services.storefront_service.schemas import OrderResponse

router = APIRouter(tags=["store"])


@router.get("/orders", response_model=list[OrderResponse])
async def list_my_orders(ctx: StoreContext = Depends(get_member_context)):
    """List the current user's orders, newest first."""
    try:
        return await list_orders(ctx.store, ctx.user)
    except StorefrontError as e:
        raise to_http_exception(e) from e


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: str,
    ctx: StoreContext = Depends(get_member_context),
):
    """Get one of the current user's orders with its lines."""
    try:
        return await get_order(ctx.store, ctx.user, order_id)
    except StorefrontError as e:
        raise to_http_exception(e) from e
