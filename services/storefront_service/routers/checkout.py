"""Store checkout router."""

from fastapi import APIRouter, Depends, status
from libs.common.logging import get_logger
from services.storefront_service.checkout import CheckoutWorkflow
from services.storefront_service.dependencies import StoreContext, get_member_context
from services.storefront_service.errors import StorefrontError
from services.storefront_service.forms import ShippingForm
from services.storefront_service.routers._helpers import to_http_exception
from services.storefront_service.routers.cart import load_ledger
from services.storefront_service.schemas import CheckoutResponse

logger = get_logger(__name__)

router = APIRouter(tags=["store"])


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
async def checkout(
    shipping: ShippingForm,
    ctx: StoreContext = Depends(get_member_context),
):
    """Place an order for the current cart.

    Line prices are the product prices loaded with the cart for this request.
    """
    ledger = await load_ledger(ctx)
    workflow = CheckoutWorkflow(ctx.store, ledger, ctx.notices, system_store=ctx.system_store)
    try:
        placed = await workflow.place_order(ctx.user, shipping)
    except StorefrontError as e:
        logger.info("Checkout rejected for %s: %s", ctx.user.user_id, e)
        raise to_http_exception(e) from e

    return CheckoutResponse(
        order=placed.order,
        cart_cleared=placed.cart_cleared,
        notices=ctx.notices.drain(),
    )
