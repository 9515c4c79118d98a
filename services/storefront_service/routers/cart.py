"""Store cart router: the signed-in shopper's cart."""

from fastapi import APIRouter, Depends
from services.storefront_service.cart_ledger import CartLedger
from services.storefront_service.dependencies import (
    StoreContext,
    get_member_context,
    get_store_context,
)
from services.storefront_service.routers._helpers import raise_for_notices
from services.storefront_service.schemas import (
    CartItemCreate,
    CartItemUpdate,
    CartResponse,
)

router = APIRouter(tags=["store"])


# ============================================================================
# CART HELPERS
# ============================================================================


async def load_ledger(ctx: StoreContext) -> CartLedger:
    """Build the context's ledger and load its cart; load failures become HTTP errors."""
    ledger = CartLedger(ctx.store, ctx.user, ctx.notices)
    await ledger.load(ctx.user)
    raise_for_notices(ctx.notices)
    return ledger


def cart_response(ledger: CartLedger, ctx: StoreContext) -> CartResponse:
    return CartResponse(
        items=list(ledger.entries),
        total=ledger.total(),
        count=ledger.count(),
        notices=ctx.notices.drain(),
    )


# ============================================================================
# CART ENDPOINTS
# ============================================================================


@router.get("/cart", response_model=CartResponse)
async def get_cart(ctx: StoreContext = Depends(get_store_context)):
    """Current cart. Signed-out shoppers get an empty cart."""
    ledger = await load_ledger(ctx)
    return cart_response(ledger, ctx)


@router.post("/cart/items", response_model=CartResponse)
async def add_cart_item(
    item_in: CartItemCreate,
    ctx: StoreContext = Depends(get_member_context),
):
    """Add a product. An existing entry's quantity is replaced, not summed."""
    ledger = await load_ledger(ctx)
    if await ledger.add(item_in.product_id, item_in.quantity) is None:
        raise_for_notices(ctx.notices)
    return cart_response(ledger, ctx)


@router.patch("/cart/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    item_in: CartItemUpdate,
    ctx: StoreContext = Depends(get_member_context),
):
    """Set an entry's quantity. Zero or less removes the entry."""
    ledger = await load_ledger(ctx)
    await ledger.set_quantity(product_id, item_in.quantity)
    raise_for_notices(ctx.notices)
    return cart_response(ledger, ctx)


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: str,
    ctx: StoreContext = Depends(get_member_context),
):
    ledger = await load_ledger(ctx)
    if not await ledger.remove(product_id):
        raise_for_notices(ctx.notices)
    return cart_response(ledger, ctx)


@router.delete("/cart", response_model=CartResponse)
async def clear_cart(ctx: StoreContext = Depends(get_member_context)):
    """Empty the cart."""
    ledger = await load_ledger(ctx)
    if not await ledger.clear():
        raise_for_notices(ctx.notices)
    return cart_response(ledger, ctx)
