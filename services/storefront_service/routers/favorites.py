"""Store favorites router."""

from fastapi import APIRouter, Depends
from services.storefront_service.dependencies import StoreContext, get_member_context
from services.storefront_service.favorites import FavoritesService
from services.storefront_service.routers._helpers import raise_for_notices
from services.storefront_service.schemas import (
    FavoriteResponse,
    FavoriteToggleResponse,
)

router = APIRouter(tags=["store"])


def _service(ctx: StoreContext) -> FavoritesService:
    return FavoritesService(ctx.store, ctx.user, ctx.notices)


@router.get("/favorites", response_model=list[FavoriteResponse])
async def list_favorites(ctx: StoreContext = Depends(get_member_context)):
    favorites = await _service(ctx).list()
    raise_for_notices(ctx.notices)
    return favorites


@router.put("/favorites/{product_id}", response_model=FavoriteToggleResponse)
async def add_favorite(
    product_id: str,
    ctx: StoreContext = Depends(get_member_context),
):
    """Add a favorite. Adding one twice is not an error."""
    if not await _service(ctx).add(product_id):
        raise_for_notices(ctx.notices)
    return FavoriteToggleResponse(
        product_id=product_id, is_favorite=True, notices=ctx.notices.drain()
    )


@router.delete("/favorites/{product_id}", response_model=FavoriteToggleResponse)
async def remove_favorite(
    product_id: str,
    ctx: StoreContext = Depends(get_member_context),
):
    if not await _service(ctx).remove(product_id):
        raise_for_notices(ctx.notices)
    return FavoriteToggleResponse(
        product_id=product_id, is_favorite=False, notices=ctx.notices.drain()
    )


@router.post("/favorites/{product_id}/toggle", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    product_id: str,
    ctx: StoreContext = Depends(get_member_context),
):
    is_favorite = await _service(ctx).toggle(product_id)
    if is_favorite is None:
        raise_for_notices(ctx.notices)
    return FavoriteToggleResponse(
        product_id=product_id, is_favorite=bool(is_favorite), notices=ctx.notices.drain()
    )
