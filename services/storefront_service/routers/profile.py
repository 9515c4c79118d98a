"""Profile router: the signed-in user's own profile."""

from fastapi import APIRouter, Depends
from services.storefront_service.dependencies import StoreContext, get_member_context
from services.storefront_service.errors import StorefrontError
from services.storefront_service.profiles import ensure_profile, update_profile
from services.storefront_service.routers._helpers import to_http_exception
from services.storefront_service.schemas import ProfileResponse, ProfileUpdate

router = APIRouter(tags=["profile"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(ctx: StoreContext = Depends(get_member_context)):
    """Get the current user's profile, creating it on first access."""
    try:
        return await ensure_profile(ctx.store, ctx.user)
    except StorefrontError as e:
        raise to_http_exception(e) from e


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_in: ProfileUpdate,
    ctx: StoreContext = Depends(get_member_context),
):
    """Update display name or avatar."""
    try:
        return await update_profile(ctx.store, ctx.user, profile_in)
    except StorefrontError as e:
        raise to_http_exception(e) from e
