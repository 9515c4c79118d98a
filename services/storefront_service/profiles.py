"""Profiles mirror auth users and are created lazily on first use."""

from typing import Optional

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.storefront_service.errors import (
    NO_ROWS,
    UNIQUE_VIOLATION,
    AuthRequired,
    StoreError,
)
from services.storefront_service.record_store import RecordStore, Row
from services.storefront_service.schemas import ProfileUpdate

logger = get_logger(__name__)


async def ensure_profile(store: RecordStore, identity: Optional[AuthUser]) -> Row:
    """Return the identity's profile, creating it from the auth user if missing."""
    if identity is None:
        raise AuthRequired()

    try:
        return await store.select_one("profiles", {"id": identity.user_id})
    except StoreError as e:
        if e.code != NO_ROWS:
            raise

    logger.info("Creating profile for %s", identity.user_id)
    try:
        return await store.insert(
            "profiles",
            {
                "id": identity.user_id,
                "email": identity.email or "",
                "full_name": identity.full_name or None,
            },
        )
    except StoreError as e:
        # Lost a race with a concurrent first request
        if e.code == UNIQUE_VIOLATION:
            return await store.select_one("profiles", {"id": identity.user_id})
        raise


async def update_profile(
    store: RecordStore, identity: Optional[AuthUser], update: ProfileUpdate
) -> Row:
    profile = await ensure_profile(store, identity)
    patch = update.model_dump(exclude_unset=True)
    if not patch:
        return profile
    return await store.update_one("profiles", patch, {"id": identity.user_id})
