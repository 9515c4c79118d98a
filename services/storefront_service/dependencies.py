"""FastAPI dependencies: the record store and the per-request store context."""

from dataclasses import dataclass, field
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.identity import SupabaseIdentityProvider
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.storefront_service.errors import StoreError
from services.storefront_service.notify import NoticeCollector
from services.storefront_service.record_store import (
    MemoryRecordStore,
    PolicyRecordStore,
    RecordStore,
    SqlRecordStore,
)

logger = get_logger(__name__)

_record_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """The process-wide backend store, built on first use from settings."""
    global _record_store
    if _record_store is None:
        settings = get_settings()
        if settings.RECORD_STORE_BACKEND == "memory":
            _record_store = MemoryRecordStore()
        else:
            from libs.db.config import get_session_factory

            _record_store = SqlRecordStore(get_session_factory())
        logger.info("Record store backend: %s", settings.RECORD_STORE_BACKEND)
    return _record_store


@dataclass
class StoreContext:
    """What a request works with: its principal and a store scoped to it.

    ``system_store`` is the unscoped backend. Only the checkout workflow
    uses it, for the stock and compensation writes shoppers may not make.
    """

    user: Optional[AuthUser]
    store: RecordStore
    system_store: RecordStore
    is_admin: bool = False
    notices: NoticeCollector = field(default_factory=NoticeCollector)


async def _is_profile_admin(base: RecordStore, user: AuthUser) -> bool:
    try:
        rows = await base.select("profiles", {"id": user.user_id}, limit=1)
    except StoreError as e:
        logger.warning("Could not read admin flag for %s: %s", user.user_id, e)
        return False
    return bool(rows and rows[0].get("is_admin"))


async def build_store_context(base: RecordStore, user: Optional[AuthUser]) -> StoreContext:
    is_admin = False
    if user is not None:
        is_admin = user.is_service_role or await _is_profile_admin(base, user)
    return StoreContext(
        user=user,
        store=PolicyRecordStore(base, user, is_admin=is_admin),
        system_store=base,
        is_admin=is_admin,
    )


async def get_store_context(
    user: Annotated[Optional[AuthUser], Depends(get_optional_user)],
    base: Annotated[RecordStore, Depends(get_record_store)],
) -> StoreContext:
    """Context for routes that also serve signed-out shoppers."""
    return await build_store_context(base, user)


async def get_member_context(
    user: Annotated[AuthUser, Depends(get_current_user)],
    base: Annotated[RecordStore, Depends(get_record_store)],
) -> StoreContext:
    """Context for routes that require a signed-in shopper."""
    return await build_store_context(base, user)


async def require_store_admin(
    ctx: Annotated[StoreContext, Depends(get_member_context)],
) -> StoreContext:
    """Admins are service-role callers or profiles flagged ``is_admin``."""
    if not ctx.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return ctx


def get_identity_provider() -> SupabaseIdentityProvider:
    return SupabaseIdentityProvider.from_settings()
