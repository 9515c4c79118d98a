"""Auth router: password sign-up, sign-in and sign-out through Supabase Auth."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from libs.auth.dependencies import optional_security
from libs.auth.identity import SupabaseIdentityProvider
from libs.auth.models import AuthError, AuthSession
from libs.common.logging import get_logger
from libs.common.rate_limit import auth_limit
from services.storefront_service.dependencies import get_identity_provider, get_record_store
from services.storefront_service.errors import StorefrontError
from services.storefront_service.forms import SignInForm, SignUpForm
from services.storefront_service.profiles import ensure_profile
from services.storefront_service.record_store import PolicyRecordStore, RecordStore
from services.storefront_service.schemas import AuthSessionResponse

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


def _session_response(session: Optional[AuthSession]) -> AuthSessionResponse:
    if session is None:
        return AuthSessionResponse(confirmation_required=True)
    return AuthSessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user_id=session.user.user_id,
        email=session.user.email,
    )


def _auth_failure(error: AuthError, status_code: int) -> HTTPException:
    if error.status is None:
        # Provider unreachable
        status_code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(
        status_code=status_code,
        detail={"message": error.message, "code": error.code},
    )


@router.post("/sign-up", response_model=AuthSessionResponse, status_code=status.HTTP_201_CREATED)
@auth_limit
async def sign_up(
    request: Request,
    form: SignUpForm,
    provider: SupabaseIdentityProvider = Depends(get_identity_provider),
    store: RecordStore = Depends(get_record_store),
):
    """Register with email, password and display name.

    When the project requires email confirmation no session is returned and
    ``confirmation_required`` is set.
    """
    result = await provider.sign_up(form.email, form.password, form.full_name)
    if result.error:
        logger.info("Sign-up failed for %s: %s", form.email, result.error.message)
        raise _auth_failure(result.error, status.HTTP_400_BAD_REQUEST)

    if result.session is not None:
        user = result.session.user
        try:
            await ensure_profile(PolicyRecordStore(store, user), user)
        except StorefrontError as e:
            # The account exists; the profile is created again on first use
            logger.warning("Could not create profile for %s: %s", user.user_id, e)

    return _session_response(result.session)


@router.post("/sign-in", response_model=AuthSessionResponse)
@auth_limit
async def sign_in(
    request: Request,
    form: SignInForm,
    provider: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    result = await provider.sign_in(form.email, form.password)
    if result.error:
        logger.info("Sign-in failed for %s: %s", form.email, result.error.message)
        raise _auth_failure(result.error, status.HTTP_401_UNAUTHORIZED)
    return _session_response(result.session)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    token: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    provider: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    """Revoke the bearer token. Without a token this is a no-op."""
    result = await provider.sign_out(token.credentials if token else None)
    if result.error:
        raise _auth_failure(result.error, status.HTTP_502_BAD_GATEWAY)
