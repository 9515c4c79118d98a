"""Supabase Auth as the storefront's identity provider.

Wraps the supabase-py auth client. SDK calls are blocking and run in a
worker thread. Auth failures come back as ``AuthResult(error=...)`` rather
than exceptions, so callers can surface them next to the form that caused
them.

Session changes reported by the SDK are queued when they happen and
delivered to listeners, sync or async, once the call that caused them
returns.

Usage:
    provider = SupabaseIdentityProvider.from_settings()
    unsubscribe = provider.on_session_change(handle_change)
    result = await provider.sign_in("ada@example.com", "secret123")
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from typing import Any, Awaitable, Callable, Optional, Union

from libs.auth.models import AuthError, AuthResult, AuthSession, AuthUser
from libs.common.logging import get_logger
from libs.common.supabase import get_supabase_client
from supabase import AuthApiError, AuthRetryableError, Client
from supabase import AuthError as SupabaseAuthError

logger = get_logger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
USER_UPDATED = "USER_UPDATED"

UNREACHABLE = "Could not reach the identity provider"

# Revoking a token the provider no longer accepts leaves the user signed out
_ALREADY_SIGNED_OUT = {401, 403, 404}

SessionCallback = Callable[[str, Optional[AuthSession]], Union[None, Awaitable[None]]]


def _as_dict(value: Any) -> dict:
    if isinstance(value, dict):
        return value
    return value.model_dump()


def to_auth_user(user: Any) -> AuthUser:
    data = _as_dict(user)
    return AuthUser(
        user_id=str(data["id"]),
        email=data.get("email") or None,
        role=data.get("role") or "authenticated",
        user_metadata=data.get("user_metadata") or {},
    )


def to_auth_session(session: Any) -> AuthSession:
    data = _as_dict(session)
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        token_type=data.get("token_type") or "bearer",
        expires_in=data.get("expires_in"),
        user=to_auth_user(data["user"]),
    )


def _auth_error(exc: SupabaseAuthError) -> AuthError:
    if isinstance(exc, AuthRetryableError):
        return AuthError(message=UNREACHABLE)
    return AuthError(
        message=exc.message or "Authentication request failed",
        status=getattr(exc, "status", None) or None,
        code=getattr(exc, "code", None),
    )


class SupabaseIdentityProvider:
    """Password sign-up/sign-in against Supabase Auth with session-change callbacks."""

    def __init__(self, client: Client):
        self.client = client
        self._session: Optional[AuthSession] = None
        self._listeners: list[SessionCallback] = []
        self._pending: deque = deque()
        client.auth.on_auth_state_change(self._queue_change)

    @classmethod
    def from_settings(cls) -> "SupabaseIdentityProvider":
        return cls(get_supabase_client())

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def get_session(self) -> Optional[AuthSession]:
        return self._session

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _queue_change(self, event: str, session: Any) -> None:
        # Called by the SDK from the worker thread
        self._pending.append((event, session))

    async def _deliver_changes(self) -> None:
        while self._pending:
            event, session = self._pending.popleft()
            await self._set_session(event, to_auth_session(session) if session else None)

    async def _set_session(self, event: str, session: Optional[AuthSession]) -> None:
        self._session = session
        for listener in list(self._listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str, display_name: str) -> AuthResult:
        """Register a user; ``display_name`` is stored as ``full_name`` metadata.

        When the project requires email confirmation no session is returned.
        """
        credentials = {
            "email": email,
            "password": password,
            "options": {"data": {"full_name": display_name}},
        }
        try:
            response = await asyncio.to_thread(self.client.auth.sign_up, credentials)
        except SupabaseAuthError as e:
            logger.info("Sign-up for %s rejected: %s", email, e.message)
            return AuthResult(error=_auth_error(e))

        await self._deliver_changes()
        if response.session is None:
            logger.info("Sign-up for %s is awaiting email confirmation", email)
            return AuthResult()
        return AuthResult(session=self._session)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        credentials = {"email": email, "password": password}
        try:
            await asyncio.to_thread(self.client.auth.sign_in_with_password, credentials)
        except SupabaseAuthError as e:
            logger.info("Sign-in for %s rejected: %s", email, e.message)
            return AuthResult(error=_auth_error(e))

        await self._deliver_changes()
        return AuthResult(session=self._session)

    async def sign_out(self, access_token: Optional[str] = None) -> AuthResult:
        """Revoke the current session (or the given token). Without either this is a no-op."""
        session = self._session
        if access_token is None and session is None:
            return AuthResult()

        try:
            if session is not None and access_token in (None, session.access_token):
                await asyncio.to_thread(self.client.auth.sign_out)
            else:
                await asyncio.to_thread(self.client.auth.admin.sign_out, access_token)
        except AuthApiError as e:
            if e.status not in _ALREADY_SIGNED_OUT:
                logger.error("Sign-out failed: %s", e.message)
                return AuthResult(error=_auth_error(e))
        except SupabaseAuthError as e:
            logger.error("Sign-out failed: %s", e.message)
            return AuthResult(error=_auth_error(e))

        await self._deliver_changes()
        return AuthResult()

    async def get_user(self) -> Optional[AuthUser]:
        """Fetch the current user from the provider, refreshing local metadata."""
        session = self._session
        if session is None:
            return None

        try:
            response = await asyncio.to_thread(self.client.auth.get_user, session.access_token)
        except SupabaseAuthError as e:
            logger.error("User lookup failed: %s", e.message)
            return None

        if response is None or response.user is None:
            return None

        user = to_auth_user(response.user)
        if user != session.user:
            await self._set_session(
                USER_UPDATED, session.model_copy(update={"user": user})
            )
        return user
