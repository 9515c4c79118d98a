"""
Test data helpers for the storefront.

Users are ``AuthUser`` instances with UUID ids so the same data works
against the in-memory and the Postgres record store.

Usage:
    user = make_member_user()
    with override_auth(app, user):
        response = await client.get("/store/cart")
"""

import uuid
from contextlib import contextmanager
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Optional

from fastapi import HTTPException, status
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.models import AuthUser

# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def make_member_user(
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    full_name: str = "Test Shopper",
) -> AuthUser:
    user_id = user_id or str(uuid.uuid4())
    return AuthUser(
        user_id=user_id,
        email=email or f"shopper-{user_id[:8]}@test.com",
        role="authenticated",
        user_metadata={"full_name": full_name},
    )


def make_service_user() -> AuthUser:
    """A caller holding the Supabase service_role claim."""
    return AuthUser(
        user_id=str(uuid.uuid4()),
        email="service@test.com",
        role="service_role",
    )


@contextmanager
def override_auth(app, user: Optional[AuthUser]):
    """Make ``app`` see ``user`` as the caller; ``None`` means signed out."""

    async def _current_user():
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
            )
        return user

    async def _optional_user():
        return user

    previous = {
        dep: app.dependency_overrides.get(dep)
        for dep in (get_current_user, get_optional_user)
    }
    app.dependency_overrides[get_current_user] = _current_user
    app.dependency_overrides[get_optional_user] = _optional_user
    try:
        yield user
    finally:
        for dep, override in previous.items():
            if override is None:
                app.dependency_overrides.pop(dep, None)
            else:
                app.dependency_overrides[dep] = override


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


def shipping_form(**overrides) -> dict:
    """A valid checkout form in the camelCase the storefront UI sends."""
    form = {
        "fullName": "Ada Lovelace",
        "email": "ada@example.com",
        "address": "12 Analytical Row",
        "city": "London",
        "postalCode": "N1 9GU",
        "country": "United Kingdom",
    }
    form.update(overrides)
    return form


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


async def create_profile(store, user: AuthUser, *, is_admin: bool = False) -> dict:
    return await store.insert(
        "profiles",
        {
            "id": user.user_id,
            "email": user.email,
            "full_name": user.full_name,
            "is_admin": is_admin,
        },
    )


async def create_product(store, **overrides) -> dict:
    values = {
        "name": f"Product {uuid.uuid4().hex[:6]}",
        "description": "A product for tests",
        "price": Decimal("10.00"),
        "stock_quantity": 10,
    }
    values.update(overrides)
    return await store.insert("products", values)


# ---------------------------------------------------------------------------
# Supabase Auth
# ---------------------------------------------------------------------------


def user_payload(
    user_id: Optional[str] = None,
    email: str = "ada@example.com",
    full_name: str = "Ada Lovelace",
) -> dict:
    """A GoTrue user as the SDK returns it."""
    return {
        "id": user_id or str(uuid.uuid4()),
        "email": email,
        "role": "authenticated",
        "user_metadata": {"full_name": full_name},
    }


def session_payload(user: dict, access_token: str = "access-token") -> dict:
    return {
        "access_token": access_token,
        "refresh_token": "refresh-token",
        "token_type": "bearer",
        "expires_in": 3600,
        "user": user,
    }


def auth_response(user: Optional[dict] = None, session: Optional[dict] = None) -> SimpleNamespace:
    return SimpleNamespace(user=user or (session or {}).get("user"), session=session)


class FakeSupabaseAuth:
    """Stands in for ``Client.auth`` of the supabase SDK.

    ``responses`` maps a method name to its return value, or to an exception
    to raise. Calls are recorded in ``calls``. Subscribers hear SIGNED_IN and
    SIGNED_OUT the way the SDK emits them.
    """

    def __init__(self, responses: Optional[dict] = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, tuple]] = []
        self._subscribers: dict[str, Any] = {}
        self.admin = SimpleNamespace(sign_out=self._admin_sign_out)

    def _answer(self, method: str, *args):
        self.calls.append((method, args))
        answer = self.responses.get(method)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def _notify(self, event: str, session) -> None:
        for callback in list(self._subscribers.values()):
            callback(event, session)

    def on_auth_state_change(self, callback):
        key = uuid.uuid4().hex
        self._subscribers[key] = callback
        return SimpleNamespace(id=key, unsubscribe=lambda: self._subscribers.pop(key, None))

    def sign_up(self, credentials: dict):
        response = self._answer("sign_up", credentials)
        if response.session is not None:
            self._notify("SIGNED_IN", response.session)
        return response

    def sign_in_with_password(self, credentials: dict):
        response = self._answer("sign_in_with_password", credentials)
        self._notify("SIGNED_IN", response.session)
        return response

    def sign_out(self) -> None:
        self._answer("sign_out")
        self._notify("SIGNED_OUT", None)

    def _admin_sign_out(self, jwt: str, scope: str = "global") -> None:
        self._answer("admin.sign_out", jwt)

    def get_user(self, jwt: Optional[str] = None):
        return self._answer("get_user", jwt)


def fake_supabase(**responses) -> SimpleNamespace:
    """A supabase ``Client`` double exposing only ``auth``."""
    return SimpleNamespace(auth=FakeSupabaseAuth(responses))
