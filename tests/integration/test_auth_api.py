"""Integration tests for the auth endpoints with a fake Supabase SDK client."""

import pytest
from libs.auth.identity import SupabaseIdentityProvider
from services.storefront_service.app.main import app
from services.storefront_service.dependencies import get_identity_provider
from supabase import AuthApiError, AuthRetryableError
from tests.factories import auth_response, fake_supabase, session_payload, user_payload

USER_ID = "8d2f1c6e-3b7a-4e0c-9a51-6c2b7d9e4f10"

GRACE = {"email": "grace@example.com", "password": "cobol1959", "fullName": "Grace Hopper"}


def _grace():
    return user_payload(USER_ID, email="grace@example.com", full_name="Grace Hopper")


def _use_provider(**responses):
    client = fake_supabase(**responses)
    provider = SupabaseIdentityProvider(client)
    app.dependency_overrides[get_identity_provider] = lambda: provider
    return client.auth


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_up_creates_profile(client, store):
    auth = _use_provider(sign_up=auth_response(session=session_payload(_grace())))

    response = await client.post("/auth/sign-up", json=GRACE)

    assert response.status_code == 201
    assert response.json()["user_id"] == USER_ID
    assert response.json()["confirmation_required"] is False
    _, (credentials,) = auth.calls[0]
    assert credentials["options"]["data"] == {"full_name": "Grace Hopper"}
    profile = await store.select_one("profiles", {"id": USER_ID})
    assert profile["full_name"] == "Grace Hopper"
    assert profile["is_admin"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_up_awaiting_confirmation(client, store):
    _use_provider(sign_up=auth_response(user=_grace()))

    response = await client.post("/auth/sign-up", json=GRACE)

    assert response.status_code == 201
    assert response.json()["confirmation_required"] is True
    assert response.json()["access_token"] is None
    assert await store.select("profiles") == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_up_validation(client):
    auth = _use_provider()

    response = await client.post(
        "/auth/sign-up",
        json={"email": "not-an-email", "password": "12345", "fullName": ""},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "validation_failed"
    assert set(response.json()["detail"]["errors"]) == {"email", "password", "fullName"}
    assert auth.calls == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_up_duplicate_email(client):
    _use_provider(sign_up=AuthApiError("User already registered", 422, "user_already_exists"))

    response = await client.post("/auth/sign-up", json=GRACE)

    assert response.status_code == 400
    assert response.json()["detail"] == {
        "message": "User already registered",
        "code": "user_already_exists",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_in(client):
    _use_provider(sign_in_with_password=auth_response(session=session_payload(_grace())))

    response = await client.post(
        "/auth/sign-in", json={"email": "grace@example.com", "password": "cobol1959"}
    )

    assert response.status_code == 200
    assert response.json()["access_token"] == "access-token"
    assert response.json()["email"] == "grace@example.com"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_in_bad_credentials(client):
    _use_provider(
        sign_in_with_password=AuthApiError("Invalid login credentials", 400, "invalid_credentials")
    )

    response = await client.post(
        "/auth/sign-in", json={"email": "grace@example.com", "password": "wrong"}
    )

    assert response.status_code == 401
    assert response.json()["detail"]["message"] == "Invalid login credentials"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_in_provider_unreachable(client):
    _use_provider(sign_in_with_password=AuthRetryableError("connection refused", 0))

    response = await client.post(
        "/auth/sign-in", json={"email": "grace@example.com", "password": "cobol1959"}
    )

    assert response.status_code == 502


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sign_out_revokes_bearer_token(client):
    auth = _use_provider()

    response = await client.post(
        "/auth/sign-out", headers={"Authorization": "Bearer access-token"}
    )
    anonymous = await client.post("/auth/sign-out")

    assert response.status_code == 204
    assert anonymous.status_code == 204
    assert auth.calls == [("admin.sign_out", ("access-token",))]
