from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated user from Supabase.

    Built either from decoded JWT claims (``sub``) or from a GoTrue user
    payload (``id``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., validation_alias=AliasChoices("sub", "id", "user_id"))
    email: Optional[EmailStr] = None
    role: str = "authenticated"
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return self.user_metadata.get("full_name") or ""

    @property
    def is_service_role(self) -> bool:
        return self.role == "service_role"


class AuthSession(BaseModel):
    """A Supabase session as returned by the password grant."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: AuthUser


class AuthError(BaseModel):
    message: str
    status: Optional[int] = None
    code: Optional[str] = None


class AuthResult(BaseModel):
    """Outcome of an identity call: a session, an error, or neither (sign-out)."""

    session: Optional[AuthSession] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
