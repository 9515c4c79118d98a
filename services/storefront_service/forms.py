"""User-submitted forms: shipping details and auth credentials."""

from typing import Any, Iterable, Mapping, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError

from services.storefront_service.errors import ValidationFailed

MIN_PASSWORD_LENGTH = 6

FormT = TypeVar("FormT", bound=BaseModel)


class _Form(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)


class ShippingForm(_Form):
    """Checkout form. Accepts camelCase keys as sent by the storefront UI."""

    full_name: str = Field(..., min_length=1, alias="fullName")
    email: EmailStr
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1, alias="postalCode")
    country: str = Field(..., min_length=1)

    def shipping_address(self) -> dict[str, str]:
        """The address as stored on the order (email is not part of it)."""
        return self.model_dump(by_alias=True, exclude={"email"})


class SignUpForm(_Form):
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    full_name: str = Field(..., min_length=1, alias="fullName")


class SignInForm(_Form):
    email: EmailStr
    password: str = Field(..., min_length=1)


def field_errors(errors: Iterable[Mapping[str, Any]], skip: Sequence[str] = ()) -> dict[str, str]:
    """First message per field from pydantic error dicts.

    Leading location parts named in ``skip`` (FastAPI's ``body``) are dropped.
    """
    fields: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error["loc"]]
        if loc and loc[0] in skip:
            loc = loc[1:]
        fields.setdefault(".".join(loc) or "__root__", error["msg"])
    return fields


def validate_form(form_cls: Type[FormT], data: Any) -> FormT:
    """Parse ``data`` into ``form_cls`` or raise ``ValidationFailed`` with per-field messages."""
    if isinstance(data, form_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, Mapping):
        raise ValidationFailed({"__root__": "Expected an object"})
    try:
        return form_cls.model_validate(dict(data))
    except ValidationError as e:
        raise ValidationFailed(field_errors(e.errors())) from e
