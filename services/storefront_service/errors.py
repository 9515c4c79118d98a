"""Storefront error taxonomy."""

from typing import Any, Optional

# PostgREST / Postgres codes the storefront cares about
NO_ROWS = "PGRST116"
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"
INSUFFICIENT_PRIVILEGE = "42501"
CONNECTION_FAILURE = "08006"


class StorefrontError(Exception):
    """Base class for storefront failures."""

    message = "Storefront error"
    code: Optional[str] = None

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class AuthRequired(StorefrontError):
    message = "Please sign in to continue"
    code = "auth_required"


class ValidationFailed(StorefrontError):
    """Malformed form input. ``errors`` maps field name to message."""

    message = "Invalid input"
    code = "validation_failed"

    def __init__(self, errors: dict[str, str], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors


class StoreError(StorefrontError):
    """The record store rejected a call."""

    message = "Record store request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details
        self.hint = hint

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class InsufficientStock(StorefrontError):
    message = "Not enough stock"
    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: Optional[int] = None):
        detail = f"Only {available} available" if available is not None else self.message
        super().__init__(f"{detail} for product {product_id} (requested {requested})")
        self.product_id = product_id
        self.requested = requested
        self.available = available


class CheckoutFailed(StorefrontError):
    """Aggregate checkout failure.

    ``step`` names the step that failed. ``compensated`` is True when every
    write made before the failure was undone (or nothing had been written).
    """

    message = "Failed to place order"
    code = "checkout_failed"

    def __init__(
        self,
        step: str,
        cause: Optional[Exception] = None,
        *,
        compensated: bool = True,
        order_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        super().__init__(message)
        self.step = step
        self.cause = cause
        self.compensated = compensated
        self.order_id = order_id
