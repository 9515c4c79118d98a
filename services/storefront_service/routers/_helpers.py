"""Shared helpers for storefront routers: error translation."""

from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from services.storefront_service.errors import (
    CHECK_VIOLATION,
    FOREIGN_KEY_VIOLATION,
    INSUFFICIENT_PRIVILEGE,
    NO_ROWS,
    NOT_NULL_VIOLATION,
    UNIQUE_VIOLATION,
    AuthRequired,
    CheckoutFailed,
    InsufficientStock,
    StoreError,
    StorefrontError,
    ValidationFailed,
)
from services.storefront_service.forms import field_errors
from services.storefront_service.notify import NoticeCollector

CONFLICT_CODES = {UNIQUE_VIOLATION, FOREIGN_KEY_VIOLATION, CHECK_VIOLATION, NOT_NULL_VIOLATION}


def status_for_store_code(code: Optional[str]) -> int:
    if code == NO_ROWS:
        return status.HTTP_404_NOT_FOUND
    if code == INSUFFICIENT_PRIVILEGE:
        return status.HTTP_403_FORBIDDEN
    if code in CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    if code == AuthRequired.code:
        return status.HTTP_401_UNAUTHORIZED
    return status.HTTP_502_BAD_GATEWAY


def _stock_detail(exc: InsufficientStock) -> dict:
    return {
        "product_id": exc.product_id,
        "requested": exc.requested,
        "available": exc.available,
    }


def to_http_exception(exc: StorefrontError) -> HTTPException:
    """Map a storefront error onto the HTTP status clients act on."""
    if isinstance(exc, AuthRequired):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if isinstance(exc, ValidationFailed):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=validation_failed_detail(exc),
        )

    if isinstance(exc, InsufficientStock):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": exc.message, "code": exc.code, **_stock_detail(exc)},
        )

    if isinstance(exc, CheckoutFailed):
        detail = {
            "message": exc.message,
            "code": exc.code,
            "step": exc.step,
            "compensated": exc.compensated,
            "order_id": exc.order_id,
        }
        if isinstance(exc.cause, InsufficientStock):
            detail["cause"] = {"code": exc.cause.code, **_stock_detail(exc.cause)}
        elif isinstance(exc.cause, StoreError):
            detail["cause"] = {"code": exc.cause.code, "message": exc.cause.message}
        return HTTPException(
            status_code=(
                status.HTTP_502_BAD_GATEWAY
                if isinstance(exc.cause, StoreError)
                else status.HTTP_409_CONFLICT
            ),
            detail=detail,
        )

    if isinstance(exc, StoreError):
        return HTTPException(
            status_code=status_for_store_code(exc.code),
            detail={"message": exc.message, "code": exc.code},
        )

    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


def raise_for_notices(notices: NoticeCollector) -> None:
    """Raise the first error notice as an HTTPException, if there is one."""
    errors = notices.errors
    if not errors:
        return
    first = errors[0]
    raise HTTPException(
        status_code=status_for_store_code(first.code),
        detail={"message": first.message, "code": first.code},
    )


def validation_failed_detail(exc: ValidationFailed) -> dict:
    return {"message": exc.message, "code": exc.code, "errors": exc.errors}


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed request bodies in the same shape as ``ValidationFailed``."""
    failure = ValidationFailed(field_errors(exc.errors(), skip=("body",)))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": validation_failed_detail(failure)},
    )
