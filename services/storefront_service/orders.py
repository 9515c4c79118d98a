"""Order history and admin status transitions."""

from typing import Optional

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.storefront_service.cart_ledger import PRODUCT_JOIN
from services.storefront_service.errors import AuthRequired, ValidationFailed
from services.storefront_service.models import OrderStatus, PaymentStatus
from services.storefront_service.record_store import Join, RecordStore, Sort
from services.storefront_service.schemas import OrderResponse

logger = get_logger(__name__)

ORDER_LINES_JOIN = Join(
    alias="order_items",
    table="order_items",
    local_key="id",
    remote_key="order_id",
    many=True,
    joins=(PRODUCT_JOIN,),
    order_by=(Sort("created_at"),),
)


async def list_orders(
    store: RecordStore,
    identity: Optional[AuthUser],
    *,
    all_users: bool = False,
) -> list[OrderResponse]:
    """Orders of ``identity``, newest first, with lines joined to products.

    ``all_users`` drops the owner filter; the store's policies still decide
    what is visible.
    """
    if identity is None:
        raise AuthRequired()
    rows = await store.select(
        "orders",
        None if all_users else {"user_id": identity.user_id},
        order_by=[Sort("created_at", descending=True)],
        joins=[ORDER_LINES_JOIN],
    )
    return [OrderResponse.model_validate(r) for r in rows]


async def get_order(
    store: RecordStore, identity: Optional[AuthUser], order_id: str
) -> OrderResponse:
    """Raises ``StoreError(PGRST116)`` when the order is missing or not visible."""
    if identity is None:
        raise AuthRequired()
    row = await store.select_one("orders", {"id": order_id}, joins=[ORDER_LINES_JOIN])
    return OrderResponse.model_validate(row)


def _coerce(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationFailed({field: f"Must be one of: {allowed}"}) from None


async def set_order_status(store: RecordStore, order_id: str, value) -> OrderResponse:
    status = _coerce(OrderStatus, value, "status")
    row = await store.update_one(
        "orders", {"status": status.value}, {"id": order_id}, joins=[ORDER_LINES_JOIN]
    )
    logger.info("Order %s status set to %s", order_id, status.value)
    return OrderResponse.model_validate(row)


async def set_payment_status(store: RecordStore, order_id: str, value) -> OrderResponse:
    payment_status = _coerce(PaymentStatus, value, "payment_status")
    row = await store.update_one(
        "orders",
        {"payment_status": payment_status.value},
        {"id": order_id},
        joins=[ORDER_LINES_JOIN],
    )
    logger.info("Order %s payment status set to %s", order_id, payment_status.value)
    return OrderResponse.model_validate(row)
