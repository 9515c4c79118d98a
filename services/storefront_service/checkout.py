"""Checkout: turn the cart into an order.

The record store offers no multi-statement transaction, so the four writes
run in sequence and anything written before a failure is compensated:

1. insert the order (total = cart total, status confirmed, payment paid)
2. insert one order line per cart entry at the entry's snapshot price
3. decrement each product's stock with a guarded atomic decrement
4. clear the cart

A failure in 1 leaves nothing behind. A failure in 2 or 3 restores the stock
already taken and deletes the order and its lines. A failure in 4 does not
undo the purchase; it is reported as a warning.

Steps 1, 2 and 4 run as the shopper. Stock changes and the compensating
deletes are not allowed by the shopper's row-level policies; they go through
``system_store``, which only this workflow holds.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.storefront_service.cart_ledger import CartLedger, cart_total
from services.storefront_service.errors import (
    NO_ROWS,
    AuthRequired,
    CheckoutFailed,
    InsufficientStock,
    StoreError,
)
from services.storefront_service.forms import ShippingForm, validate_form
from services.storefront_service.models import OrderStatus, PaymentStatus
from services.storefront_service.notify import NoticeCollector, Notifier
from services.storefront_service.orders import ORDER_LINES_JOIN
from services.storefront_service.record_store import RecordStore
from services.storefront_service.schemas import CartEntry, OrderResponse

logger = get_logger(__name__)

STEP_VALIDATE = "validate"
STEP_CREATE_ORDER = "create_order"
STEP_CREATE_LINES = "create_order_items"
STEP_DECREMENT_STOCK = "decrement_stock"


@dataclass
class PlacedOrder:
    order: OrderResponse
    cart_cleared: bool


class CheckoutWorkflow:
    def __init__(
        self,
        store: RecordStore,
        ledger: CartLedger,
        notifier: Optional[Notifier] = None,
        *,
        system_store: Optional[RecordStore] = None,
    ):
        self.store = store
        self.system_store = system_store or store
        self.ledger = ledger
        self.notifier = notifier or ledger.notifier or NoticeCollector()

    async def place_order(
        self,
        identity: Optional[AuthUser],
        shipping: Union[ShippingForm, Mapping[str, Any]],
    ) -> PlacedOrder:
        """Place an order for everything in the ledger.

        Raises AuthRequired, ValidationFailed, or CheckoutFailed. No write
        happens unless every precondition holds.
        """
        if identity is None:
            raise AuthRequired()
        form = validate_form(ShippingForm, shipping)

        entries = self.ledger.entries
        if not entries:
            raise CheckoutFailed(STEP_VALIDATE, message="Your cart is empty")
        for entry in entries:
            if entry.product.stock_quantity < entry.quantity:
                raise CheckoutFailed(
                    STEP_VALIDATE,
                    InsufficientStock(entry.product_id, entry.quantity, entry.product.stock_quantity),
                    message=f"Only {entry.product.stock_quantity} of {entry.product.name} left",
                )

        total = cart_total(entries)

        # 1. order
        try:
            order = await self.store.insert(
                "orders",
                {
                    "user_id": identity.user_id,
                    "total_amount": total,
                    "shipping_address": form.shipping_address(),
                    # Payment processing is not integrated; orders are paid on placement
                    "status": OrderStatus.CONFIRMED.value,
                    "payment_status": PaymentStatus.PAID.value,
                },
            )
        except StoreError as e:
            logger.error("Checkout failed creating order for %s: %s", identity.user_id, e)
            self.notifier.error("Failed to place order", code=e.code)
            raise CheckoutFailed(STEP_CREATE_ORDER, e) from e

        order_id = order["id"]
        logger.info("Created order %s for %s (total=%s)", order_id, identity.user_id, total)

        # 2. lines, 3. stock
        step = STEP_CREATE_LINES
        taken: list[CartEntry] = []
        try:
            await self.store.insert_many(
                "order_items",
                [
                    {
                        "order_id": order_id,
                        "product_id": entry.product_id,
                        "quantity": entry.quantity,
                        "price": entry.product.price,
                    }
                    for entry in entries
                ],
            )

            step = STEP_DECREMENT_STOCK
            for entry in entries:
                row = await self.system_store.decrement(
                    "products", "stock_quantity", entry.quantity, {"id": entry.product_id}
                )
                if row is None:
                    raise await self._insufficient(entry)
                taken.append(entry)
        except (StoreError, InsufficientStock) as e:
            logger.error("Checkout of order %s failed at %s: %s", order_id, step, e)
            compensated = await self._compensate(identity, order_id, taken)
            if isinstance(e, InsufficientStock):
                self.notifier.error(str(e), code=e.code)
            else:
                self.notifier.error("Failed to place order", code=e.code)
            raise CheckoutFailed(step, e, compensated=compensated, order_id=order_id) from e

        # 4. cart
        cart_cleared = await self.ledger.clear(identity)
        if not cart_cleared:
            logger.warning("Order %s placed but cart of %s was not cleared", order_id, identity.user_id)
            self.notifier.warning(
                "Your order was placed, but the cart could not be emptied"
            )

        self.notifier.success("Order placed successfully!")
        return PlacedOrder(order=await self._reload(order), cart_cleared=cart_cleared)

    async def _insufficient(self, entry: CartEntry) -> InsufficientStock:
        try:
            product = await self.store.select_one("products", {"id": entry.product_id})
            available = product["stock_quantity"]
        except StoreError as e:
            if e.code != NO_ROWS:
                logger.warning("Could not read stock of %s: %s", entry.product_id, e)
            available = None
        return InsufficientStock(entry.product_id, entry.quantity, available)

    async def _compensate(self, identity: AuthUser, order_id: str, taken: list[CartEntry]) -> bool:
        """Undo a partially placed order. Returns True when everything was undone."""
        logger.warning("Compensating order %s (%d stock decrements to restore)", order_id, len(taken))
        complete = True

        for entry in reversed(taken):
            try:
                restored = await self.system_store.increment(
                    "products", "stock_quantity", entry.quantity, {"id": entry.product_id}
                )
            except StoreError as e:
                logger.error("Could not restore stock of %s for order %s: %s", entry.product_id, order_id, e)
                complete = False
                continue
            if restored is None:
                logger.error("Product %s vanished while restoring stock for order %s", entry.product_id, order_id)
                complete = False

        # Lines first; deleting the order also cascades to any that remain
        try:
            await self.system_store.delete("order_items", {"order_id": order_id})
        except StoreError as e:
            logger.warning("Could not delete lines of partial order %s: %s", order_id, e)

        try:
            await self.system_store.delete("orders", {"id": order_id, "user_id": identity.user_id})
        except StoreError as e:
            logger.error("Could not delete partial order %s: %s", order_id, e)
            complete = False

        return complete

    async def _reload(self, order: dict) -> OrderResponse:
        try:
            row = await self.store.select_one("orders", {"id": order["id"]}, joins=[ORDER_LINES_JOIN])
        except StoreError as e:
            # The purchase is committed; answer with what the insert returned
            logger.warning("Could not reload order %s: %s", order["id"], e)
            return OrderResponse.model_validate(order)
        return OrderResponse.model_validate(row)
