"""Storefront commerce models: profiles, cart items, orders, favorites."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.storefront_service.models.catalog import new_id
from services.storefront_service.models.enums import (
    OrderStatus,
    PaymentStatus,
    enum_values,
)
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

ORDER_STATUSES = enum_values(OrderStatus)
PAYMENT_STATUSES = enum_values(PaymentStatus)


def _in_clause(column: str, values: list[str]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


# ============================================================================
# PROFILES
# ============================================================================


class Profile(Base):
    """Mirror of a Supabase auth user. ``id`` is the auth user id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_admin: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<Profile {self.email}>"


# ============================================================================
# CART
# ============================================================================


class CartItem(Base):
    """One row per (user, product). Upserts overwrite the quantity."""

    __tablename__ = "cart_items"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=new_id
    )
    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    product_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1, server_default="1")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
        CheckConstraint(
            "quantity > 0",
            name="quantity_positive",
            info={"check": lambda row: row["quantity"] > 0},
        ),
    )

    def __repr__(self):
        return f"<CartItem {self.product_id} x{self.quantity}>"


# ============================================================================
# ORDERS
# ============================================================================


class Order(Base):
    """Placed orders. Status columns hold the plain text values."""

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=new_id
    )
    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=OrderStatus.PENDING.value, server_default="pending"
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    shipping_address: Mapped[dict] = mapped_column(JSONB, nullable=False)
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.PENDING.value, server_default="pending"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            _in_clause("status", ORDER_STATUSES),
            name="status_valid",
            info={"check": lambda row: row["status"] in ORDER_STATUSES},
        ),
        CheckConstraint(
            _in_clause("payment_status", PAYMENT_STATUSES),
            name="payment_status_valid",
            info={"check": lambda row: row["payment_status"] in PAYMENT_STATUSES},
        ),
        CheckConstraint(
            "total_amount >= 0",
            name="total_non_negative",
            info={"check": lambda row: row["total_amount"] >= 0},
        ),
        Index("ix_orders_user_id_created_at", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Order {self.id} status={self.status}>"


class OrderItem(Base):
    """Order lines. ``price`` is the unit price captured when the order was placed."""

    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=new_id
    )
    order_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="quantity_positive",
            info={"check": lambda row: row["quantity"] > 0},
        ),
        CheckConstraint(
            "price >= 0",
            name="price_non_negative",
            info={"check": lambda row: row["price"] >= 0},
        ),
    )

    def __repr__(self):
        return f"<OrderItem {self.product_id} x{self.quantity} @ {self.price}>"


# ============================================================================
# FAVORITES
# ============================================================================


class Favorite(Base):
    """Wishlist entries, unique per (user, product)."""

    __tablename__ = "favorites"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=new_id
    )
    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    product_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_favorites_user_product"),
    )

    def __repr__(self):
        return f"<Favorite {self.product_id}>"
