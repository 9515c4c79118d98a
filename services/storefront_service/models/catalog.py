"""Storefront catalog models: categories and products."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column


def new_id() -> str:
    return str(uuid.uuid4())


class Category(Base):
    """Product categories (e.g., 'Electronics', 'Books')."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=new_id
    )
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<Category {self.name}>"


class Product(Base):
    """Products in the catalog. Only active products are visible to shoppers."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=new_id
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    images: Mapped[list[str]] = mapped_column(
        ARRAY(Text), default=list, server_default="{}"
    )

    # Inventory
    stock_quantity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0"
    )

    # Merchandising
    is_featured: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true"
    )
    rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), default=Decimal("0"), server_default="0"
    )
    review_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # ``info["check"]`` mirrors the SQL expression for the in-memory store.
    __table_args__ = (
        CheckConstraint(
            "price >= 0",
            name="price_non_negative",
            info={"check": lambda row: row["price"] >= 0},
        ),
        CheckConstraint(
            "stock_quantity >= 0",
            name="stock_non_negative",
            info={"check": lambda row: row["stock_quantity"] >= 0},
        ),
        CheckConstraint(
            "rating >= 0 AND rating <= 5",
            name="rating_range",
            info={"check": lambda row: 0 <= row["rating"] <= 5},
        ),
    )

    def __repr__(self):
        return f"<Product {self.name} stock={self.stock_quantity}>"
