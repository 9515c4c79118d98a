"""Storefront models package."""

from services.storefront_service.models.catalog import Category, Product, new_id
from services.storefront_service.models.commerce import (
    CartItem,
    Favorite,
    Order,
    OrderItem,
    Profile,
)
from services.storefront_service.models.enums import OrderStatus, PaymentStatus

__all__ = [
    "CartItem",
    "Category",
    "Favorite",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Product",
    "Profile",
    "new_id",
]
