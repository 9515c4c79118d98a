"""Storefront service routers package."""

from services.storefront_service.routers.admin import router as admin_router
from services.storefront_service.routers.auth import router as auth_router
from services.storefront_service.routers.cart import router as cart_router
from services.storefront_service.routers.catalog import router as catalog_router
from services.storefront_service.routers.checkout import router as checkout_router
from services.storefront_service.routers.favorites import router as favorites_router
from services.storefront_service.routers.orders import router as orders_router
from services.storefront_service.routers.profile import router as profile_router

__all__ = [
    "admin_router",
    "auth_router",
    "cart_router",
    "catalog_router",
    "checkout_router",
    "favorites_router",
    "orders_router",
    "profile_router",
]
