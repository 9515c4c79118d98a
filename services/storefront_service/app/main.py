"""FastAPI application for the Storefront Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.storefront_service.dependencies import get_record_store
from services.storefront_service.record_store import MemoryRecordStore
from services.storefront_service.routers._helpers import request_validation_handler
from services.storefront_service.routers import (
    admin_router,
    auth_router,
    cart_router,
    catalog_router,
    checkout_router,
    favorites_router,
    orders_router,
    profile_router,
)
from services.storefront_service.seed_store_data import seed_catalog
from slowapi.errors import RateLimitExceeded

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_record_store()
    if isinstance(store, MemoryRecordStore):
        # Nothing persists between runs; give shoppers something to browse
        seeded = await seed_catalog(store)
        logger.info("Seeded in-memory catalog with %d products", len(seeded))
    yield


def create_app() -> FastAPI:
    """Create and configure the Storefront Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="ShopHub Storefront Service",
        version="0.1.0",
        description="Storefront: catalog, cart, checkout, orders and favorites.",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Structured logging + request tracing
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "storefront"}

    app.include_router(auth_router, prefix="/auth")
    app.include_router(profile_router, prefix="/profile")

    # Shopper routes
    app.include_router(catalog_router, prefix="/store")
    app.include_router(cart_router, prefix="/store")
    app.include_router(checkout_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")
    app.include_router(favorites_router, prefix="/store")

    # Admin routes (catalog management, order status)
    app.include_router(admin_router, prefix="/admin/store")

    return app


app = create_app()
