"""Store catalog router: categories and the filtered product listing."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from services.storefront_service.catalog import CATEGORY_JOIN, CatalogView
from services.storefront_service.dependencies import StoreContext, get_store_context
from services.storefront_service.errors import StoreError
from services.storefront_service.record_store import Sort
from services.storefront_service.routers._helpers import raise_for_notices, to_http_exception
from services.storefront_service.schemas import (
    CatalogResponse,
    CategoryResponse,
    ProductResponse,
)

router = APIRouter(tags=["store"])


# ============================================================================
# CATALOG - CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(ctx: StoreContext = Depends(get_store_context)):
    """List all categories, by name."""
    try:
        rows = await ctx.store.select("categories", order_by=[Sort("name")])
    except StoreError as e:
        raise to_http_exception(e) from e
    return [CategoryResponse.model_validate(r) for r in rows]


# ============================================================================
# CATALOG - PRODUCTS
# ============================================================================


@router.get("/products", response_model=CatalogResponse)
async def list_products(
    q: Optional[str] = Query(None, description="Search name and description"),
    category_id: Optional[str] = Query(None),
    ctx: StoreContext = Depends(get_store_context),
):
    """Active products, newest first. Featured products are only listed without filters."""
    view = CatalogView(ctx.store, ctx.notices)
    if not await view.load():
        raise_for_notices(ctx.notices)

    page = view.view(q, category_id)
    return CatalogResponse(
        products=page.products,
        featured=page.featured,
        categories=page.categories,
    )


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    ctx: StoreContext = Depends(get_store_context),
):
    """Get a single product with its category."""
    try:
        row = await ctx.store.select_one(
            "products", {"id": product_id}, joins=[CATEGORY_JOIN]
        )
    except StoreError as e:
        raise to_http_exception(e) from e
    return ProductResponse.model_validate(row)
