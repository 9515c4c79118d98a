"""Pydantic schemas for the storefront service."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.storefront_service.models import OrderStatus, PaymentStatus

# ============================================================================
# NOTICES
# ============================================================================


class Notice(BaseModel):
    """A user-facing notification (the UI renders these as toasts)."""

    level: Literal["success", "warning", "error"]
    message: str
    code: Optional[str] = None


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    images: list[str] = []
    stock_quantity: int = Field(0, ge=0)
    is_featured: bool = False
    is_active: bool = True
    rating: Decimal = Field(Decimal("0"), ge=0, le=5)
    review_count: int = Field(0, ge=0)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    images: Optional[list[str]] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: datetime
    category: Optional[CategoryResponse] = None


class CatalogResponse(BaseModel):
    products: list[ProductResponse]
    featured: list[ProductResponse]
    categories: list[CategoryResponse]


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartEntry(BaseModel):
    """A cart row joined with the product snapshot it was loaded with."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    created_at: datetime
    updated_at: datetime
    product: ProductResponse


class CartItemCreate(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    # Zero or less removes the item
    quantity: int


class CartResponse(BaseModel):
    items: list[CartEntry]
    total: Decimal
    count: int
    notices: list[Notice] = []


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal
    created_at: datetime
    product: Optional[ProductResponse] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    status: OrderStatus
    payment_status: PaymentStatus
    total_amount: Decimal
    shipping_address: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    order_items: list[OrderLineResponse] = []


class OrderStatusUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


class CheckoutResponse(BaseModel):
    order: OrderResponse
    cart_cleared: bool
    notices: list[Notice] = []


# ============================================================================
# FAVORITES / PROFILE SCHEMAS
# ============================================================================


class FavoriteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    product_id: str
    created_at: datetime
    product: Optional[ProductResponse] = None


class FavoriteToggleResponse(BaseModel):
    product_id: str
    is_favorite: bool
    notices: list[Notice] = []


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_admin: bool = False
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class AuthSessionResponse(BaseModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
    confirmation_required: bool = False
