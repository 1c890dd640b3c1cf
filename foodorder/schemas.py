"""
Pydantic Schemas for Request/Response Validation

The public API speaks camelCase JSON (``restaurantId``, ``cartItems``,
``menuItemId``...). Every schema generates camelCase aliases and still
accepts snake_case names so the same models can be built from ORM rows and
stored JSON documents.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from foodorder.models import OrderStatus


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# USERS
# =============================================================================

class UserCreate(CamelModel):
    """First-login registration sent by the web client."""
    auth0_id: NonEmptyStr
    email: NonEmptyStr
    name: Optional[str] = None


class UserUpdate(CamelModel):
    """Profile form; every field is required."""
    name: NonEmptyStr
    address_line1: NonEmptyStr
    city: NonEmptyStr
    country: NonEmptyStr


class UserResponse(CamelModel):
    id: str
    auth0_id: str
    email: str
    name: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


# =============================================================================
# RESTAURANTS
# =============================================================================

class MenuItem(CamelModel):
    """A menu entry. ``price`` is in major currency units."""
    id: Optional[str] = None
    name: NonEmptyStr
    price: int = Field(..., ge=0, examples=[500])


class RestaurantRequest(CamelModel):
    """Body of create/update my restaurant."""
    restaurant_name: NonEmptyStr
    city: NonEmptyStr
    country: NonEmptyStr
    delivery_price: int = Field(..., ge=0, examples=[300])
    estimated_delivery_time: int = Field(..., gt=0, examples=[30])
    cuisines: List[NonEmptyStr] = Field(..., min_length=1)
    menu_items: List[MenuItem] = Field(default_factory=list)
    image_url: Optional[str] = None


class RestaurantResponse(CamelModel):
    id: str
    user_id: str
    restaurant_name: str
    city: str
    country: str
    delivery_price: int
    estimated_delivery_time: int
    cuisines: List[str]
    menu_items: List[MenuItem]
    image_url: Optional[str] = None
    last_updated: datetime


class Pagination(BaseModel):
    total: int
    page: int
    pages: int


class RestaurantSearchResponse(BaseModel):
    data: List[RestaurantResponse]
    pagination: Pagination


# =============================================================================
# ORDERS
# =============================================================================

class CartItem(CamelModel):
    """
    One cart line. ``name`` is informational only; checkout prices and
    labels lines from the restaurant's menu.
    """
    menu_item_id: NonEmptyStr
    name: str
    quantity: str = Field(..., examples=["2"])

    @field_validator("quantity", mode="before")
    @classmethod
    def validate_quantity(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str):
            raise ValueError("quantity must be a string")
        try:
            parsed = int(v.strip())
        except ValueError:
            raise ValueError("quantity must be a whole number")
        if parsed < 1:
            raise ValueError("quantity must be at least 1")
        return v.strip()


class DeliveryDetails(CamelModel):
    email: str
    name: str
    address_line1: str
    city: str


class CheckoutSessionRequest(CamelModel):
    restaurant_id: NonEmptyStr
    cart_items: List[CartItem] = Field(..., min_length=1)
    delivery_details: DeliveryDetails


class CheckoutSessionResponse(BaseModel):
    url: str


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderResponse(CamelModel):
    """Order with its restaurant and customer embedded."""
    id: str
    restaurant: RestaurantResponse
    user: UserResponse
    status: OrderStatus
    delivery_details: DeliveryDetails
    cart_items: List[CartItem]
    total_amount: Optional[int] = None
    created_at: datetime


# =============================================================================
# MISC
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    message: str
    status: str
    database: str
    payment_gateway: str
    timestamp: datetime
