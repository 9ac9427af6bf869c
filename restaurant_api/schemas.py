"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase keys. Request schemas also accept snake_case
names and reject unknown fields.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from restaurant_api.models import OrderStatus


# Money is stored as NUMERIC(10, 2) and rendered as a JSON number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float)]

Price = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2, examples=[12.5])]

# Ids are stored in 32-bit INTEGER columns
ID_MIN = -(2**31)
ID_MAX = 2**31 - 1
RecordId = Annotated[int, Field(ge=ID_MIN, le=ID_MAX, examples=[1])]


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class ResponseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CustomerCreate(RequestModel):
    """Request schema for registering a customer."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Jane Doe"])
    email: Optional[str] = Field(None, max_length=255, examples=["jane@example.com"])
    phone: Optional[str] = Field(None, max_length=20, examples=["555-123-4567"])
    address: Optional[str] = Field(None, max_length=255)


class RestaurantCreate(RequestModel):
    """Request schema for registering a restaurant."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Pizza Palace"])
    location: Optional[str] = Field(None, max_length=255, examples=["350 Fifth Avenue"])


class MenuItemCreate(RequestModel):
    """Request schema for adding a dish to a restaurant's menu."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Pizza Margherita"])
    description: Optional[str] = Field(None, max_length=1000)
    price: Price
    is_available: bool = True


class MenuItemUpdate(RequestModel):
    """Partial update; only the supplied fields are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[Price] = None
    is_available: Optional[bool] = None

    @field_validator("name", "price", "is_available")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        # Only called for explicitly supplied values
        if v is None:
            raise ValueError("may not be null")
        return v


class OrderLineCreate(RequestModel):
    """Single requested line of an order."""
    menu_item_id: RecordId
    quantity: int = Field(..., ge=1, le=ID_MAX, examples=[2])


class OrderCreate(RequestModel):
    """Request schema for placing an order."""
    customer_id: RecordId
    restaurant_id: RecordId
    items: List[OrderLineCreate]


class OrderStatusUpdate(RequestModel):
    status: OrderStatus = Field(..., examples=["Completed"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class CustomerResponse(ResponseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


class TopCustomerResponse(ResponseModel):
    """Customer ranked by number of orders."""
    id: int
    name: str
    order_count: int


class RestaurantResponse(ResponseModel):
    id: int
    name: str
    location: Optional[str] = None
    created_at: Optional[datetime] = None


class MenuItemResponse(ResponseModel):
    id: int
    restaurant_id: int
    name: str
    description: Optional[str] = None
    price: Money
    is_available: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderItemResponse(ResponseModel):
    id: int
    order_id: int
    menu_item_id: int
    quantity: int


class OrderResponse(ResponseModel):
    """Order with its line items."""
    id: int
    customer_id: int
    restaurant_id: int
    total_price: Money
    status: OrderStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    order_items: List[OrderItemResponse] = []


class RevenueResponse(ResponseModel):
    revenue: Money


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime
