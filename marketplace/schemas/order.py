from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from marketplace.models.order import OrderStatus, PaymentStatus
from marketplace.models.product import ProductCondition


class OrderItemCreate(BaseModel):
    """Schema for a single line of a new order."""
    product_id: int = Field(..., description="ID of the product to purchase")
    quantity: int = Field(default=1, ge=1, description="Quantity to purchase")


class OrderCreate(BaseModel):
    """Schema for placing a new order."""
    buyer_id: int = Field(..., description="ID of the purchasing user")
    items: list[OrderItemCreate] = Field(..., min_length=1, description="Order lines")


class OrderItemQuantityUpdate(BaseModel):
    """Schema for adjusting a line quantity before checkout is finalized."""
    quantity: int = Field(..., ge=1)


class OrderStatusUpdate(BaseModel):
    """Schema for advancing an order's status."""
    status: OrderStatus


class OrderItemResponse(BaseModel):
    """Schema for an order line, exposing the snapshot taken at purchase time."""
    id: int
    product_id: Optional[int] = None
    quantity: int
    price_at_order: Decimal
    product_name_at_order: Optional[str] = None
    product_condition_at_order: Optional[ProductCondition] = None
    seller_id: Optional[int] = None
    seller_name_at_order: Optional[str] = None
    display_name: str
    display_condition: str
    line_total: Decimal


class OrderResponse(BaseModel):
    """Schema for order response."""
    id: int
    order_number: str
    buyer_id: int
    order_status: OrderStatus
    payment_status: PaymentStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Schema for paginated order list response."""
    items: list[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
