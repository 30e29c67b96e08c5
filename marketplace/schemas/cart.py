from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional


class CartItemAdd(BaseModel):
    """Schema for putting a product in a cart."""
    product_id: int
    quantity: int = Field(default=1, ge=1)


class CartItemQuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class CartItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    price_at_time: Decimal
    line_total: Decimal
    added_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CartResponse(BaseModel):
    """A user's cart with its running total."""
    user_id: int
    items: list[CartItemResponse]
    item_count: int
    total: Decimal
