from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime


class UserCreate(BaseModel):
    """Schema for creating a seller/buyer profile."""
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class SellerRatingUpdate(BaseModel):
    rating: float = Field(..., ge=0)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    seller_rating: float
    total_sales: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
