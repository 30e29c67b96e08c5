from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from marketplace.models.product import ProductCondition


class ProductBase(BaseModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: Optional[str] = Field(None, description="Free text description")
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Asking price (must be positive)")
    condition: ProductCondition = Field(..., description="Physical condition of the item")
    brand: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    size: Optional[str] = Field(None, max_length=50)
    keywords: Optional[str] = Field(None, description="Free text search keywords")
    location_city: Optional[str] = Field(None, max_length=100)
    location_state: Optional[str] = Field(None, max_length=100)
    negotiable: bool = Field(default=False, description="Whether the price is negotiable")


class ProductCreate(ProductBase):
    """Schema for listing a new product."""
    category_id: int = Field(..., description="ID of the product category")
    seller_id: int = Field(..., description="ID of the listing seller")


class ProductUpdate(BaseModel):
    """Schema for editing descriptive fields of a product. All fields are optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    condition: Optional[ProductCondition] = None
    brand: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    size: Optional[str] = Field(None, max_length=50)
    keywords: Optional[str] = None
    location_city: Optional[str] = Field(None, max_length=100)
    location_state: Optional[str] = Field(None, max_length=100)
    negotiable: Optional[bool] = None


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    price: Decimal
    condition_label: str
    category_id: int
    seller_id: int
    is_available: bool
    is_sold: bool
    view_count: int
    favorite_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for paginated product list response."""
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


SortField = Literal["created_at", "price", "view_count", "name"]
SortDirection = Literal["asc", "desc"]


class ProductSearchFilters(BaseModel):
    """
    Criteria for the composable catalog search.

    Unset criteria impose no constraint; set criteria are combined with AND.
    """
    name: Optional[str] = Field(None, description="Case-insensitive name substring")
    category_id: Optional[int] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    condition: Optional[ProductCondition] = None
    city: Optional[str] = Field(None, description="Case-insensitive city")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)
    sort_by: SortField = "created_at"
    sort_dir: SortDirection = "desc"
