from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal

from marketplace.models.product import ProductCondition


class CategoryStats(BaseModel):
    """Count and average price of available products in one category."""
    category_id: int
    category_name: str
    product_count: int
    average_price: Decimal


class ConditionStats(BaseModel):
    condition: ProductCondition
    label: str
    product_count: int


class CategoryAveragePrice(BaseModel):
    category_name: str
    average_price: Decimal


class SalesReport(BaseModel):
    """Sum of delivered order totals created within [start, end]."""
    start: datetime
    end: datetime
    total_sales: Decimal
