from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, Enum, CheckConstraint
)
from sqlalchemy.sql import func
import enum

from marketplace.database import Base


class ProductCondition(str, enum.Enum):
    """Enum for the physical condition of a secondhand product."""
    NEW = "NEW"
    LIKE_NEW = "LIKE_NEW"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"

    @property
    def label(self) -> str:
        return CONDITION_LABELS[self]


CONDITION_LABELS = {
    ProductCondition.NEW: "New",
    ProductCondition.LIKE_NEW: "Like New",
    ProductCondition.GOOD: "Good",
    ProductCondition.FAIR: "Fair",
    ProductCondition.POOR: "Poor",
}


class Product(Base):
    """
    Product model representing a secondhand item listed by a seller.

    Attributes:
        id: Unique identifier for the product
        name: Product name
        price: Asking price (must be positive)
        condition: Physical condition of the item
        category_id: Reference to the category
        seller_id: Reference to the listing user
        is_available: Whether the product is listed for sale
        is_sold: Whether the product has been sold (sold implies unavailable)
        view_count: Number of detail views
        favorite_count: Number of users who favorited the product
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    condition = Column(Enum(ProductCondition), nullable=False, index=True)

    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    color = Column(String(50), nullable=True)
    size = Column(String(50), nullable=True)
    keywords = Column(Text, nullable=True)

    location_city = Column(String(100), nullable=True)
    location_state = Column(String(100), nullable=True)
    negotiable = Column(Boolean, nullable=False, default=False)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    is_available = Column(Boolean, nullable=False, default=True, index=True)
    is_sold = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)
    favorite_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('price > 0', name='check_price_positive'),
        CheckConstraint('view_count >= 0', name='check_view_count_non_negative'),
        CheckConstraint('favorite_count >= 0', name='check_favorite_count_non_negative'),
        CheckConstraint('NOT (is_sold AND is_available)', name='check_sold_implies_unavailable'),
    )

    @property
    def condition_label(self) -> str:
        return ProductCondition(self.condition).label

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"
