from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, CheckConstraint, event, inspect
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from marketplace.database import Base
from marketplace.models.product import Product, ProductCondition
from marketplace.services.exceptions import SnapshotImmutableError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Enum for order status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Enum for payment status. Payment itself is handled outside this service."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Order(Base):
    """
    Order model representing a purchase by a buyer.

    Attributes:
        id: Unique identifier for the order
        order_number: Human readable unique order number
        buyer_id: Reference to the purchasing user
        order_status: Current status of the order
        payment_status: Current payment status
        total_amount: Sum of the line totals
        items: Order lines owned by this order
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(40), nullable=False, unique=True, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    # Set client-side so stored values compare exactly against bound datetimes
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order(id={self.id}, order_number='{self.order_number}', status='{self.order_status}')>"


class OrderItem(Base):
    """
    A single order line.

    Product and seller facts are copied into the ``*_at_order`` columns when
    the line is created and are never refreshed from the live records.
    ``product_id`` is kept for traceability only and is cleared when the
    product is deleted.
    """
    __tablename__ = "order_items"

    SNAPSHOT_FIELDS = (
        "price_at_order",
        "product_name_at_order",
        "product_condition_at_order",
        "seller_id",
        "seller_name_at_order",
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=1)

    price_at_order = Column(Numeric(10, 2), nullable=False)
    product_name_at_order = Column(String(255), nullable=True)
    product_condition_at_order = Column(Enum(ProductCondition), nullable=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    seller_name_at_order = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint('quantity >= 1', name='check_quantity_positive'),
    )

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price_at_order) * self.quantity

    def display_name(self, product: Optional[Product] = None) -> str:
        """Snapshot name, else the live product's name, else a placeholder."""
        if self.product_name_at_order is not None:
            return self.product_name_at_order
        if product is not None:
            return product.name
        return "Unknown Product"

    def display_condition(self, product: Optional[Product] = None) -> str:
        """Snapshot condition label, else the live product's, else a placeholder."""
        if self.product_condition_at_order is not None:
            return ProductCondition(self.product_condition_at_order).label
        if product is not None and product.condition is not None:
            return product.condition_label
        return "Unknown"

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, quantity={self.quantity})>"


@event.listens_for(OrderItem, "before_update")
def _reject_snapshot_changes(mapper, connection, target):
    state = inspect(target)
    changed = [
        name for name in OrderItem.SNAPSHOT_FIELDS
        if state.attrs[name].history.has_changes()
    ]
    if changed:
        raise SnapshotImmutableError(
            f"Order item {target.id} snapshot fields are immutable: {', '.join(changed)}"
        )
