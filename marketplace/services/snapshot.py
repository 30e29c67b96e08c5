"""
Order-line snapshots.

An order line must keep the product and seller facts exactly as they were
when the order was placed, even if the product is later edited or deleted.
The facts are read once into an immutable ``ProductFacts`` value and the
``OrderItem`` is built only from that value, never from live records.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from marketplace.models.order import Order, OrderItem
from marketplace.models.product import Product, ProductCondition
from marketplace.models.user import User
from marketplace.services.exceptions import InvalidArgumentError


@dataclass(frozen=True)
class ProductFacts:
    """Product and seller values frozen at the moment of purchase."""
    product_id: Optional[int]
    name: str
    price: Decimal
    condition: ProductCondition
    seller_id: Optional[int]
    seller_name: Optional[str]


def seller_display_name(seller: Optional[User]) -> Optional[str]:
    if seller is None:
        return None
    return seller.full_name


def capture_product_facts(product: Product, seller: Optional[User]) -> ProductFacts:
    """
    Copy the snapshot values out of a product and its (explicitly resolved) seller.

    Args:
        product: Product as read inside the purchasing transaction
        seller: The product's seller, or None if the product has none

    Returns:
        Frozen facts; later changes to ``product`` or ``seller`` don't affect them
    """
    return ProductFacts(
        product_id=product.id,
        name=product.name,
        price=Decimal(product.price),
        condition=ProductCondition(product.condition),
        seller_id=seller.id if seller is not None else None,
        seller_name=seller_display_name(seller),
    )


def build_order_item(order: Order, facts: ProductFacts, quantity: int) -> OrderItem:
    """
    Construct an order line from frozen facts.

    Raises:
        InvalidArgumentError: If quantity is less than 1
    """
    if quantity is None or quantity < 1:
        raise InvalidArgumentError(f"Quantity must be at least 1, got {quantity}")

    return OrderItem(
        order=order,
        product_id=facts.product_id,
        quantity=quantity,
        price_at_order=facts.price,
        product_name_at_order=facts.name,
        product_condition_at_order=facts.condition,
        seller_id=facts.seller_id,
        seller_name_at_order=facts.seller_name,
    )


def create_order_item(
    order: Order,
    product: Product,
    seller: Optional[User],
    quantity: int,
) -> OrderItem:
    """Snapshot ``product`` and ``seller`` into a new line of ``order``."""
    return build_order_item(order, capture_product_facts(product, seller), quantity)
