from sqlalchemy.orm import Session
from sqlalchemy import func
from decimal import Decimal
from typing import List
import logging

from marketplace.models.cart import CartItem
from marketplace.models.order import Order
from marketplace.models.product import Product
from marketplace.models.user import User
from marketplace.schemas.order import OrderCreate, OrderItemCreate
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.services.order_service import OrderService
from marketplace.utils.money import to_money

logger = logging.getLogger(__name__)


class CartService:
    """
    Service class for shopping carts.

    A cart holds at most one line per product. Quantities can be changed
    freely until checkout, which turns the cart into a pending order and
    empties it in the same transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user_id: int) -> List[CartItem]:
        self._get_user_or_raise(user_id)
        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.id)
            .all()
        )

    def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
        """
        Put a product in the cart, or raise the quantity if it's already there.

        The price is recorded the first time the product enters the cart.

        Raises:
            NotFoundError: If the user or product doesn't exist
            InvalidArgumentError: If quantity < 1 or the product is not available
        """
        if quantity is None or quantity < 1:
            raise InvalidArgumentError(f"Quantity must be at least 1, got {quantity}")

        self._get_user_or_raise(user_id)
        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        if not product.is_available or product.is_sold:
            raise InvalidArgumentError(f"Product with ID {product_id} is not available")

        item = self._find(user_id, product_id)
        if item is None:
            item = CartItem(
                user_id=user_id,
                product_id=product_id,
                quantity=quantity,
                price_at_time=Decimal(product.price),
            )
            self.db.add(item)
        else:
            item.quantity += quantity

        self.db.commit()
        self.db.refresh(item)
        return item

    def update_quantity(self, user_id: int, product_id: int, quantity: int) -> CartItem:
        if quantity is None or quantity < 1:
            raise InvalidArgumentError(f"Quantity must be at least 1, got {quantity}")

        item = self._get_item_or_raise(user_id, product_id)
        item.quantity = quantity
        self.db.commit()
        self.db.refresh(item)
        return item

    def remove_item(self, user_id: int, product_id: int) -> None:
        item = self._get_item_or_raise(user_id, product_id)
        self.db.delete(item)
        self.db.commit()

    def clear(self, user_id: int) -> int:
        """Empty the cart. Returns the number of lines removed."""
        self._get_user_or_raise(user_id)
        removed = (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed

    def total(self, user_id: int) -> Decimal:
        """Sum of ``price_at_time * quantity`` over the cart; 0 for an empty cart."""
        value = (
            self.db.query(func.sum(CartItem.price_at_time * CartItem.quantity))
            .filter(CartItem.user_id == user_id)
            .scalar()
        )
        return to_money(value)

    def count_items(self, user_id: int) -> int:
        """Number of distinct products in the cart."""
        return (
            self.db.query(func.count(CartItem.id))
            .filter(CartItem.user_id == user_id)
            .scalar()
        )

    def checkout(self, user_id: int) -> Order:
        """
        Place an order for everything in the cart and empty it.

        The order snapshots current prices, so a price changed since the
        product was added is charged at its new value. If any line fails the
        cart is left untouched.

        Raises:
            NotFoundError: If the user or a product no longer exists
            InvalidArgumentError: If the cart is empty or a product is not available
        """
        items = self.get_items(user_id)
        if not items:
            raise InvalidArgumentError(f"Cart of user {user_id} is empty")

        order_data = OrderCreate(
            buyer_id=user_id,
            items=[OrderItemCreate(product_id=i.product_id, quantity=i.quantity) for i in items],
        )

        # Committed together with the order by create_order, rolled back with it on failure
        self.db.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
        order = OrderService(self.db).create_order(order_data)

        logger.info(f"Cart of user #{user_id} checked out as order {order.order_number}")
        return order

    def _find(self, user_id: int, product_id: int):
        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
            .first()
        )

    def _get_item_or_raise(self, user_id: int, product_id: int) -> CartItem:
        item = self._find(user_id, product_id)
        if item is None:
            raise NotFoundError(f"Product with ID {product_id} is not in the cart of user {user_id}")
        return item

    def _get_user_or_raise(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user
