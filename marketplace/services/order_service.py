from sqlalchemy.orm import Session
from sqlalchemy import update
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List, Tuple
import math
import logging
import uuid

from marketplace.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from marketplace.models.product import Product
from marketplace.models.user import User
from marketplace.schemas.order import OrderCreate
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.services.snapshot import capture_product_facts, build_order_item

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def generate_order_number() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"ORD-{stamp}-{uuid.uuid4().hex[:8].upper()}"


class OrderService:
    """
    Service class for Order operations.

    SNAPSHOT STRATEGY:
    ==================
    Each product is read exactly once inside the order transaction with
    SELECT ... FOR UPDATE. Its price, name, condition and seller are copied
    into frozen ``ProductFacts`` and the order line is built from those
    facts only. A seller editing the product while checkout is in flight
    either waits for the lock or is seen after it; the line never re-reads
    the product afterwards.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order_data: OrderCreate) -> Order:
        """
        Place an order, snapshotting every product it contains.

        Args:
            order_data: Buyer and lines (product_id, quantity)

        Returns:
            Created order instance with its items

        Raises:
            NotFoundError: If the buyer or any product doesn't exist
            InvalidArgumentError: If a product is not available or a quantity is invalid
        """
        try:
            if self.db.get(User, order_data.buyer_id) is None:
                raise NotFoundError(f"Buyer with ID {order_data.buyer_id} not found")

            order = Order(
                order_number=generate_order_number(),
                buyer_id=order_data.buyer_id,
                order_status=OrderStatus.PENDING,
            )

            total = Decimal("0.00")
            for line in order_data.items:
                # Lock the product row for the duration of the transaction
                product = (
                    self.db.query(Product)
                    .filter(Product.id == line.product_id)
                    .with_for_update()
                    .first()
                )
                if product is None:
                    raise NotFoundError(f"Product with ID {line.product_id} not found")
                if not product.is_available or product.is_sold:
                    raise InvalidArgumentError(f"Product with ID {line.product_id} is not available")

                seller = self.db.get(User, product.seller_id) if product.seller_id is not None else None
                item = build_order_item(order, capture_product_facts(product, seller), line.quantity)
                total += item.line_total

            order.total_amount = total
            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)

            logger.info(f"Order {order.order_number} created with {len(order.items)} item(s)")
            return order

        except (NotFoundError, InvalidArgumentError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating order: {e}")
            raise

    def get_order(self, order_id: int) -> Optional[Order]:
        """Get an order by ID."""
        return self.db.get(Order, order_id)

    def get_order_by_number(self, order_number: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.order_number == order_number).first()

    def get_orders(
        self,
        page: int = 1,
        page_size: int = 10,
        status: OrderStatus = None,
        buyer_id: int = None,
        seller_id: int = None,
        payment_status: PaymentStatus = None,
    ) -> Tuple[List[Order], int, int]:
        """
        Get paginated list of orders, newest first.

        Args:
            page: Page number
            page_size: Items per page
            status: Filter by order status
            buyer_id: Filter by buyer
            seller_id: Only orders with at least one line sold by this seller
            payment_status: Filter by payment status

        Returns:
            Tuple of (orders list, total count, total pages)
        """
        query = self.db.query(Order)

        if status:
            query = query.filter(Order.order_status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        if buyer_id is not None:
            query = query.filter(Order.buyer_id == buyer_id)
        if seller_id is not None:
            # Seller is taken from the line snapshot, so it survives product deletion
            query = (
                query.join(OrderItem, OrderItem.order_id == Order.id)
                .filter(OrderItem.seller_id == seller_id)
                .distinct()
            )

        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        offset = (page - 1) * page_size
        orders = query.order_by(Order.id.desc()).offset(offset).limit(page_size).all()

        return orders, total, total_pages

    def describe_item(self, item: OrderItem) -> dict:
        """
        Display view of an order line.

        The live product is resolved only when the snapshot lacks a name or
        condition, and only if the product still exists.
        """
        product = None
        needs_fallback = item.product_name_at_order is None or item.product_condition_at_order is None
        if needs_fallback and item.product_id is not None:
            product = self.db.get(Product, item.product_id)

        return {
            "id": item.id,
            "product_id": item.product_id,
            "quantity": item.quantity,
            "price_at_order": item.price_at_order,
            "product_name_at_order": item.product_name_at_order,
            "product_condition_at_order": item.product_condition_at_order,
            "seller_id": item.seller_id,
            "seller_name_at_order": item.seller_name_at_order,
            "display_name": item.display_name(product),
            "display_condition": item.display_condition(product),
            "line_total": item.line_total,
        }

    def adjust_item_quantity(self, order_id: int, item_id: int, quantity: int) -> Order:
        """
        Change a line's quantity while the order is still pending.

        The order total is recomputed from the snapshot prices.

        Raises:
            NotFoundError: If the order or line doesn't exist
            InvalidArgumentError: If quantity < 1 or the order is no longer pending
        """
        if quantity is None or quantity < 1:
            raise InvalidArgumentError(f"Quantity must be at least 1, got {quantity}")

        order = self._get_or_raise(order_id)
        if order.order_status != OrderStatus.PENDING:
            raise InvalidArgumentError(
                f"Order {order.order_number} is {order.order_status.value}; quantities are final"
            )

        item = next((i for i in order.items if i.id == item_id), None)
        if item is None:
            raise NotFoundError(f"Order item with ID {item_id} not found in order {order_id}")

        item.quantity = quantity
        order.total_amount = sum((i.line_total for i in order.items), Decimal("0.00"))

        self.db.commit()
        self.db.refresh(order)
        return order

    def update_status(self, order_id: int, status: OrderStatus) -> Order:
        """
        Advance an order along its lifecycle.

        Delivering an order credits one sale to each distinct seller
        recorded in its snapshots.

        Raises:
            NotFoundError: If the order doesn't exist
            InvalidArgumentError: If the transition is not allowed
        """
        order = self._get_or_raise(order_id)
        current = order.order_status

        if status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidArgumentError(
                f"Cannot change order {order.order_number} from {current.value} to {status.value}"
            )

        try:
            order.order_status = status
            if status == OrderStatus.DELIVERED:
                seller_ids = {i.seller_id for i in order.items if i.seller_id is not None}
                for seller_id in seller_ids:
                    self.db.execute(
                        update(User)
                        .where(User.id == seller_id)
                        .values(total_sales=User.total_sales + 1)
                        .execution_options(synchronize_session=False)
                    )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating order #{order_id} status: {e}")
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number} moved from {current.value} to {status.value}")
        return order

    def delete_order(self, order_id: int) -> None:
        """Delete an order together with its lines."""
        order = self._get_or_raise(order_id)
        self.db.delete(order)
        self.db.commit()
        logger.info(f"Order #{order_id} deleted")

    def _get_or_raise(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError(f"Order with ID {order_id} not found")
        return order
