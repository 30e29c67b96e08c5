from sqlalchemy.orm import Session
from sqlalchemy import update
from decimal import Decimal
from typing import Optional
import logging

from marketplace.models.cart import CartItem
from marketplace.models.category import Category
from marketplace.models.order import OrderItem
from marketplace.models.product import Product
from marketplace.models.user import User
from marketplace.schemas.product import ProductCreate, ProductUpdate
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.utils.cache import cache_service

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for the product lifecycle.

    This service handles:
    - Listing new products (with category/seller resolution and validation)
    - Reading products, including the view-counting detail read
    - Editing descriptive fields
    - State transitions: mark as sold, withdraw, hard delete
    - Invalidating cached catalog reports after every write
    """

    STATS_CACHE_PREFIX = "stats"

    def __init__(self, db: Session):
        self.db = db

    def create(self, product_data: ProductCreate) -> Product:
        """
        List a new product.

        Args:
            product_data: Product creation data

        Returns:
            Created product instance

        Raises:
            NotFoundError: If the category or seller doesn't exist
            InvalidArgumentError: If a required field is missing or invalid
        """
        if self.db.get(Category, product_data.category_id) is None:
            raise NotFoundError(f"Category with ID {product_data.category_id} not found")
        if self.db.get(User, product_data.seller_id) is None:
            raise NotFoundError(f"Seller with ID {product_data.seller_id} not found")

        product = Product(**product_data.model_dump())
        product.is_available = True
        product.is_sold = False
        product.view_count = 0
        product.favorite_count = 0

        self._validate(product)

        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)

        self._invalidate_stats()
        logger.info(f"Product #{product.id} listed by seller #{product.seller_id}")
        return product

    def get_by_id(self, product_id: int) -> Optional[Product]:
        """Get a product by ID without side effects."""
        return self.db.get(Product, product_id)

    def get_by_id_and_touch(self, product_id: int) -> Optional[Product]:
        """
        Get a product for its detail view, counting the view.

        The counter is advanced with a single ``UPDATE ... SET view_count =
        view_count + 1`` so concurrent viewers never lose increments.

        Args:
            product_id: Product ID to look up

        Returns:
            Product instance (with the incremented counter) or None if not found
        """
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(view_count=Product.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            return None

        self.db.commit()
        return self.db.get(Product, product_id)

    def update(self, product_id: int, product_data: ProductUpdate) -> Product:
        """
        Edit the descriptive fields of a product.

        Availability state is not touched by edits.

        Raises:
            NotFoundError: If product doesn't exist
            InvalidArgumentError: If the edited product fails validation
        """
        product = self._get_or_raise(product_id)

        update_data = product_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is not None:
                setattr(product, field, value)

        try:
            self._validate(product)
        except InvalidArgumentError:
            self.db.rollback()
            raise

        self.db.commit()
        self.db.refresh(product)

        self._invalidate_stats()
        return product

    def mark_sold(self, product_id: int) -> Product:
        """
        Transition AVAILABLE -> SOLD. A sold product is never available.

        Raises:
            NotFoundError: If product doesn't exist
            InvalidArgumentError: If the product is not currently available
        """
        product = self._get_or_raise(product_id)
        if product.is_sold:
            raise InvalidArgumentError(f"Product with ID {product_id} is already sold")
        if not product.is_available:
            raise InvalidArgumentError(f"Product with ID {product_id} is not available")

        product.is_sold = True
        product.is_available = False
        self.db.commit()
        self.db.refresh(product)

        self._invalidate_stats()
        logger.info(f"Product #{product_id} marked as sold")
        return product

    def withdraw(self, product_id: int) -> Product:
        """
        Take a product off the market without selling it.

        Raises:
            NotFoundError: If product doesn't exist
            InvalidArgumentError: If the product is already unavailable
        """
        product = self._get_or_raise(product_id)
        if not product.is_available:
            raise InvalidArgumentError(f"Product with ID {product_id} is not available")

        product.is_available = False
        self.db.commit()
        self.db.refresh(product)

        self._invalidate_stats()
        logger.info(f"Product #{product_id} withdrawn")
        return product

    def delete(self, product_id: int) -> None:
        """
        Hard-delete a product.

        Order lines that reference the product keep their snapshot; only
        their informational product reference is cleared. Cart lines for the
        product are removed.

        Raises:
            NotFoundError: If product doesn't exist
        """
        product = self._get_or_raise(product_id)

        try:
            self.db.execute(
                update(OrderItem)
                .where(OrderItem.product_id == product_id)
                .values(product_id=None)
                .execution_options(synchronize_session=False)
            )
            self.db.query(CartItem).filter(CartItem.product_id == product_id).delete(synchronize_session=False)
            self.db.delete(product)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting product #{product_id}: {e}")
            raise

        self._invalidate_stats()
        logger.info(f"Product #{product_id} deleted")

    def _get_or_raise(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return product

    def _validate(self, product: Product) -> None:
        """Reject products that would violate the catalog invariants."""
        if product.name is None or not product.name.strip():
            raise InvalidArgumentError("Product name is required")
        if product.price is None or Decimal(product.price) <= 0:
            raise InvalidArgumentError("Product price must be greater than 0")
        if product.condition is None:
            raise InvalidArgumentError("Product condition is required")
        if product.category_id is None:
            raise InvalidArgumentError("Product category is required")
        if product.seller_id is None:
            raise InvalidArgumentError("Product seller is required")

    def _invalidate_stats(self) -> None:
        """Catalog reports depend on every product write."""
        cache_service.delete_prefix(self.STATS_CACHE_PREFIX)
