from sqlalchemy.orm import Session, Query
from sqlalchemy import func, or_
from decimal import Decimal
from typing import List, Tuple
import math

from marketplace.models.category import Category
from marketplace.models.product import Product, ProductCondition
from marketplace.models.user import User
from marketplace.schemas.product import ProductSearchFilters
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError


class CatalogQueryService:
    """
    Read-only catalog queries.

    Every query is restricted to products that are available and not sold.

    Operation classes:
    - Exact filters (category, seller, condition, price, city, negotiable)
    - Literal substring search on name or brand
    - Composable multi-criteria search (paged)
    - Full-text OR search over name, description, keywords and brand (paged)
    - Similar products by category and price band
    - Ranked listings (latest, most viewed)
    """

    SIMILAR_PRICE_LOWER = Decimal("0.7")
    SIMILAR_PRICE_UPPER = Decimal("1.3")
    LATEST_SCAN_WINDOW = 20
    MOST_VIEWED_DEFAULT = 10

    SORT_COLUMNS = {
        "created_at": Product.created_at,
        "price": Product.price,
        "view_count": Product.view_count,
        "name": Product.name,
    }

    def __init__(self, db: Session):
        self.db = db

    def _available(self) -> Query:
        return self.db.query(Product).filter(
            Product.is_available.is_(True),
            Product.is_sold.is_(False),
        )

    # Exact filters

    def by_category(self, category_id: int) -> List[Product]:
        if self.db.get(Category, category_id) is None:
            raise NotFoundError(f"Category with ID {category_id} not found")
        return self._available().filter(Product.category_id == category_id).all()

    def by_seller(self, seller_id: int) -> List[Product]:
        if self.db.get(User, seller_id) is None:
            raise NotFoundError(f"Seller with ID {seller_id} not found")
        return self._available().filter(Product.seller_id == seller_id).all()

    def by_condition(self, condition: ProductCondition) -> List[Product]:
        return self._available().filter(Product.condition == condition).all()

    def under_price(self, max_price: Decimal) -> List[Product]:
        return self._available().filter(Product.price <= max_price).all()

    def in_price_range(self, min_price: Decimal, max_price: Decimal) -> List[Product]:
        """Inclusive range. Bounds are taken as given (min <= max is the caller's job)."""
        return self._available().filter(Product.price.between(min_price, max_price)).all()

    def by_city(self, city: str) -> List[Product]:
        return self._available().filter(func.lower(Product.location_city) == city.lower()).all()

    def negotiable(self) -> List[Product]:
        return self._available().filter(Product.negotiable.is_(True)).all()

    def from_high_rated_sellers(self, min_rating: float) -> List[Product]:
        return (
            self._available()
            .join(User, Product.seller_id == User.id)
            .filter(User.seller_rating >= min_rating)
            .all()
        )

    # Substring search

    def search_by_name(self, term: str) -> List[Product]:
        return self._available().filter(Product.name.icontains(term, autoescape=True)).all()

    def search_by_brand(self, term: str) -> List[Product]:
        return self._available().filter(Product.brand.icontains(term, autoescape=True)).all()

    # Paged searches

    def search(self, filters: ProductSearchFilters) -> Tuple[List[Product], int, int]:
        """
        Composable multi-criteria search.

        Unset criteria are skipped; set criteria are ANDed together.

        Args:
            filters: Search criteria, page and ordering

        Returns:
            Tuple of (products list, total count, total pages)
        """
        query = self._available()

        if filters.name is not None:
            query = query.filter(Product.name.icontains(filters.name, autoescape=True))
        if filters.category_id is not None:
            query = query.filter(Product.category_id == filters.category_id)
        if filters.min_price is not None:
            query = query.filter(Product.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.filter(Product.price <= filters.max_price)
        if filters.condition is not None:
            query = query.filter(Product.condition == filters.condition)
        if filters.city is not None:
            query = query.filter(func.lower(Product.location_city) == filters.city.lower())

        return self._paginate(
            query, filters.page, filters.page_size, filters.sort_by, filters.sort_dir
        )

    def full_text_search(
        self,
        term: str,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Product], int, int]:
        """
        Match ``term`` anywhere in name, description, keywords or brand.

        Returns:
            Tuple of (products list, total count, total pages)
        """
        query = self._available().filter(
            or_(
                Product.name.icontains(term, autoescape=True),
                Product.description.icontains(term, autoescape=True),
                Product.keywords.icontains(term, autoescape=True),
                Product.brand.icontains(term, autoescape=True),
            )
        )
        return self._paginate(query, page, page_size)

    # Similarity and rankings

    def similar(self, product_id: int, limit: int = 5) -> List[Product]:
        """
        Other available products in the same category priced within
        [0.7 * price, 1.3 * price].

        Args:
            product_id: Reference product
            limit: Maximum number of results

        Raises:
            NotFoundError: If the reference product doesn't exist
            InvalidArgumentError: If limit is less than 1
        """
        if limit < 1:
            raise InvalidArgumentError(f"Limit must be at least 1, got {limit}")

        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")

        price = Decimal(product.price)
        min_price = price * self.SIMILAR_PRICE_LOWER
        max_price = price * self.SIMILAR_PRICE_UPPER

        return (
            self._available()
            .filter(
                Product.id != product_id,
                Product.category_id == product.category_id,
                Product.price.between(min_price, max_price),
            )
            .limit(limit)
            .all()
        )

    def latest(self, limit: int = LATEST_SCAN_WINDOW) -> List[Product]:
        """Newest products, scanned within a fixed window then cut to ``limit``."""
        window = (
            self._available()
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(self.LATEST_SCAN_WINDOW)
            .all()
        )
        return window[:max(limit, 0)]

    def most_viewed(self, limit: int = MOST_VIEWED_DEFAULT) -> List[Product]:
        return (
            self._available()
            .order_by(Product.view_count.desc(), Product.id.desc())
            .limit(limit)
            .all()
        )

    def _paginate(
        self,
        query: Query,
        page: int,
        page_size: int,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> Tuple[List[Product], int, int]:
        column = self.SORT_COLUMNS.get(sort_by)
        if column is None:
            raise InvalidArgumentError(f"Cannot sort by '{sort_by}'")

        if sort_dir == "asc":
            ordering = (column.asc(), Product.id.asc())
        else:
            ordering = (column.desc(), Product.id.desc())

        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        offset = (page - 1) * page_size
        products = query.order_by(*ordering).offset(offset).limit(page_size).all()

        return products, total, total_pages
