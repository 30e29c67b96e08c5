from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import List, Optional
import logging

from marketplace.models.category import Category
from marketplace.schemas.category import CategoryCreate
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.utils.cache import cache_service

logger = logging.getLogger(__name__)


class CategoryService:
    """Service class for the category tree."""

    CACHE_PREFIX = "category"

    def __init__(self, db: Session):
        self.db = db

    def create(self, category_data: CategoryCreate) -> Category:
        """
        Create a category, optionally under a parent.

        Raises:
            NotFoundError: If the parent category doesn't exist
            InvalidArgumentError: If the name is already taken
        """
        if category_data.parent_id is not None and self.db.get(Category, category_data.parent_id) is None:
            raise NotFoundError(f"Parent category with ID {category_data.parent_id} not found")
        if self.get_by_name(category_data.name) is not None:
            raise InvalidArgumentError(f"Category '{category_data.name}' already exists")

        category =Category(**category_data.model_dump())
        self.db.add(category)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error creating category: {e}")
            raise InvalidArgumentError(f"Category '{category_data.name}' already exists")

        self.db.refresh(category)
        cache_service.delete(self.CACHE_PREFIX, "roots")
        return category

    def get(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def get_by_name(self, name: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.name == name).first()

    def get_active(self) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.is_active.is_(True))
            .order_by(Category.sort_order, Category.id)
            .all()
        )

    def get_roots(self) -> List[dict]:
        """
        Browsable root categories: active and without a parent, by sort order.

        Served from the cache when possible, so rows are returned as dicts.
        """
        cached = cache_service.get(self.CACHE_PREFIX, "roots")
        if cached is not None:
            # created_at was flattened to a string by the JSON encoding
            return [
                {**row, "created_at": datetime.fromisoformat(row["created_at"]) if row["created_at"] else None}
                for row in cached
            ]

        roots = (
            self.db.query(Category)
            .filter(Category.parent_id.is_(None), Category.is_active.is_(True))
            .order_by(Category.sort_order, Category.id)
            .all()
        )
        rows = [
            {
                "id": c.id,
                "name": c.name,
                "description": c.description,
                "parent_id": c.parent_id,
                "is_active": c.is_active,
                "sort_order": c.sort_order,
                "created_at": c.created_at,
            }
            for c in roots
        ]
        cache_service.set(self.CACHE_PREFIX, "roots", rows)
        return rows

    def get_children(self, parent_id: int) -> List[Category]:
        """
        Raises:
            NotFoundError: If the parent category doesn't exist
        """
        if self.db.get(Category, parent_id) is None:
            raise NotFoundError(f"Category with ID {parent_id} not found")
        return (
            self.db.query(Category)
            .filter(Category.parent_id == parent_id)
            .order_by(Category.sort_order, Category.id)
            .all()
        )
