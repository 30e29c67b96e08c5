from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from marketplace.models.product import Product
from marketplace.models.user import User
from marketplace.schemas.user import UserCreate
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)


class UserService:
    """
    Service class for the seller/buyer facet of users.

    Registration and credentials are handled by the authentication layer;
    this service only keeps the profile fields the catalog and orders use.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_data: UserCreate) -> User:
        """
        Raises:
            InvalidArgumentError: If the username or email is already taken
        """
        user = User(**user_data.model_dump())
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error creating user: {e}")
            raise InvalidArgumentError("Username or email already exists")

        self.db.refresh(user)
        return user

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def update_seller_rating(self, user_id: int, rating: float) -> User:
        """
        Raises:
            NotFoundError: If the user doesn't exist
            InvalidArgumentError: If the rating is negative
        """
        if rating is None or rating < 0:
            raise InvalidArgumentError("Seller rating must be non-negative")

        user = self._get_or_raise(user_id)
        user.seller_rating = rating
        self.db.commit()
        self.db.refresh(user)
        return user

    def deactivate(self, user_id: int) -> User:
        user = self._get_or_raise(user_id)
        user.is_active = False
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User #{user_id} deactivated")
        return user

    def top_rated_sellers(self, min_rating: float) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.seller_rating >= min_rating, User.is_active.is_(True))
            .order_by(User.seller_rating.desc(), User.id)
            .all()
        )

    def sellers_with_available_products(self) -> List[User]:
        return (
            self.db.query(User)
            .join(Product, Product.seller_id == User.id)
            .filter(Product.is_available.is_(True))
            .distinct()
            .order_by(User.id)
            .all()
        )

    def search_by_name(self, term: str) -> List[User]:
        """Users whose first or last name contains ``term``, case-insensitively."""
        return (
            self.db.query(User)
            .filter(or_(
                User.first_name.icontains(term, autoescape=True),
                User.last_name.icontains(term, autoescape=True),
            ))
            .order_by(User.last_name, User.first_name, User.id)
            .all()
        )

    def _get_or_raise(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user
