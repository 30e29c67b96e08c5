import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.main import app
from marketplace.database import Base, get_db
from marketplace.models import Category, Product, ProductCondition, User
from marketplace.utils.cache import CacheService


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db_session):
    """Factory for users persisted through the test session."""
    counter = {"n": 0}

    def _make(first_name="Jane", last_name="Doe", seller_rating=0.0, **kwargs):
        counter["n"] += 1
        user = User(
            username=kwargs.pop("username", f"user{counter['n']}"),
            email=kwargs.pop("email", f"user{counter['n']}@example.com"),
            first_name=first_name,
            last_name=last_name,
            seller_rating=seller_rating,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_category(db_session):
    """Factory for categories persisted through the test session."""
    def _make(name, parent_id=None, is_active=True, sort_order=0):
        category = Category(name=name, parent_id=parent_id, is_active=is_active, sort_order=sort_order)
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _make


@pytest.fixture
def make_product(db_session):
    """Factory for products persisted through the test session."""
    def _make(category, seller, name="Item", price="10.00",
              condition=ProductCondition.GOOD, **kwargs):
        product = Product(
            name=name,
            price=Decimal(price),
            condition=condition,
            category_id=category.id,
            seller_id=seller.id,
            **kwargs,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the cache uses."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return iter([key for key in list(self.store) if key.startswith(prefix)])


@pytest.fixture
def redis_cache():
    """An enabled CacheService backed by FakeRedis."""
    return CacheService(client=FakeRedis(), ttl=60, enabled=True)
