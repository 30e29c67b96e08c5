"""Tests for the catalog query service."""
from decimal import Decimal

import pytest

from marketplace.models import ProductCondition
from marketplace.schemas.product import ProductSearchFilters
from marketplace.services.catalog_query import CatalogQueryService
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError


@pytest.fixture
def catalog(make_user, make_category, make_product):
    """A small catalog: two categories, two sellers, a sold and a withdrawn item."""
    seller = make_user(first_name="Ada", last_name="Lovelace", seller_rating=4.8)
    other_seller = make_user(first_name="Bob", last_name="Smith", seller_rating=2.0)
    electronics = make_category("Electronics")
    books = make_category("Books")

    products = {
        "camera": make_product(electronics, seller, name="Film Camera", price="100.00",
                               brand="Canon", location_city="Lisbon", negotiable=True),
        "lens": make_product(electronics, seller, name="Camera Lens", price="80.00",
                             brand="Canon", condition=ProductCondition.LIKE_NEW),
        "tripod": make_product(electronics, other_seller, name="Tripod", price="125.00",
                               keywords="photography stand", location_city="Porto"),
        "phone": make_product(electronics, other_seller, name="Phone", price="400.00"),
        "novel": make_product(books, seller, name="Novel", price="100.00",
                              description="A camera obscura mystery"),
        "sold": make_product(electronics, seller, name="Sold Camera", price="100.00",
                             is_sold=True, is_available=False),
        "withdrawn": make_product(electronics, seller, name="Withdrawn Camera", price="100.00",
                                  is_available=False),
    }
    return {
        "seller": seller,
        "other_seller": other_seller,
        "electronics": electronics,
        "books": books,
        "products": products,
    }


def _names(products):
    return sorted(p.name for p in products)


def test_by_category_excludes_unavailable(db_session, catalog):
    service = CatalogQueryService(db_session)

    result = service.by_category(catalog["electronics"].id)

    assert _names(result) == ["Camera Lens", "Film Camera", "Phone", "Tripod"]


def test_by_category_unknown(db_session, catalog):
    with pytest.raises(NotFoundError):
        CatalogQueryService(db_session).by_category(9999)


def test_by_seller(db_session, catalog):
    service = CatalogQueryService(db_session)

    assert _names(service.by_seller(catalog["other_seller"].id)) == ["Phone", "Tripod"]
    with pytest.raises(NotFoundError):
        service.by_seller(9999)


def test_by_condition(db_session, catalog):
    result = CatalogQueryService(db_session).by_condition(ProductCondition.LIKE_NEW)

    assert _names(result) == ["Camera Lens"]


def test_price_filters_are_inclusive(db_session, catalog):
    service = CatalogQueryService(db_session)

    assert _names(service.under_price(Decimal("80.00"))) == ["Camera Lens"]
    assert _names(service.in_price_range(Decimal("80.00"), Decimal("100.00"))) == [
        "Camera Lens", "Film Camera", "Novel"
    ]


def test_inverted_price_range_is_not_revalidated(db_session, catalog):
    assert CatalogQueryService(db_session).in_price_range(Decimal("100"), Decimal("10")) == []


def test_by_city_is_case_insensitive(db_session, catalog):
    assert _names(CatalogQueryService(db_session).by_city("LISBON")) == ["Film Camera"]


def test_negotiable(db_session, catalog):
    assert _names(CatalogQueryService(db_session).negotiable()) == ["Film Camera"]


def test_substring_search_on_name_and_brand(db_session, catalog):
    service = CatalogQueryService(db_session)

    assert _names(service.search_by_name("camera")) == ["Camera Lens", "Film Camera"]
    assert _names(service.search_by_brand("CAN")) == ["Camera Lens", "Film Camera"]


def test_substring_search_is_literal(db_session, make_user, make_category, make_product):
    seller = make_user()
    category = make_category("Misc")
    make_product(category, seller, name="100% cotton shirt")
    make_product(category, seller, name="100 pens")

    result = CatalogQueryService(db_session).search_by_name("100%")

    assert _names(result) == ["100% cotton shirt"]


def test_search_without_filters_matches_all_available(db_session, catalog):
    service = CatalogQueryService(db_session)

    items, total, total_pages = service.search(ProductSearchFilters(page_size=100))

    assert total == 5
    assert total_pages == 1
    ids = [p.id for p in items]
    assert ids == sorted(ids, reverse=True)


def test_search_ands_present_criteria(db_session, catalog):
    filters = ProductSearchFilters(
        name="camera",
        category_id=catalog["electronics"].id,
        min_price=Decimal("90"),
        max_price=Decimal("110"),
    )

    items, total, _ = CatalogQueryService(db_session).search(filters)

    assert total == 1
    assert items[0].name == "Film Camera"


def test_full_text_search_covers_all_fields(db_session, catalog):
    service = CatalogQueryService(db_session)

    items, total, _ = service.full_text_search("camera")
    assert _names(items) == ["Camera Lens", "Film Camera", "Novel"]  # Novel via description

    items, total, _ = service.full_text_search("PHOTOGRAPHY")
    assert _names(items) == ["Tripod"]  # keywords only


def test_similar_band_and_exclusions(db_session, catalog):
    camera = catalog["products"]["camera"]

    result = CatalogQueryService(db_session).similar(camera.id, limit=5)

    # Lens (80) and tripod (125) are within [70, 130]; phone is too expensive,
    # the novel is in another category, sold/withdrawn items are unavailable.
    assert _names(result) == ["Camera Lens", "Tripod"]
    for product in result:
        assert product.category_id == camera.category_id
        assert Decimal("70.00") <= product.price <= Decimal("130.00")
        assert product.id != camera.id


def test_similar_respects_limit(db_session, catalog):
    camera = catalog["products"]["camera"]

    assert len(CatalogQueryService(db_session).similar(camera.id, limit=1)) == 1


def test_similar_errors(db_session, catalog):
    service = CatalogQueryService(db_session)

    with pytest.raises(NotFoundError):
        service.similar(9999, limit=5)
    with pytest.raises(InvalidArgumentError):
        service.similar(catalog["products"]["camera"].id, limit=0)


def test_latest_is_capped_by_scan_window(db_session, make_user, make_category, make_product):
    seller = make_user()
    category = make_category("Misc")
    for i in range(25):
        make_product(category, seller, name=f"Item {i}")

    service = CatalogQueryService(db_session)

    assert len(service.latest(5)) == 5
    assert len(service.latest(50)) == CatalogQueryService.LATEST_SCAN_WINDOW
    assert service.latest(1)[0].name == "Item 24"


def test_most_viewed(db_session, catalog):
    products = catalog["products"]
    products["phone"].view_count = 50
    products["lens"].view_count = 10
    products["sold"].view_count = 999
    db_session.commit()

    result = CatalogQueryService(db_session).most_viewed(2)

    assert [p.name for p in result] == ["Phone", "Camera Lens"]


def test_from_high_rated_sellers(db_session, catalog):
    result = CatalogQueryService(db_session).from_high_rated_sellers(4.5)

    assert _names(result) == ["Camera Lens", "Film Camera", "Novel"]
