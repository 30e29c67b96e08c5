"""Tests for Product API endpoints."""
from decimal import Decimal


def _seed(client, category_name="Electronics"):
    """Create a seller and a category, returning their IDs."""
    seller = client.post(
        "/api/v1/users/",
        json={"username": "seller1", "email": "seller1@example.com",
              "first_name": "Ada", "last_name": "Lovelace"}
    ).json()
    category = client.post("/api/v1/categories/", json={"name": category_name}).json()
    return seller["id"], category["id"]


def _create_product(client, seller_id, category_id, **overrides):
    payload = {
        "name": "Test Product",
        "price": "100.00",
        "condition": "GOOD",
        "category_id": category_id,
        "seller_id": seller_id,
    }
    payload.update(overrides)
    return client.post("/api/v1/products/", json=payload)


def test_create_product(client):
    """Test listing a new product."""
    seller_id, category_id = _seed(client)

    response = _create_product(
        client, seller_id, category_id,
        name="Vintage Camera", price="99.99", condition="LIKE_NEW", brand="Canon"
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Vintage Camera"
    assert Decimal(data["price"]) == Decimal("99.99")
    assert data["condition"] == "LIKE_NEW"
    assert data["condition_label"] == "Like New"
    assert data["is_available"] is True
    assert data["is_sold"] is False
    assert data["view_count"] == 0
    assert "id" in data
    assert "created_at" in data


def test_create_product_invalid_price(client):
    """Test creating product with non-positive price fails."""
    seller_id, category_id = _seed(client)

    response = _create_product(client, seller_id, category_id, price="-10.00")
    assert response.status_code == 422

    response = _create_product(client, seller_id, category_id, price="0")
    assert response.status_code == 422


def test_create_product_missing_condition(client):
    seller_id, category_id = _seed(client)
    payload = {"name": "No condition", "price": "5.00",
               "category_id": category_id, "seller_id": seller_id}

    response = client.post("/api/v1/products/", json=payload)

    assert response.status_code == 422


def test_create_product_unknown_category(client):
    seller_id, _ = _seed(client)

    response = _create_product(client, seller_id, 9999)

    assert response.status_code == 404
    assert "Category" in response.json()["detail"]


def test_create_product_unknown_seller(client):
    _, category_id = _seed(client)

    response = _create_product(client, 9999, category_id)

    assert response.status_code == 404
    assert "Seller" in response.json()["detail"]


def test_get_product_increments_view_count(client):
    """Each detail view counts exactly once."""
    seller_id, category_id = _seed(client)
    product_id = _create_product(client, seller_id, category_id).json()["id"]

    first = client.get(f"/api/v1/products/{product_id}")
    second = client.get(f"/api/v1/products/{product_id}")

    assert first.status_code == 200
    assert first.json()["view_count"] == 1
    assert second.json()["view_count"] == 2


def test_get_product_not_found(client):
    """Test getting non-existent product returns 404."""
    response = client.get("/api/v1/products/9999")

    assert response.status_code == 404


def test_search_without_filters_returns_all_available_newest_first(client):
    seller_id, category_id = _seed(client)
    ids = [
        _create_product(client, seller_id, category_id, name=f"Product {i}").json()["id"]
        for i in range(3)
    ]
    sold_id = _create_product(client, seller_id, category_id, name="Sold one").json()["id"]
    client.post(f"/api/v1/products/{sold_id}/sold")

    response = client.get("/api/v1/products/")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert [item["id"] for item in data["items"]] == list(reversed(ids))


def test_search_pagination(client):
    """Test listing products with pagination."""
    seller_id, category_id = _seed(client)
    for i in range(15):
        _create_product(client, seller_id, category_id, name=f"Product {i}", price=f"{10 + i}.00")

    response = client.get("/api/v1/products/?page=2&page_size=10")

    assert response.status_code == 200
    data = response.json()
    assert len(data["items"]) == 5
    assert data["total"] == 15
    assert data["total_pages"] == 2


def test_search_combines_filters(client):
    seller_id, category_id = _seed(client)
    _create_product(client, seller_id, category_id, name="Apple iPhone", price="500.00",
                    condition="LIKE_NEW", location_city="Lisbon")
    _create_product(client, seller_id, category_id, name="Apple iPad", price="900.00",
                    condition="LIKE_NEW", location_city="Lisbon")
    _create_product(client, seller_id, category_id, name="Apple Watch", price="300.00",
                    condition="FAIR", location_city="lisbon")
    _create_product(client, seller_id, category_id, name="Apple TV", price="150.00",
                    condition="LIKE_NEW", location_city="Porto")

    response = client.get(
        "/api/v1/products/",
        params={"name": "apple", "max_price": "600", "condition": "LIKE_NEW", "city": "LISBON"}
    )

    assert response.status_code == 200
    names = [item["name"] for item in response.json()["items"]]
    assert names == ["Apple iPhone"]


def test_search_sort_override(client):
    seller_id, category_id = _seed(client)
    _create_product(client, seller_id, category_id, name="Mid", price="50.00")
    _create_product(client, seller_id, category_id, name="Cheap", price="5.00")
    _create_product(client, seller_id, category_id, name="Pricey", price="500.00")

    response = client.get("/api/v1/products/", params={"sort_by": "price", "sort_dir": "asc"})

    assert [item["name"] for item in response.json()["items"]] == ["Cheap", "Mid", "Pricey"]


def test_full_text_search_matches_keywords(client):
    """A term found only in keywords still matches."""
    seller_id, category_id = _seed(client)
    _create_product(client, seller_id, category_id, name="Old chair",
                    description="Wooden", keywords="antique mid-century")
    _create_product(client, seller_id, category_id, name="New table")

    response = client.get("/api/v1/products/full-text", params={"q": "ANTIQUE"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["name"] == "Old chair"


def test_similar_products(client):
    """Only same-category items within 30% of the price, excluding the source."""
    seller_id, category_id = _seed(client)
    other_category = client.post("/api/v1/categories/", json={"name": "Books"}).json()["id"]

    source_id = _create_product(client, seller_id, category_id, name="Source", price="100.00").json()["id"]
    _create_product(client, seller_id, category_id, name="Low edge", price="70.00")
    _create_product(client, seller_id, category_id, name="High edge", price="130.00")
    _create_product(client, seller_id, category_id, name="Too cheap", price="69.99")
    _create_product(client, seller_id, category_id, name="Too pricey", price="130.01")
    _create_product(client, seller_id, other_category, name="Other category", price="100.00")

    response = client.get(f"/api/v1/products/{source_id}/similar", params={"limit": 5})

    assert response.status_code == 200
    names = {item["name"] for item in response.json()}
    assert names == {"Low edge", "High edge"}


def test_similar_products_unknown_source(client):
    response = client.get("/api/v1/products/9999/similar")

    assert response.status_code == 404


def test_exact_filter_endpoints(client):
    seller_id, category_id = _seed(client)
    _create_product(client, seller_id, category_id, name="Cheap", price="10.00",
                    location_city="Berlin", negotiable=True, brand="Sony")
    _create_product(client, seller_id, category_id, name="Expensive", price="1000.00",
                    condition="NEW", brand="Bose")

    assert [p["name"] for p in client.get("/api/v1/products/under-price",
                                          params={"max_price": "10.00"}).json()] == ["Cheap"]
    assert [p["name"] for p in client.get("/api/v1/products/price-range",
                                          params={"min_price": "10", "max_price": "999"}).json()] == ["Cheap"]
    assert [p["name"] for p in client.get("/api/v1/products/city/berlin").json()] == ["Cheap"]
    assert [p["name"] for p in client.get("/api/v1/products/negotiable").json()] == ["Cheap"]
    assert [p["name"] for p in client.get("/api/v1/products/condition/NEW").json()] == ["Expensive"]
    assert [p["name"] for p in client.get("/api/v1/products/brand-search",
                                          params={"q": "son"}).json()] == ["Cheap"]
    assert len(client.get(f"/api/v1/products/category/{category_id}").json()) == 2
    assert len(client.get(f"/api/v1/products/seller/{seller_id}").json()) == 2


def test_price_range_rejects_inverted_bounds(client):
    response = client.get("/api/v1/products/price-range", params={"min_price": "50", "max_price": "10"})

    assert response.status_code == 400


def test_filter_by_unknown_category_or_seller(client):
    assert client.get("/api/v1/products/category/9999").status_code == 404
    assert client.get("/api/v1/products/seller/9999").status_code == 404


def test_update_product(client):
    """Test updating a product."""
    seller_id, category_id = _seed(client)
    product_id = _create_product(client, seller_id, category_id, name="Original Name").json()["id"]

    response = client.put(
        f"/api/v1/products/{product_id}",
        json={"name": "Updated Name", "price": "75.00"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Updated Name"
    assert Decimal(data["price"]) == Decimal("75.00")
    assert data["condition"] == "GOOD"  # Unchanged
    assert data["is_available"] is True


def test_update_product_not_found(client):
    response = client.put("/api/v1/products/9999", json={"name": "Nope"})

    assert response.status_code == 404


def test_mark_sold_makes_product_unavailable(client):
    seller_id, category_id = _seed(client)
    product_id = _create_product(client, seller_id, category_id).json()["id"]

    response = client.post(f"/api/v1/products/{product_id}/sold")

    assert response.status_code == 200
    assert response.json()["is_sold"] is True
    assert response.json()["is_available"] is False

    # No way back
    assert client.post(f"/api/v1/products/{product_id}/sold").status_code == 400
    assert client.post(f"/api/v1/products/{product_id}/withdraw").status_code == 400


def test_withdraw_removes_product_from_search(client):
    seller_id, category_id = _seed(client)
    product_id = _create_product(client, seller_id, category_id).json()["id"]

    response = client.post(f"/api/v1/products/{product_id}/withdraw")

    assert response.status_code == 200
    assert response.json()["is_available"] is False
    assert response.json()["is_sold"] is False
    assert client.get("/api/v1/products/").json()["total"] == 0


def test_delete_product(client):
    """Test deleting a product."""
    seller_id, category_id = _seed(client)
    product_id = _create_product(client, seller_id, category_id, name="To Delete").json()["id"]

    response = client.delete(f"/api/v1/products/{product_id}")
    assert response.status_code == 204

    # Verify it's deleted
    get_response = client.get(f"/api/v1/products/{product_id}")
    assert get_response.status_code == 404

    assert client.delete(f"/api/v1/products/{product_id}").status_code == 404


def test_latest_and_most_viewed(client):
    seller_id, category_id = _seed(client)
    ids = [
        _create_product(client, seller_id, category_id, name=f"Product {i}").json()["id"]
        for i in range(3)
    ]
    for _ in range(3):
        client.get(f"/api/v1/products/{ids[0]}")
    client.get(f"/api/v1/products/{ids[1]}")

    latest = client.get("/api/v1/products/latest", params={"limit": 2}).json()
    most_viewed = client.get("/api/v1/products/most-viewed", params={"limit": 2}).json()

    assert [p["id"] for p in latest] == [ids[2], ids[1]]
    assert [p["id"] for p in most_viewed] == [ids[0], ids[1]]
