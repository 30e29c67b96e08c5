from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from decimal import Decimal
from typing import Optional

from marketplace.database import get_db
from marketplace.models.product import ProductCondition
from marketplace.services.catalog_query import CatalogQueryService
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.services.product_service import ProductService
from marketplace.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductSearchFilters,
    SortDirection,
    SortField,
)

router = APIRouter(prefix="/products", tags=["Products"])


def _page(products, total, page, page_size, total_pages) -> ProductListResponse:
    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a new product",
    description="Create a product listing for an existing seller and category."
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db)
):
    """
    List a new product.

    - **name**, **price**, **condition**, **category_id**, **seller_id** are required
    - **price** must be positive
    """
    service = ProductService(db)

    try:
        return service.create(product_data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="Search products",
    description="""
    Composable catalog search. Every filter is optional; the filters
    that are given must all match. Only available products are returned,
    newest first unless `sort_by`/`sort_dir` say otherwise.
    """
)
def search_products(
    name: Optional[str] = Query(None, description="Name contains (case-insensitive)"),
    category_id: Optional[int] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    condition: Optional[ProductCondition] = Query(None),
    city: Optional[str] = Query(None, description="City (case-insensitive)"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    sort_by: SortField = Query("created_at"),
    sort_dir: SortDirection = Query("desc"),
    db: Session = Depends(get_db)
):
    """Get a page of products matching all given filters."""
    filters = ProductSearchFilters(
        name=name,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        condition=condition,
        city=city,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    products, total, total_pages = CatalogQueryService(db).search(filters)
    return _page(products, total, page, page_size, total_pages)


@router.get(
    "/full-text",
    response_model=ProductListResponse,
    summary="Full-text search",
    description="Match a term in name, description, keywords or brand."
)
def full_text_search(
    q: str = Query(..., min_length=1, description="Search term"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    products, total, total_pages = CatalogQueryService(db).full_text_search(q, page, page_size)
    return _page(products, total, page, page_size, total_pages)


@router.get("/latest", response_model=list[ProductResponse], summary="Latest products")
def latest_products(
    limit: int = Query(10, ge=1, le=20),
    db: Session = Depends(get_db)
):
    return CatalogQueryService(db).latest(limit)


@router.get("/most-viewed", response_model=list[ProductResponse], summary="Most viewed products")
def most_viewed_products(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db)
):
    return CatalogQueryService(db).most_viewed(limit)


@router.get("/name-search", response_model=list[ProductResponse], summary="Search by name")
def search_by_name(
    q: str = Query(..., min_length=1),
    db: Session = Depends(get_db)
):
    return CatalogQueryService(db).search_by_name(q)


@router.get("/brand-search", response_model=list[ProductResponse], summary="Search by brand")
def search_by_brand(
    q: str = Query(..., min_length=1),
    db: Session = Depends(get_db)
):
    return CatalogQueryService(db).search_by_brand(q)


@router.get("/under-price", response_model=list[ProductResponse], summary="Products at or under a price")
def products_under_price(
    max_price: Decimal = Query(..., ge=0),
    db: Session = Depends(get_db)
):
    return CatalogQueryService(db).under_price(max_price)


@router.get("/price-range", response_model=list[ProductResponse], summary="Products in a price range")
def products_in_price_range(
    min_price: Decimal = Query(..., ge=0),
    max_price: Decimal = Query(..., ge=0),
    db: Session = Depends(get_db)
):
    """Inclusive on both ends."""
    if min_price > max_price:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="min_price must not exceed max_price"
        )
    return CatalogQueryService(db).in_price_range(min_price, max_price)


@router.get("/negotiable", response_model=list[ProductResponse], summary="Negotiable products")
def negotiable_products(db: Session = Depends(get_db)):
    return CatalogQueryService(db).negotiable()


@router.get("/high-rated-sellers", response_model=list[ProductResponse], summary="Products from high-rated sellers")
def products_from_high_rated_sellers(
    min_rating: float = Query(4.0, ge=0),
    db: Session = Depends(get_db)
):
    return CatalogQueryService(db).from_high_rated_sellers(min_rating)


@router.get("/city/{city}", response_model=list[ProductResponse], summary="Products in a city")
def products_by_city(city: str, db: Session = Depends(get_db)):
    return CatalogQueryService(db).by_city(city)


@router.get("/condition/{condition}", response_model=list[ProductResponse], summary="Products by condition")
def products_by_condition(condition: ProductCondition, db: Session = Depends(get_db)):
    return CatalogQueryService(db).by_condition(condition)


@router.get("/category/{category_id}", response_model=list[ProductResponse], summary="Products in a category")
def products_by_category(category_id: int, db: Session = Depends(get_db)):
    try:
        return CatalogQueryService(db).by_category(category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/seller/{seller_id}", response_model=list[ProductResponse], summary="Products by seller")
def products_by_seller(seller_id: int, db: Session = Depends(get_db)):
    try:
        return CatalogQueryService(db).by_seller(seller_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Get the detail view of a product. Each call counts one view."
)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Get a product by ID and increment its view counter."""
    product = ProductService(db).get_by_id_and_touch(product_id)

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return product


@router.get(
    "/{product_id}/similar",
    response_model=list[ProductResponse],
    summary="Similar products",
    description="Available products in the same category priced within 30% of this one."
)
def similar_products(
    product_id: int,
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db)
):
    try:
        return CatalogQueryService(db).similar(product_id, limit)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Edit descriptive fields. Only provided fields will be updated."
)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a product.

    Partial updates are supported. Availability is changed only through
    the sold/withdraw endpoints.
    """
    service = ProductService(db)

    try:
        return service.update(product_id, product_data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{product_id}/sold", response_model=ProductResponse, summary="Mark a product as sold")
def mark_product_sold(product_id: int, db: Session = Depends(get_db)):
    try:
        return ProductService(db).mark_sold(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{product_id}/withdraw", response_model=ProductResponse, summary="Withdraw a product")
def withdraw_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return ProductService(db).withdraw(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Delete a product. Existing order lines keep their snapshot."
)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Delete a product."""
    try:
        ProductService(db).delete(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return None
