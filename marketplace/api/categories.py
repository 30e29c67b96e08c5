from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from marketplace.database import get_db
from marketplace.services.category_service import CategoryService
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.schemas.category import CategoryCreate, CategoryResponse

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.post(
    "/",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category"
)
def create_category(category_data: CategoryCreate, db: Session = Depends(get_db)):
    try:
        return CategoryService(db).create(category_data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=list[CategoryResponse], summary="List active categories")
def list_categories(db: Session = Depends(get_db)):
    return CategoryService(db).get_active()


@router.get("/roots", response_model=list[CategoryResponse], summary="Browsable root categories")
def root_categories(db: Session = Depends(get_db)):
    return CategoryService(db).get_roots()


@router.get("/{category_id}", response_model=CategoryResponse, summary="Get category by ID")
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = CategoryService(db).get(category_id)

    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category with ID {category_id} not found"
        )

    return category


@router.get("/{category_id}/children", response_model=list[CategoryResponse], summary="Subcategories")
def child_categories(category_id: int, db: Session = Depends(get_db)):
    try:
        return CategoryService(db).get_children(category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
