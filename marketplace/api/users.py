from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from marketplace.database import get_db
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.services.user_service import UserService
from marketplace.schemas.user import SellerRatingUpdate, UserCreate, UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a seller/buyer profile"
)
def create_user(user_data: UserCreate, db: Session = Depends(get_db)):
    try:
        return UserService(db).create(user_data)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/top-rated", response_model=list[UserResponse], summary="Top rated sellers")
def top_rated_sellers(
    min_rating: float = Query(4.0, ge=0),
    db: Session = Depends(get_db)
):
    return UserService(db).top_rated_sellers(min_rating)


@router.get("/with-products", response_model=list[UserResponse], summary="Sellers with available products")
def sellers_with_products(db: Session = Depends(get_db)):
    return UserService(db).sellers_with_available_products()


@router.get("/search", response_model=list[UserResponse], summary="Search users by name")
def search_users(
    q: str = Query(..., min_length=1, description="Part of a first or last name"),
    db: Session = Depends(get_db)
):
    return UserService(db).search_by_name(q)


@router.get("/{user_id}", response_model=UserResponse, summary="Get user by ID")
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = UserService(db).get(user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found"
        )

    return user


@router.patch("/{user_id}/rating", response_model=UserResponse, summary="Update seller rating")
def update_seller_rating(
    user_id: int,
    rating_data: SellerRatingUpdate,
    db: Session = Depends(get_db)
):
    try:
        return UserService(db).update_seller_rating(user_id, rating_data.rating)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{user_id}/deactivate", response_model=UserResponse, summary="Deactivate a user")
def deactivate_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return UserService(db).deactivate(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
