from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from marketplace.database import get_db
from marketplace.api.orders import order_response
from marketplace.services.cart_service import CartService
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.services.order_service import OrderService
from marketplace.schemas.cart import CartItemAdd, CartItemQuantityUpdate, CartItemResponse, CartResponse
from marketplace.schemas.order import OrderResponse

router = APIRouter(prefix="/cart", tags=["Cart"])


def _cart_response(service: CartService, user_id: int) -> CartResponse:
    items = service.get_items(user_id)
    return CartResponse(
        user_id=user_id,
        items=[CartItemResponse.model_validate(i) for i in items],
        item_count=service.count_items(user_id),
        total=service.total(user_id),
    )


@router.get("/{user_id}", response_model=CartResponse, summary="Get a user's cart")
def get_cart(user_id: int, db: Session = Depends(get_db)):
    try:
        return _cart_response(CartService(db), user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/{user_id}/items",
    response_model=CartResponse,
    summary="Add a product to the cart",
    description="Adds the product, or raises its quantity if it is already in the cart."
)
def add_to_cart(user_id: int, item_data: CartItemAdd, db: Session = Depends(get_db)):
    service = CartService(db)

    try:
        service.add_item(user_id, item_data.product_id, item_data.quantity)
        return _cart_response(service, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/{user_id}/items/{product_id}", response_model=CartResponse, summary="Change a cart quantity")
def update_cart_quantity(
    user_id: int,
    product_id: int,
    quantity_data: CartItemQuantityUpdate,
    db: Session = Depends(get_db)
):
    service = CartService(db)

    try:
        service.update_quantity(user_id, product_id, quantity_data.quantity)
        return _cart_response(service, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{user_id}/items/{product_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove from cart")
def remove_from_cart(user_id: int, product_id: int, db: Session = Depends(get_db)):
    try:
        CartService(db).remove_item(user_id, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return None


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Empty the cart")
def clear_cart(user_id: int, db: Session = Depends(get_db)):
    try:
        CartService(db).clear(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return None


@router.post(
    "/{user_id}/checkout",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check out the cart",
    description="Place a pending order for everything in the cart and empty it."
)
def checkout(user_id: int, db: Session = Depends(get_db)):
    try:
        order = CartService(db).checkout(user_id)
        return order_response(OrderService(db), order)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
