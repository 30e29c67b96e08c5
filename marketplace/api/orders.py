from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from marketplace.database import get_db
from marketplace.models.order import Order, OrderStatus, PaymentStatus
from marketplace.services.exceptions import InvalidArgumentError, NotFoundError
from marketplace.services.order_service import OrderService
from marketplace.schemas.order import (
    OrderCreate,
    OrderItemQuantityUpdate,
    OrderItemResponse,
    OrderResponse,
    OrderListResponse,
    OrderStatusUpdate,
)

router = APIRouter(prefix="/orders", tags=["Orders"])


def order_response(service: OrderService, order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        buyer_id=order.buyer_id,
        order_status=order.order_status,
        payment_status=order.payment_status,
        total_amount=order.total_amount,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[OrderItemResponse(**service.describe_item(i)) for i in order.items],
    )


@router.post(
    "/",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="""
    Place an order for one or more products.

    **Price snapshots:**
    Every line records the product's price, name and condition and the
    seller's name as they are at this moment. Later edits to the product,
    or its deletion, never change the order.
    """
)
def create_order(
    order_data: OrderCreate,
    db: Session = Depends(get_db)
):
    """
    Place an order.

    - **buyer_id**: ID of the purchasing user (required)
    - **items**: list of `{product_id, quantity}`, quantity defaults to 1
    """
    service = OrderService(db)

    try:
        order = service.create_order(order_data)
        return order_response(service, order)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/",
    response_model=OrderListResponse,
    summary="List orders",
    description="Get a paginated list of orders filtered by status, payment status, buyer or seller."
)
def list_orders(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    buyer_id: Optional[int] = Query(None, description="Filter by buyer"),
    seller_id: Optional[int] = Query(None, description="Orders containing this seller's items"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    db: Session = Depends(get_db)
):
    """Get paginated list of orders."""
    service = OrderService(db)
    orders, total, total_pages = service.get_orders(
        page, page_size, status, buyer_id, seller_id=seller_id, payment_status=payment_status
    )

    return OrderListResponse(
        items=[order_response(service, o) for o in orders],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get("/number/{order_number}", response_model=OrderResponse, summary="Get order by number")
def get_order_by_number(order_number: str, db: Session = Depends(get_db)):
    service = OrderService(db)
    order = service.get_order_by_number(order_number)

    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_number} not found"
        )

    return order_response(service, order)


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order by ID",
    description="Get an order with its snapshotted lines."
)
def get_order(
    order_id: int,
    db: Session = Depends(get_db)
):
    """Get an order by ID."""
    service = OrderService(db)
    order = service.get_order(order_id)

    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with ID {order_id} not found"
        )

    return order_response(service, order)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Change order status",
    description="""
    Advance the order: pending -> confirmed -> shipped -> delivered, or
    cancel it before shipping. Delivered and cancelled are final.
    """
)
def update_order_status(
    order_id: int,
    status_data: OrderStatusUpdate,
    db: Session = Depends(get_db)
):
    service = OrderService(db)

    try:
        order = service.update_status(order_id, status_data.status)
        return order_response(service, order)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch(
    "/{order_id}/items/{item_id}",
    response_model=OrderResponse,
    summary="Adjust line quantity",
    description="Change a line's quantity while the order is still pending."
)
def adjust_item_quantity(
    order_id: int,
    item_id: int,
    quantity_data: OrderItemQuantityUpdate,
    db: Session = Depends(get_db)
):
    service = OrderService(db)

    try:
        order = service.adjust_item_quantity(order_id, item_id, quantity_data.quantity)
        return order_response(service, order)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an order")
def delete_order(order_id: int, db: Session = Depends(get_db)):
    """Delete an order together with its lines."""
    try:
        OrderService(db).delete_order(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return None
