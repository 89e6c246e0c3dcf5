from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user, require_admin

from .schemas import (
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    PaymentStatusUpdate,
    StatusChangeResponse,
)
from .service import OrderService
from .status import OrderStatus

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("", response_model=list[OrderListResponse])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(default=None, alias="status"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Own orders, or every order for an operator."""
    return await OrderService.list_orders(db, user, status_filter)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_order_for(db, order_id, user)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Checkout: converts the caller's cart into an order."""
    return await OrderService.checkout(db, user.id, payload)


@router.patch(
    "/{order_id}/status",
    response_model=StatusChangeResponse,
    dependencies=[Depends(require_admin)],
)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.update_status(db, order_id, payload)


@router.patch(
    "/{order_id}/payment",
    response_model=StatusChangeResponse,
    dependencies=[Depends(require_admin)],
)
async def update_payment_status(
    order_id: int,
    payload: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.update_payment_status(db, order_id, payload)


@router.post("/{order_id}/cancel", response_model=StatusChangeResponse)
async def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.cancel_order(db, order_id, user)
