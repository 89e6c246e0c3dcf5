from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user

from .schemas import CartItemCreate, CartItemUpdate, CartResponse
from .service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
async def get_cart(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.get_cart(db, user.id)


@router.post("", response_model=CartResponse)
async def add_to_cart(
    item: CartItemCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.add_item(db, user.id, item)


@router.put("/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: int,
    payload: CartItemUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.update_item(db, user.id, item_id, payload)


@router.delete("/{item_id}", response_model=CartResponse)
async def remove_from_cart(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.remove_item(db, user.id, item_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Deletes all items in the user's cart."""
    await CartService.clear_cart(db, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
