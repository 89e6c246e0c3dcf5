from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CartItem


class CartRepository:

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: int) -> Sequence[CartItem]:
        result = await db.execute(
            select(CartItem).where(CartItem.user_id == user_id).order_by(CartItem.id)
        )
        return result.scalars().all()

    @staticmethod
    async def get_item(db: AsyncSession, user_id: int, item_id: int) -> Optional[CartItem]:
        result = await db.execute(
            select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        )
        return result.scalars().first()

    @staticmethod
    async def get_by_product(db: AsyncSession, user_id: int, product_id: int) -> Optional[CartItem]:
        result = await db.execute(
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .where(CartItem.product_id == product_id)
        )
        return result.scalars().first()

    @staticmethod
    async def save(db: AsyncSession, item: CartItem) -> CartItem:
        db.add(item)
        await db.commit()
        return item

    @staticmethod
    async def remove_item(db: AsyncSession, item: CartItem) -> None:
        await db.delete(item)
        await db.commit()

    @staticmethod
    async def clear_cart(db: AsyncSession, user_id: int, commit: bool = True) -> None:
        """Deletes every line for the user. Checkout passes commit=False to stay in its transaction."""
        await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        if commit:
            await db.commit()
