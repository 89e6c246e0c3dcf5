from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order
from .status import OrderStatus


class OrderRepository:

    @staticmethod
    async def add_order(db: AsyncSession, order: Order) -> Order:
        """Stages the order and its items; the caller owns the commit."""
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_transaction_id(db: AsyncSession, transaction_id: str) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.payment_transaction_id == transaction_id))
        return result.scalars().first()

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        user_id: Optional[int] = None,
        status: Optional[OrderStatus] = None,
    ) -> Sequence[Order]:
        stmt = select(Order)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        result = await db.execute(stmt.order_by(Order.created_at.desc(), Order.id.desc()))
        return result.scalars().all()

    @staticmethod
    async def save(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.commit()
        return order

    @staticmethod
    async def transition_status(
        db: AsyncSession, order_id: int, current: OrderStatus, target: OrderStatus, **values
    ) -> bool:
        """Moves the order to `target` only if it is still in `current`; never commits."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == current)
            .values(status=target, **values)
        )
        return result.rowcount == 1
