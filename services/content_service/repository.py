from typing import Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class ContentRepository:
    """Plain CRUD shared by the portfolio content tables."""

    @staticmethod
    async def create(db: AsyncSession, entity: ModelT) -> ModelT:
        db.add(entity)
        await db.commit()
        await db.refresh(entity)
        return entity

    @staticmethod
    async def get(db: AsyncSession, model: Type[ModelT], entity_id: int) -> Optional[ModelT]:
        return await db.get(model, entity_id)

    @staticmethod
    async def list_all(db: AsyncSession, model: Type[ModelT], *order_by) -> Sequence[ModelT]:
        stmt = select(model)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def save(db: AsyncSession, entity: ModelT) -> ModelT:
        db.add(entity)
        await db.commit()
        return entity

    @staticmethod
    async def delete(db: AsyncSession, entity) -> None:
        await db.delete(entity)
        await db.commit()
