from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User


class UserRepository:

    @staticmethod
    async def create(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalars().first()

    @staticmethod
    async def get_by_login(db: AsyncSession, username: str) -> Optional[User]:
        """Looks a user up by e-mail or display name, case-insensitively."""
        login = username.lower()
        result = await db.execute(
            select(User)
            .where(or_(func.lower(User.email) == login, func.lower(User.name) == login))
            .order_by(User.id)
        )
        return result.scalars().first()

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[User]:
        result = await db.execute(select(User).order_by(User.id))
        return result.scalars().all()
