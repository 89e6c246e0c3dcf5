from typing import Sequence

import structlog
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import ConflictError, NotFoundError, PermissionDeniedError
from shared.security.dependencies import ADMIN_ROLE
from shared.security.jwt_handler import create_access_token

from .models import User
from .repository import UserRepository
from .schemas import TokenResponse, UserCreate, UserLogin, UserResponse

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


class AuthService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    def _role_for(email: str) -> str:
        return ADMIN_ROLE if email.lower() in settings.ADMIN_EMAILS else "user"

    @staticmethod
    def issue_token(user: User) -> TokenResponse:
        token = create_access_token(data={
            "sub": str(user.id),
            "name": user.name,
            "email": user.email,
            "role": user.role,
        })
        return TokenResponse(access_token=token, user=UserResponse.model_validate(user))

    @staticmethod
    async def register(db: AsyncSession, data: UserCreate) -> TokenResponse:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            raise ConflictError("Email already registered")
        email = data.email.lower()
        user = User(
            name=data.name,
            email=email,
            hashed_password=AuthService._hash_password(data.password),
            role=AuthService._role_for(email),
        )
        user = await UserRepository.create(db, user)
        logger.info("user_registered", user_id=user.id, role=user.role)
        return AuthService.issue_token(user)

    @staticmethod
    async def login(db: AsyncSession, data: UserLogin) -> TokenResponse:
        user = await UserRepository.get_by_login(db, data.username)
        if not user or not AuthService._verify_password(data.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not user.is_active:
            raise PermissionDeniedError("Account is disabled")
        return AuthService.issue_token(user)

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def list_users(db: AsyncSession) -> Sequence[User]:
        return await UserRepository.list_all(db)
