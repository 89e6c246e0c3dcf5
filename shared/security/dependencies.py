from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from .jwt_handler import verify_access_token

ADMIN_ROLE = "admin"

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class CurrentUser(BaseModel):
    """Identity decoded from a verified access token."""
    id: int
    name: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str | None) -> CurrentUser | None:
    if not token:
        return None

    payload = verify_access_token(token)
    if payload is None:
        return None

    try:
        return CurrentUser(
            id=int(payload["sub"]),
            name=payload.get("name", ""),
            email=payload.get("email", ""),
            role=payload.get("role", "user"),
        )
    except (KeyError, TypeError, ValueError):
        return None


async def get_current_user(request: Request, token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Dependency to validate the bearer token and return the caller's identity."""
    user = _user_from_token(token)
    if user is None:
        raise _credentials_exception()

    # Store in request state for downstream use (like rate limiting)
    request.state.user_id = user.id
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return user
