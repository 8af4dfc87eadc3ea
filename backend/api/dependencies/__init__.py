"""
API dependencies and utilities for authentication and authorization.
"""

from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from beanie import PydanticObjectId
from loguru import logger

from config.settings import settings
from backend.models import User
from shared.constants import UserRole


# Security scheme for Swagger UI
security = HTTPBearer()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token.

    Args:
        data: Dictionary with token payload (user_id, email, role)
        expires_delta: Token expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def token_for_user(user: User) -> str:
    return create_access_token({"user_id": str(user.id), "email": user.email, "role": user.role.value})


def decode_user_id(token: str) -> Optional[str]:
    """User id from a valid token, None when the token is invalid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    user_id = payload.get("user_id")
    if not user_id or not PydanticObjectId.is_valid(user_id):
        return None
    return user_id


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> User:
    """
    Get current authenticated user from JWT token.

    Usage in routes:
        @router.get("/protected")
        async def protected_route(current_user: User = Depends(get_current_user)):
            return {"user_id": str(current_user.id)}

    Raises:
        HTTPException: 401 if token is invalid or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_user_id(credentials.credentials)
    if user_id is None:
        raise credentials_exception

    user = await User.get(PydanticObjectId(user_id))
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


async def verify_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Verify that current user is an admin.

    Raises:
        HTTPException: 403 if user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def internal_error(action: str, error: Exception) -> HTTPException:
    """Log an unexpected failure and build the generic 500 response."""
    logger.error(f"Failed to {action}: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )


def ensure_owner(owner_id: Optional[PydanticObjectId], user: User, action: str = "modify"):
    """Raise 403 unless ``user`` owns the document (admins always pass)."""
    if user.role == UserRole.ADMIN:
        return
    if owner_id is None or owner_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to {action} this resource"
        )


__all__ = [
    "create_access_token",
    "token_for_user",
    "decode_user_id",
    "get_current_user",
    "verify_admin",
    "ensure_owner",
    "internal_error",
    "security",
]
