"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependency for protected routes
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from hirepath.core.config import get_settings
from hirepath.core.errors import Unauthorized
from hirepath.core.logger import mask_token
from hirepath.services.user_service import UserService

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; a missing header is reported as 401 by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against hash."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value isn't a recognizable hash
        return False


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token carrying only the user id and expiry."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def verify_session(token: Optional[str]) -> dict:
    """
    Resolve a session token to its user document.

    Raises Unauthorized when the token is missing, malformed, expired,
    signed with a different key, or its user no longer exists.
    """
    if not token:
        raise Unauthorized("Not authorized, no token")

    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        logger.info("Rejected session token %s", mask_token(token))
        raise Unauthorized("Invalid or expired token")

    user = UserService().get_by_id(payload["sub"])
    if user is None:
        raise Unauthorized("Invalid or expired token")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> dict:
    """
    FastAPI dependency - Get current authenticated user document.

    Plain def: the user lookup is a blocking pymongo call, so FastAPI
    runs it in the threadpool like the route handlers.

    Usage:
        @router.get("/protected")
        def route(user: dict = Depends(get_current_user)):
            return user
    """
    token = credentials.credentials if credentials else None
    return verify_session(token)
