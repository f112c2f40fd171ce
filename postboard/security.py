"""
Authentication helpers and role guards.

Access tokens are HS256 JWTs carrying the user id (``sub``), the role
and an expiry. Route guards are plain FastAPI dependencies so they run
before the handler body, and therefore before the service layer.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from postboard.config import get_settings
from postboard.db import DbClient, UserRecord
from postboard.dependencies import get_db_client
from shared.types import Role

logger = logging.getLogger(__name__)

# PBKDF2 avoids the native bcrypt wheel.
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed hash in storage.
        return False


def create_access_token(
    user: UserRecord, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Creates a signed access token for ``user``.

    Args:
        user: The authenticated user.
        expires_delta: Token lifetime, defaults to the configured expiry.

    Returns:
        The encoded JWT.
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": user.id,
        "role": user.role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Returns the token claims, or None if the token is invalid or expired."""
    settings = get_settings()
    try:
        claims = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as exc:
        logger.debug("Rejected access token: %s", exc)
        return None
    if claims.get("type") != "access" or not claims.get("sub"):
        return None
    return claims


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(
    credentials: Optional[HTTPAuthorizationCredentials], db: DbClient
) -> Optional[UserRecord]:
    if credentials is None:
        return None
    claims = decode_access_token(credentials.credentials)
    if claims is None:
        return None
    return db.get_user(claims["sub"])


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: DbClient = Depends(get_db_client),
) -> UserRecord:
    if credentials is None:
        raise _unauthorized("Authentication required")
    user = _resolve_user(credentials, db)
    if user is None:
        raise _unauthorized("Invalid or expired token")
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: DbClient = Depends(get_db_client),
) -> Optional[UserRecord]:
    """Viewer identity for public routes. A bad token means an anonymous viewer."""
    return _resolve_user(credentials, db)


def require_roles(*roles: Role) -> Callable[..., UserRecord]:
    """
    Builds a dependency that admits only users holding one of ``roles``.
    """
    allowed = frozenset(roles)

    def guard(user: UserRecord = Depends(get_current_user)) -> UserRecord:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return user

    return guard
