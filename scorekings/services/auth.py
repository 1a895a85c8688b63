import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from scorekings.core.config import settings
from scorekings.core.errors import AuthError, PermissionDenied

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(user_id: UUID, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> UUID:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return UUID(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise AuthError("Invalid token")


def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> UUID:
    # Only the token is checked here; the ledger reports unknown or
    # deactivated users as NotFound inside its own transaction.
    if credentials is None:
        raise AuthError()
    return decode_access_token(credentials.credentials)


def resolve_user_id(requested: Optional[UUID], current: UUID) -> UUID:
    """Callers may name themselves explicitly, never someone else."""
    if requested is not None and requested != current:
        logger.warning("User %s tried to act as %s", current, requested)
        raise PermissionDenied()
    return current


def require_admin(x_admin_key: Annotated[Optional[str], Header()] = None) -> None:
    if not settings.ADMIN_API_KEY or not x_admin_key:
        raise AuthError("Admin key required")
    if not secrets.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        logger.warning("Rejected admin call with a wrong key")
        raise AuthError("Invalid admin key")


# Define reusable types
current_user_dependency = Annotated[UUID, Depends(get_current_user_id)]
