"""Bearer token helpers: JWT encode/decode."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from iam.config import settings
from iam.utils import Unauthenticated


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT containing arbitrary `data`.

    Expected payload keys:
      sub (principal id), unit (unit slug)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT. Raises 401 on failure."""
    try:
        return jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
    except JWTError:
        raise Unauthenticated("Invalid or expired token")
