"""
Security: JWT handling for the external auth provider.
Tokens carry the user id as ``sub``; this service only verifies them.
"""

from datetime import datetime, timezone, timedelta
from typing import Any

from jose import JWTError, jwt

from lendoo.config import get_settings

settings = get_settings()


def create_access_token(subject: str | int, extra: dict[str, Any] | None = None) -> str:
    """Create JWT for a user id. Used by tooling and tests; production tokens come from the provider."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT. Returns payload or None if invalid."""
    try:
        return jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None
