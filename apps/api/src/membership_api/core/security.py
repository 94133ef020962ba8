"""
Security Utilities

JWT encoding and decoding. Sign-in itself happens at the external identity
provider; this service only issues and verifies its own access tokens.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from membership_api.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    *,
    email: str,
    role: str,
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: User id (stored in the ``sub`` claim)
        email: User email
        role: User role (MEMBER or ADMIN)
        name: Optional display name
        expires_delta: Token lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT string
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: dict[str, Any] = {
        "sub": subject,
        "email": email,
        "role": role,
        "type": "access",
        "exp": expire,
    }
    if name is not None:
        to_encode["name"] = name
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and verify a JWT.

    Returns:
        The claims dict, or None if the signature, algorithm or expiry is invalid
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Token decode failed: {e}")
        return None
