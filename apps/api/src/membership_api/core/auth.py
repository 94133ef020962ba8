"""
Authentication and Authorization Module

FastAPI dependencies that turn a bearer token into an authenticated actor.
Tokens are validated with decode_token from security.py. Role checks for
admin endpoints happen here; applicant endpoints only require a valid token.

Core service functions never read the request: routers pass the actor id
(and role, where it matters) explicitly.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from membership_api.core.security import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLE = "ADMIN"

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents the authenticated caller.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier (UUID)
        email: User's email address
        role: MEMBER or ADMIN
        name: User's display name (optional)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def validate_access_token(token: str) -> CurrentUser:
    """
    Validate a JWT and extract the caller's claims.

    Args:
        token: JWT token string from the Authorization header

    Returns:
        CurrentUser built from the token claims

    Raises:
        HTTPException 401: If the token is invalid, expired, of the wrong type,
            or missing required claims
    """
    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return CurrentUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """FastAPI dependency returning the authenticated caller."""
    return validate_access_token(credentials.credentials)


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency that additionally requires the ADMIN role.

    Raises:
        HTTPException 403: If the caller is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"Access denied: User {user.id} has role '{user.role}', but '{ADMIN_ROLE}' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated admin: {user.id}")
    return user


__all__ = [
    "ADMIN_ROLE",
    "CurrentUser",
    "get_current_admin_user",
    "get_current_user",
    "validate_access_token",
]
