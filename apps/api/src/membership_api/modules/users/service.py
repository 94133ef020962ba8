"""
Users Service Layer
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.errors import ServiceError
from membership_api.modules.users.models import User
from membership_api.modules.users.repository import UserRepository
from membership_api.modules.users.schemas import (
    AdminUserListItem,
    AdminUserListResponse,
    UserApplicationSummary,
)

logger = logging.getLogger(__name__)


class UserServiceError(ServiceError):
    """Base exception for user service errors."""


class UserNotFoundError(UserServiceError):
    def __init__(self, user_id: UUID | None = None):
        super().__init__(
            message=f"User {user_id} not found" if user_id else "User not found",
            error_code="USER_NOT_FOUND",
            status_code=404,
        )


async def get_profile(db: AsyncSession, user_id: UUID) -> User:
    """
    Get the caller's user record.

    Raises:
        UserNotFoundError: If the token refers to a deleted user
    """
    user = await UserRepository.get_by_id(db, user_id)

    if user is None:
        logger.warning(f"User not found: {user_id}")
        raise UserNotFoundError(user_id)

    return user


async def admin_list_users(db: AsyncSession) -> AdminUserListResponse:
    """List all users, newest first, each with a compact application summary."""
    rows = await UserRepository.list_with_applications(db)

    users = [
        AdminUserListItem.model_validate(user).model_copy(
            update={
                "application": (
                    UserApplicationSummary.model_validate(application) if application else None
                )
            }
        )
        for user, application in rows
    ]

    return AdminUserListResponse(users=users, total=len(users))
