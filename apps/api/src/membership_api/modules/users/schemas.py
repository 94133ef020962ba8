"""
User Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from membership_api.modules.applications.models import ApplicationStatus
from membership_api.modules.users.models import UserRole


class UserPublic(BaseModel):
    """Public profile of a user, as returned by GET /me."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    role: UserRole
    onboarding_completed_at: datetime | None = None
    created_at: datetime


class UserApplicationSummary(BaseModel):
    """Compact application state shown next to a user in the admin list."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: ApplicationStatus
    submitted_at: datetime
    payment_verified_at: datetime | None = None


class AdminUserListItem(UserPublic):
    application: UserApplicationSummary | None = None


class AdminUserListResponse(BaseModel):
    users: list[AdminUserListItem]
    total: int
