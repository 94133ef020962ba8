"""
User Models

Database model for authenticated members and admins.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column, relationship

from membership_api.modules.shared import BaseModel

if TYPE_CHECKING:
    from membership_api.modules.applications.models import Application


class UserRole(str, Enum):
    """User roles in the system."""

    MEMBER = "MEMBER"
    ADMIN = "ADMIN"


class User(BaseModel):
    """
    User account.

    Created on first successful sign-in at the external identity provider.
    The role may be promoted to ADMIN by the ADMIN_EMAILS bootstrap list.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    display_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", create_type=True),
        nullable=False,
        default=UserRole.MEMBER,
    )

    # Set together with the onboarding response, cleared by an admin reset
    onboarding_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    application: Mapped["Application | None"] = relationship(
        "Application",
        back_populates="user",
        foreign_keys="Application.user_id",
        uselist=False,
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
