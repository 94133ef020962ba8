"""
User Repository

Database operations for user management.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.modules.applications.models import Application
from membership_api.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        display_name: str | None = None,
        avatar_url: str | None = None,
        role: UserRole = UserRole.MEMBER,
    ) -> User:
        """
        Create a new user record.

        The email is stored lower-cased. The caller owns the transaction.

        Returns:
            Created User instance
        """
        user = User(
            email=email.strip().lower(),
            display_name=display_name,
            avatar_url=avatar_url,
            role=role,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by (case-insensitive) email address."""
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_with_applications(
        db: AsyncSession,
    ) -> list[tuple[User, Application | None]]:
        """
        List all users, newest first, each paired with their application (if any).

        Returns:
            List of (user, application or None) tuples
        """
        result = await db.execute(
            select(User, Application)
            .outerjoin(Application, Application.user_id == User.id)
            .order_by(User.created_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def ensure_admins(db: AsyncSession, emails: list[str]) -> list[User]:
        """
        Make sure every email in the list belongs to an ADMIN user.

        Missing users are created as admins, existing members are promoted.
        Running it again is a no-op.

        Args:
            db: Database session
            emails: Lower-cased admin emails

        Returns:
            The admin users, in the order of ``emails``
        """
        admins: list[User] = []

        for email in emails:
            user = await UserRepository.get_by_email(db, email)

            if user is None:
                user = await UserRepository.create(db, email=email, role=UserRole.ADMIN)
            elif user.role != UserRole.ADMIN:
                user.role = UserRole.ADMIN
                logger.info(f"Promoted user {user.id} to ADMIN")

            admins.append(user)

        await db.commit()
        return admins
