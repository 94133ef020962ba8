"""
Onboarding Repository

The onboarding response and the user's completion marker are always written
in the same commit.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.modules.onboarding.models import OnboardingResponse
from membership_api.modules.users.models import User


class OnboardingAlreadyExistsError(ValueError):
    """Raised when the user already has an onboarding response (unique on user_id)."""

    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} already completed onboarding")


async def get_by_user_id(db: AsyncSession, user_id: UUID) -> OnboardingResponse | None:
    """Get a user's onboarding response."""
    result = await db.execute(
        select(OnboardingResponse).where(OnboardingResponse.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_with_completion(
    db: AsyncSession,
    user: User,
    answers: dict[str, Any],
) -> OnboardingResponse:
    """
    Store the onboarding response and mark the user as onboarded.

    Raises:
        OnboardingAlreadyExistsError: If a response already exists for the user
    """
    now = datetime.now(UTC)
    response = OnboardingResponse(user_id=user.id, answers=answers, submitted_at=now)

    db.add(response)
    user.onboarding_completed_at = now

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise OnboardingAlreadyExistsError(user.id) from e

    await db.refresh(response)
    return response


async def delete_and_reset(db: AsyncSession, user: User) -> None:
    """Remove the user's onboarding response and clear the completion marker."""
    await db.execute(delete(OnboardingResponse).where(OnboardingResponse.user_id == user.id))
    user.onboarding_completed_at = None
    await db.commit()
