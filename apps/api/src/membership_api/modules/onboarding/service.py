"""
Onboarding Service Layer

Onboarding is open to accepted members and to admins. Eligibility is derived
from the application status and re-checked on every read and write.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.errors import ServiceError
from membership_api.modules.applications import repository as applications_repository
from membership_api.modules.applications.models import ApplicationStatus
from membership_api.modules.onboarding import repository
from membership_api.modules.onboarding.models import OnboardingResponse
from membership_api.modules.onboarding.schemas import OnboardingStatusResponse
from membership_api.modules.users import service as users_service
from membership_api.modules.users.models import UserRole

logger = logging.getLogger(__name__)


class OnboardingServiceError(ServiceError):
    """Base exception for onboarding service errors."""


class NotEligibleError(OnboardingServiceError):
    """Raised when a non-accepted, non-admin user accesses onboarding."""

    def __init__(self):
        super().__init__(
            message="Onboarding is only available to accepted members.",
            error_code="NOT_ELIGIBLE",
            status_code=403,
        )


class OnboardingAlreadyCompletedError(OnboardingServiceError):
    """Raised when onboarding is submitted twice."""

    def __init__(self):
        super().__init__(
            message="Onboarding has already been completed.",
            error_code="ONBOARDING_ALREADY_COMPLETED",
            status_code=409,
        )


async def ensure_eligible(db: AsyncSession, user_id: UUID, role: str) -> None:
    """
    Require an admin role or an ACCEPTED application.

    Raises:
        NotEligibleError: If the user is neither
    """
    if role == UserRole.ADMIN:
        return

    application = await applications_repository.get_by_user_id(db, user_id)

    if application is None or application.status != ApplicationStatus.ACCEPTED:
        status = application.status.value if application else "NONE"
        logger.warning(f"Onboarding access denied for user {user_id}: application={status}")
        raise NotEligibleError()


async def get_onboarding(db: AsyncSession, user_id: UUID, role: str) -> OnboardingStatusResponse:
    """
    Get the caller's onboarding state.

    Raises:
        NotEligibleError: If the caller may not access onboarding
    """
    await ensure_eligible(db, user_id, role)

    response = await repository.get_by_user_id(db, user_id)

    if response is None:
        return OnboardingStatusResponse(completed=False)

    return OnboardingStatusResponse(
        completed=True,
        submitted_at=response.submitted_at,
        answers=response.answers,
    )


async def submit_onboarding(
    db: AsyncSession,
    user_id: UUID,
    role: str,
    answers: dict[str, Any],
) -> OnboardingResponse:
    """
    Store onboarding answers and mark the user as onboarded, atomically.

    Raises:
        NotEligibleError: If the caller may not access onboarding
        UserNotFoundError: If the caller's user record is gone
        OnboardingAlreadyCompletedError: If a response already exists
    """
    await ensure_eligible(db, user_id, role)

    user = await users_service.get_profile(db, user_id)

    if await repository.get_by_user_id(db, user_id) is not None:
        logger.warning(f"Onboarding already completed for user {user_id}")
        raise OnboardingAlreadyCompletedError()

    try:
        response = await repository.create_with_completion(db, user, answers)
    except repository.OnboardingAlreadyExistsError as e:
        logger.warning(f"Concurrent onboarding submission for user {user_id}")
        raise OnboardingAlreadyCompletedError() from e

    logger.info(f"Onboarding completed for user {user_id}")
    return response


async def admin_reset_onboarding(db: AsyncSession, admin_id: UUID, user_id: UUID) -> None:
    """
    Let a user redo onboarding: drop the response and clear the completion marker.

    Raises:
        UserNotFoundError: If the user does not exist
    """
    user = await users_service.get_profile(db, user_id)

    await repository.delete_and_reset(db, user)
    logger.info(f"Admin {admin_id} reset onboarding for user {user_id}")
