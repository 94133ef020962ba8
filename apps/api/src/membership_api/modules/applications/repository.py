"""
Membership Applications Repository

Database operations for membership applications. Business rules (who may do
what, completeness) live in the service layer; this module owns the status
transition table and makes every multi-field change a single commit.

Design Principles:
- One application per user, enforced by the unique constraint on user_id
- Status changes go through update_status, which validates the transition
- Row locks (SELECT ... FOR UPDATE) for read-check-write sequences
- Timezone-aware datetime handling (UTC)
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.modules.applications.models import Application, ApplicationStatus
from membership_api.modules.users.models import User

# Valid status transitions - prevents invalid state changes
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: {
        ApplicationStatus.PENDING,  # Submitted
    },
    ApplicationStatus.PENDING: {
        ApplicationStatus.ACCEPTED,  # Decision
        ApplicationStatus.REJECTED,  # Decision
    },
    ApplicationStatus.REJECTED: {
        ApplicationStatus.PENDING,  # Reapplied
    },
    # Terminal state - no transitions allowed
    ApplicationStatus.ACCEPTED: set(),
}

# Fields reset whenever an application (re)enters review
REVIEW_RESET_FIELDS: dict[str, Any] = {
    "reviewed_at": None,
    "reviewed_by": None,
    "decision_note": None,
    "payment_verified_at": None,
    "payment_verified_by": None,
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        current_status: ApplicationStatus,
        new_status: ApplicationStatus,
    ):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


class ApplicationAlreadyExistsError(ValueError):
    """Raised when a user already has an application (unique constraint on user_id)."""

    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} already has an application")


async def create_for_user(db: AsyncSession, user_id: UUID) -> Application:
    """
    Create an empty DRAFT application for a user.

    A concurrent second insert for the same user fails on the unique
    constraint and is reported as ApplicationAlreadyExistsError.

    Raises:
        ApplicationAlreadyExistsError: If the user already has an application
    """
    application = Application(
        user_id=user_id,
        answers={},
        status=ApplicationStatus.DRAFT,
        submitted_at=datetime.now(UTC),
    )

    db.add(application)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ApplicationAlreadyExistsError(user_id) from e

    await db.refresh(application)
    return application


async def get_by_id(
    db: AsyncSession, id: UUID, *, for_update: bool = False
) -> Application | None:
    """Get application by ID, optionally locking the row."""
    if not for_update:
        return await db.get(Application, id)

    result = await db.execute(select(Application).where(Application.id == id).with_for_update())
    return result.scalar_one_or_none()


async def get_by_user_id(
    db: AsyncSession, user_id: UUID, *, for_update: bool = False
) -> Application | None:
    """Get the application owned by a user, optionally locking the row."""
    query = select(Application).where(Application.user_id == user_id)
    if for_update:
        query = query.with_for_update()

    result = await db.execute(query)
    return result.scalar_one_or_none()


async def update_status(
    db: AsyncSession,
    id: UUID,
    status: ApplicationStatus,
    **kwargs,
) -> Application:
    """
    Update application status and optional fields in one commit.

    Validates that the status transition is allowed by the state machine.

    Args:
        db: Database session
        id: Application UUID
        status: New status to set
        **kwargs: Additional fields to update (e.g., reviewed_at)

    Returns:
        Updated Application

    Raises:
        ValueError: If application not found
        InvalidStatusTransitionError: If status transition is not allowed
    """
    application = await get_by_id(db, id, for_update=True)
    if not application:
        raise ValueError(f"Application {id} not found")

    current_status = application.status
    valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())

    if status != current_status and status not in valid_transitions:
        raise InvalidStatusTransitionError(current_status, status)

    application.status = status

    for key, value in kwargs.items():
        if hasattr(application, key):
            setattr(application, key, value)

    await db.commit()
    await db.refresh(application)

    return application


async def submit_for_review(
    db: AsyncSession,
    application_id: UUID,
    answers: dict[str, Any],
) -> Application:
    """
    Move an application into PENDING with a fresh answers snapshot.

    Used by both first submission (from DRAFT) and reapply (from REJECTED).
    Status, answers, submitted_at and the cleared review/verification fields
    are written together.

    Raises:
        ValueError: If application not found
        InvalidStatusTransitionError: If the application cannot enter review
    """
    return await update_status(
        db,
        application_id,
        ApplicationStatus.PENDING,
        answers=answers,
        submitted_at=datetime.now(UTC),
        **REVIEW_RESET_FIELDS,
    )


async def merge_answers(
    db: AsyncSession,
    application: Application,
    answers: dict[str, Any],
) -> Application:
    """
    Shallow-merge answers into the stored map.

    Keys present in ``answers`` replace stored values; other stored keys stay.
    """
    # New dict so the JSON column change is detected
    application.answers = {**(application.answers or {}), **answers}

    await db.commit()
    await db.refresh(application)

    return application


async def attach_payment_proof(
    db: AsyncSession,
    application: Application,
    object_key: str,
) -> Application:
    """
    Attach a freshly issued payment proof key.

    Any previous verification refers to the old object and is cleared.
    """
    application.payment_proof_key = object_key
    application.payment_proof_uploaded_at = datetime.now(UTC)
    application.payment_verified_at = None
    application.payment_verified_by = None

    await db.commit()
    await db.refresh(application)

    return application


async def mark_payment_verified(
    db: AsyncSession,
    application: Application,
    verified_by: UUID,
) -> Application:
    """Record that an admin confirmed the payment proof object exists."""
    application.payment_verified_at = datetime.now(UTC)
    application.payment_verified_by = verified_by

    await db.commit()
    await db.refresh(application)

    return application


async def delete(db: AsyncSession, application: Application) -> None:
    """Hard-delete an application."""
    await db.delete(application)
    await db.commit()


# ============================================
# Admin Repository Methods
# ============================================


async def update_application_decision(
    db: AsyncSession,
    application_id: UUID,
    status: ApplicationStatus,
    decision_note: str | None = None,
    reviewed_by: UUID | None = None,
) -> Application:
    """
    Record an admin decision (ACCEPTED or REJECTED).

    Sets the status, reviewer, decision note and reviewed_at timestamp.

    Raises:
        ValueError: If application not found
        InvalidStatusTransitionError: If transition is invalid
    """
    return await update_status(
        db,
        application_id,
        status,
        reviewed_at=datetime.now(UTC),
        reviewed_by=reviewed_by,
        decision_note=decision_note,
    )


async def get_applications_for_review(
    db: AsyncSession,
) -> list[tuple[Application, User]]:
    """
    Get every submitted application with its owner, newest submission first.

    DRAFT applications are never shown to reviewers.

    Returns:
        List of (application, user) tuples
    """
    result = await db.execute(
        select(Application, User)
        .join(User, User.id == Application.user_id)
        .where(Application.status != ApplicationStatus.DRAFT)
        .order_by(Application.submitted_at.desc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_with_user(
    db: AsyncSession,
    application_id: UUID,
) -> tuple[Application, User] | None:
    """Get an application together with its owner."""
    result = await db.execute(
        select(Application, User)
        .join(User, User.id == Application.user_id)
        .where(Application.id == application_id)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]
