"""
Membership Applications Service Layer

Business logic for the membership application lifecycle. Orchestrates the
repository, the completeness evaluator and the payment proof storage gateway.

This module implements:
1. Applicant Flow:
   - Start an application (idempotent, one per user)
   - Save drafts (DRAFT or REJECTED only, shallow merge)
   - Issue payment proof upload URLs and attach the new object key
   - Submit (DRAFT -> PENDING) and reapply (REJECTED -> PENDING)
   - Cancel a draft (hard delete, DRAFT only)

2. Admin Review:
   - Review queue and detail, with best-effort proof view URLs
   - Payment verification against the object store at the time of the action
   - Decisions, where acceptance requires a verified payment

Guarantees:
- Every rejected guard raises a specific ApplicationServiceError subclass
  with a stable error_code; nothing is written when a guard fails
- Re-uploading a payment proof clears any previous verification
- A storage outage during verification is STORAGE_UNAVAILABLE, never
  PAYMENT_PROOF_NOT_FOUND
- Storage failures while building view URLs degrade to a null URL
- Answers content and signed URLs are never logged
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.errors import ServiceError
from membership_api.core.storage import PaymentProofStorage, StorageError, is_allowed_content_type
from membership_api.modules.applications import repository
from membership_api.modules.applications.completeness import evaluate_completeness
from membership_api.modules.applications.models import Application, ApplicationStatus
from membership_api.modules.applications.schemas import (
    ApplicantInfo,
    ApplicationAnswers,
    ApplicationDetail,
    ApplicationSummary,
    ApplicationView,
    DecisionOutcome,
    GetApplicationResponse,
    ProofUploadUrlResponse,
)

logger = logging.getLogger(__name__)

# Statuses in which the applicant may still change answers or the proof
EDITABLE_STATUSES = {
    ApplicationStatus.DRAFT,
    ApplicationStatus.REJECTED,
}


class ApplicationServiceError(ServiceError):
    """Base exception for application service errors."""


class ApplicationNotStartedError(ApplicationServiceError):
    """Raised when an applicant action needs an application that doesn't exist yet."""

    def __init__(self):
        super().__init__(
            message="You have not started an application yet.",
            error_code="APPLICATION_NOT_STARTED",
            status_code=409,
        )


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class ApplicationNotEditableError(ApplicationServiceError):
    """Raised when answers are changed outside DRAFT/REJECTED."""

    def __init__(self, current_status: str):
        super().__init__(
            message=f"Application cannot be edited in status: {current_status}.",
            error_code="APPLICATION_NOT_EDITABLE",
            status_code=409,
        )


class PaymentProofLockedError(ApplicationServiceError):
    """Raised when a proof upload is requested while the application is under review or accepted."""

    def __init__(self, current_status: str):
        super().__init__(
            message=f"Payment proof cannot be changed in status: {current_status}.",
            error_code="PAYMENT_PROOF_LOCKED",
            status_code=409,
        )


class ApplicationAlreadySubmittedError(ApplicationServiceError):
    """Raised when submit is called on an application that already left DRAFT."""

    def __init__(self, current_status: str):
        super().__init__(
            message=f"Application has already been submitted (status: {current_status}).",
            error_code="APPLICATION_ALREADY_SUBMITTED",
            status_code=409,
        )


class UseReapplyError(ApplicationServiceError):
    """Raised when submit is called on a rejected application."""

    def __init__(self):
        super().__init__(
            message="Your application was rejected. Use the reapply action to resubmit.",
            error_code="USE_REAPPLY",
            status_code=409,
        )


class ApplicationIncompleteError(ApplicationServiceError):
    """Raised when required answers or the payment proof are missing."""

    def __init__(self, missing_required_fields: list[str], missing_payment_proof: bool):
        self.missing_required_fields = missing_required_fields
        self.missing_payment_proof = missing_payment_proof
        super().__init__(
            message="Application is incomplete.",
            error_code="APPLICATION_INCOMPLETE",
            status_code=409,
            details={
                "missing_required_fields": missing_required_fields,
                "missing_payment_proof": missing_payment_proof,
            },
        )


class CannotReapplyError(ApplicationServiceError):
    """Raised when reapply is called on an application that isn't REJECTED."""

    def __init__(self, current_status: str):
        super().__init__(
            message=f"Cannot reapply in status: {current_status}. "
            "Only rejected applications can be resubmitted.",
            error_code="CANNOT_REAPPLY",
            status_code=409,
        )


class CannotCancelApplicationError(ApplicationServiceError):
    """Raised when cancelling an application that already left DRAFT."""

    def __init__(self, current_status: str):
        super().__init__(
            message=f"Cannot cancel application in status: {current_status}. "
            "Only drafts can be cancelled.",
            error_code="CANNOT_CANCEL_APPLICATION",
            status_code=409,
        )


class InvalidPaymentProofError(ApplicationServiceError):
    """Raised when the proof's content type or size is not accepted."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="INVALID_PAYMENT_PROOF",
            status_code=422,
        )


class StorageUnavailableError(ApplicationServiceError):
    """Raised when the object store fails during an action that depends on it."""

    def __init__(self):
        super().__init__(
            message="Payment proof storage is temporarily unavailable. Please try again.",
            error_code="STORAGE_UNAVAILABLE",
            status_code=503,
        )


# ============================================
# Helpers
# ============================================


def build_application_view(application: Application) -> ApplicationView:
    """Application record plus the derived flags shown to the applicant."""
    completeness = evaluate_completeness(application.answers, application.payment_proof_key)
    status = application.status

    return ApplicationView(
        id=application.id,
        user_id=application.user_id,
        status=status,
        answers=application.answers or {},
        payment_proof_key=application.payment_proof_key,
        payment_proof_uploaded_at=application.payment_proof_uploaded_at,
        payment_verified_at=application.payment_verified_at,
        submitted_at=application.submitted_at,
        reviewed_at=application.reviewed_at,
        decision_note=application.decision_note,
        created_at=application.created_at,
        updated_at=application.updated_at,
        can_submit=status == ApplicationStatus.DRAFT,
        can_reapply=status == ApplicationStatus.REJECTED,
        can_upload_payment_proof=status in EDITABLE_STATUSES,
        membership_granted=status == ApplicationStatus.ACCEPTED,
        is_complete_for_submission=completeness.is_complete,
        missing_required_fields=completeness.missing_required_fields,
        missing_payment_proof=completeness.missing_payment_proof,
    )


async def _get_own_application(
    db: AsyncSession, user_id: UUID, *, for_update: bool = False
) -> Application:
    application = await repository.get_by_user_id(db, user_id, for_update=for_update)

    if not application:
        logger.warning(f"No application started for user {user_id}")
        raise ApplicationNotStartedError()

    return application


def _ensure_complete(application: Application, snapshot: dict) -> None:
    completeness = evaluate_completeness(snapshot, application.payment_proof_key)

    if not completeness.is_complete:
        logger.warning(
            f"Incomplete application {application.id}: "
            f"missing_fields={len(completeness.missing_required_fields)}, "
            f"missing_payment_proof={completeness.missing_payment_proof}"
        )
        raise ApplicationIncompleteError(
            completeness.missing_required_fields,
            completeness.missing_payment_proof,
        )


async def _enter_review(db: AsyncSession, application: Application, snapshot: dict) -> Application:
    try:
        return await repository.submit_for_review(db, application.id, snapshot)
    except repository.InvalidStatusTransitionError as e:
        logger.error(f"Status transition error: {e}")
        raise ApplicationAlreadySubmittedError(application.status.value) from e


# ============================================
# Applicant Service Functions
# ============================================


async def get_application(db: AsyncSession, user_id: UUID) -> GetApplicationResponse:
    """
    Get the applicant's application with derived state flags.

    Returns:
        GetApplicationResponse with has_application False when none exists
    """
    application = await repository.get_by_user_id(db, user_id)

    if not application:
        return GetApplicationResponse(has_application=False, application=None)

    return GetApplicationResponse(
        has_application=True,
        application=build_application_view(application),
    )


async def start_application(db: AsyncSession, user_id: UUID) -> tuple[Application, bool]:
    """
    Start an application for the user.

    Idempotent: if the user already has an application (including one created
    by a concurrent request), that record is returned unchanged.

    Returns:
        Tuple of (application, created)
    """
    existing = await repository.get_by_user_id(db, user_id)
    if existing:
        return existing, False

    try:
        application = await repository.create_for_user(db, user_id)
    except repository.ApplicationAlreadyExistsError:
        logger.info(f"Concurrent start for user {user_id}, returning existing application")
        existing = await repository.get_by_user_id(db, user_id)
        if existing is None:
            raise
        return existing, False

    logger.info(f"Started application {application.id} for user {user_id}")
    return application, True


async def save_draft(
    db: AsyncSession,
    user_id: UUID,
    answers: ApplicationAnswers,
) -> Application:
    """
    Save partial answers without changing status.

    Only the fields present in the request are merged into the stored map;
    an explicit null clears a field.

    Raises:
        ApplicationNotStartedError: If the user has no application
        ApplicationNotEditableError: If the status is PENDING or ACCEPTED
    """
    application = await _get_own_application(db, user_id, for_update=True)

    if application.status not in EDITABLE_STATUSES:
        logger.warning(
            f"Draft save rejected for application {application.id}: status={application.status}"
        )
        raise ApplicationNotEditableError(application.status.value)

    updated = await repository.merge_answers(db, application, answers.to_stored(only_set=True))
    logger.info(f"Saved draft answers for application {application.id}")
    return updated


async def request_proof_upload_url(
    db: AsyncSession,
    storage: PaymentProofStorage,
    user_id: UUID,
    content_type: str,
    content_length: int,
) -> ProofUploadUrlResponse:
    """
    Issue a pre-signed upload URL and attach the new object key.

    The URL is signed before the key is attached, so a storage failure
    leaves the application untouched. Attaching clears any previous
    payment verification.

    Raises:
        InvalidPaymentProofError: If content type or size is not accepted
        ApplicationNotStartedError: If the user has no application
        PaymentProofLockedError: If the status is PENDING or ACCEPTED
        StorageUnavailableError: If the URL cannot be signed
    """
    if not is_allowed_content_type(content_type):
        raise InvalidPaymentProofError(
            f"Unsupported content type: {content_type}. Use JPEG, PNG or WebP."
        )
    if content_length > storage.max_bytes:
        raise InvalidPaymentProofError(
            f"Payment proof is too large. Maximum size is {storage.max_bytes} bytes."
        )

    application = await _get_own_application(db, user_id, for_update=True)

    if application.status not in EDITABLE_STATUSES:
        logger.warning(
            f"Proof upload rejected for application {application.id}: "
            f"status={application.status}"
        )
        raise PaymentProofLockedError(application.status.value)

    object_key = storage.build_object_key(user_id, content_type)

    try:
        upload = await storage.create_upload_url(object_key, content_type, content_length)
    except StorageError as e:
        logger.error(f"Could not sign proof upload for application {application.id}: {e}")
        raise StorageUnavailableError() from e

    await repository.attach_payment_proof(db, application, object_key)
    logger.info(f"Attached new payment proof key to application {application.id}")

    return ProofUploadUrlResponse(
        upload_url=upload.url,
        object_key=object_key,
        expires_in=upload.expires_in,
        required_headers={
            "Content-Type": content_type,
            "Content-Length": str(content_length),
        },
    )


async def submit_application(
    db: AsyncSession,
    user_id: UUID,
    answers: ApplicationAnswers,
) -> Application:
    """
    Submit a draft for review (DRAFT -> PENDING).

    The submitted answers replace the stored map. Review and payment
    verification fields are cleared in the same commit.

    Raises:
        ApplicationNotStartedError: If the user has no application
        UseReapplyError: If the application was rejected
        ApplicationAlreadySubmittedError: If the application is PENDING or ACCEPTED
        ApplicationIncompleteError: If required fields or the proof are missing
    """
    application = await _get_own_application(db, user_id, for_update=True)

    if application.status == ApplicationStatus.REJECTED:
        logger.warning(f"Submit on rejected application {application.id}, reapply required")
        raise UseReapplyError()

    if application.status != ApplicationStatus.DRAFT:
        logger.warning(
            f"Submit rejected for application {application.id}: status={application.status}"
        )
        raise ApplicationAlreadySubmittedError(application.status.value)

    snapshot = answers.to_stored()
    _ensure_complete(application, snapshot)

    submitted = await _enter_review(db, application, snapshot)
    logger.info(f"Application {application.id} submitted for review")
    return submitted


async def reapply(
    db: AsyncSession,
    user_id: UUID,
    answers: ApplicationAnswers,
) -> Application:
    """
    Resubmit a rejected application (REJECTED -> PENDING).

    Starts a fresh review cycle. The stored payment proof key is kept unless
    the applicant uploaded a new one.

    Raises:
        ApplicationNotStartedError: If the user has no application
        CannotReapplyError: If the application is not REJECTED
        ApplicationIncompleteError: If required fields or the proof are missing
    """
    application = await _get_own_application(db, user_id, for_update=True)

    if application.status != ApplicationStatus.REJECTED:
        logger.warning(
            f"Reapply rejected for application {application.id}: status={application.status}"
        )
        raise CannotReapplyError(application.status.value)

    snapshot = answers.to_stored()
    _ensure_complete(application, snapshot)

    resubmitted = await _enter_review(db, application, snapshot)
    logger.info(f"Application {application.id} resubmitted after rejection")
    return resubmitted


async def cancel_application(db: AsyncSession, user_id: UUID) -> None:
    """
    Delete the applicant's draft.

    Raises:
        ApplicationNotStartedError: If the user has no application
        CannotCancelApplicationError: If the application left DRAFT
    """
    application = await _get_own_application(db, user_id, for_update=True)

    if application.status != ApplicationStatus.DRAFT:
        logger.warning(
            f"Cancel rejected for application {application.id}: status={application.status}"
        )
        raise CannotCancelApplicationError(application.status.value)

    await repository.delete(db, application)
    logger.info(f"Cancelled draft application {application.id} for user {user_id}")


# ============================================
# Admin Service Functions
# ============================================


class PaymentProofMissingError(ApplicationServiceError):
    """Raised when verifying payment on an application without a proof key."""

    def __init__(self):
        super().__init__(
            message="No payment proof has been uploaded for this application.",
            error_code="PAYMENT_PROOF_MISSING",
            status_code=409,
        )


class PaymentProofNotFoundError(ApplicationServiceError):
    """Raised when the proof key is set but the object is absent from storage."""

    def __init__(self):
        super().__init__(
            message="The payment proof file was not found in storage.",
            error_code="PAYMENT_PROOF_NOT_FOUND",
            status_code=409,
        )


class ApplicationNotSubmittedError(ApplicationServiceError):
    """Raised when an admin acts on a DRAFT application."""

    def __init__(self):
        super().__init__(
            message="Application has not been submitted yet.",
            error_code="APPLICATION_NOT_SUBMITTED",
            status_code=409,
        )


class CannotDecideApplicationError(ApplicationServiceError):
    """Raised when application cannot have a decision made (wrong status)."""

    def __init__(self, current_status: str):
        super().__init__(
            message=f"Cannot decide application in status: {current_status}. "
            "Application must be in 'PENDING' status.",
            error_code="CANNOT_DECIDE_APPLICATION",
            status_code=409,
        )


class PaymentNotVerifiedError(ApplicationServiceError):
    """Raised when accepting an application whose payment isn't verified."""

    def __init__(self):
        super().__init__(
            message="Payment must be verified before the application can be accepted.",
            error_code="PAYMENT_NOT_VERIFIED",
            status_code=409,
        )


async def _view_url_or_none(storage: PaymentProofStorage, application: Application) -> str | None:
    if not application.payment_proof_key:
        return None

    try:
        return await storage.create_view_url(application.payment_proof_key)
    except StorageError as e:
        logger.warning(f"View URL unavailable for application {application.id}: {e}")
        return None


async def admin_list_applications(
    db: AsyncSession,
    storage: PaymentProofStorage,
) -> list[ApplicationSummary]:
    """
    Get the review queue: every non-DRAFT application, newest submission first.

    Each item carries a short-lived proof view URL, or None when the object
    store can't sign one.
    """
    rows = await repository.get_applications_for_review(db)

    summaries = []
    for application, user in rows:
        summary = ApplicationSummary.model_validate(application)
        summaries.append(
            summary.model_copy(
                update={
                    "payment_proof_view_url": await _view_url_or_none(storage, application),
                    "applicant": ApplicantInfo.model_validate(user),
                }
            )
        )

    logger.info(f"Admin review queue has {len(summaries)} applications")
    return summaries


async def admin_get_application_detail(
    db: AsyncSession,
    storage: PaymentProofStorage,
    application_id: UUID,
) -> ApplicationDetail:
    """
    Get complete application details for admin review.

    Raises:
        ApplicationNotFoundError: If application doesn't exist
    """
    row = await repository.get_with_user(db, application_id)

    if not row:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)

    application, user = row
    detail = ApplicationDetail.model_validate(application)
    return detail.model_copy(
        update={
            "payment_proof_view_url": await _view_url_or_none(storage, application),
            "applicant": ApplicantInfo.model_validate(user),
        }
    )


async def admin_verify_payment(
    db: AsyncSession,
    storage: PaymentProofStorage,
    admin_id: UUID,
    application_id: UUID,
) -> Application:
    """
    Confirm that the applicant's payment proof exists in storage.

    Existence is checked against the object store now, not taken from the
    applicant's upload report.

    Raises:
        ApplicationNotFoundError: If application doesn't exist
        PaymentProofMissingError: If no proof key is attached
        ApplicationNotSubmittedError: If the application is still a DRAFT
        StorageUnavailableError: If the existence check itself fails
        PaymentProofNotFoundError: If the object is absent
    """
    logger.info(f"Admin {admin_id} verifying payment for application {application_id}")

    application = await repository.get_by_id(db, application_id, for_update=True)

    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)

    if not application.payment_proof_key:
        logger.warning(f"Verify payment rejected for application {application_id}: no proof key")
        raise PaymentProofMissingError()

    if application.status == ApplicationStatus.DRAFT:
        logger.warning(f"Verify payment rejected for application {application_id}: still DRAFT")
        raise ApplicationNotSubmittedError()

    try:
        exists = await storage.object_exists(application.payment_proof_key)
    except StorageError as e:
        logger.error(f"Storage check failed for application {application_id}: {e}")
        raise StorageUnavailableError() from e

    if not exists:
        logger.warning(f"Payment proof object missing for application {application_id}")
        raise PaymentProofNotFoundError()

    verified = await repository.mark_payment_verified(db, application, admin_id)
    logger.info(f"Payment verified for application {application_id} by admin {admin_id}")
    return verified


async def admin_decide(
    db: AsyncSession,
    admin_id: UUID,
    application_id: UUID,
    outcome: DecisionOutcome,
    note: str | None = None,
) -> Application:
    """
    Accept or reject a pending application.

    Raises:
        ApplicationNotFoundError: If application doesn't exist
        ApplicationNotSubmittedError: If the application is still a DRAFT
        CannotDecideApplicationError: If the application is not PENDING
        PaymentNotVerifiedError: If accepting without a verified payment
    """
    logger.info(f"Admin {admin_id} deciding {outcome.value} on application {application_id}")

    application = await repository.get_by_id(db, application_id, for_update=True)

    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)

    if application.status == ApplicationStatus.DRAFT:
        logger.warning(f"Decision rejected for application {application_id}: still DRAFT")
        raise ApplicationNotSubmittedError()

    if application.status != ApplicationStatus.PENDING:
        logger.warning(
            f"Cannot decide application {application_id}: status={application.status}"
        )
        raise CannotDecideApplicationError(application.status.value)

    if outcome == DecisionOutcome.ACCEPTED and application.payment_verified_at is None:
        logger.warning(f"Accept rejected for application {application_id}: payment not verified")
        raise PaymentNotVerifiedError()

    try:
        decided = await repository.update_application_decision(
            db,
            application_id,
            ApplicationStatus(outcome.value),
            decision_note=note,
            reviewed_by=admin_id,
        )
    except repository.InvalidStatusTransitionError as e:
        logger.error(f"Status transition error: {e}")
        raise CannotDecideApplicationError(application.status.value) from e

    logger.info(f"Application {application_id} {outcome.value} by admin {admin_id}")
    return decided

