"""
Membership Applications Router

Applicant-facing endpoints. Every endpoint requires an authenticated user and
only ever touches that user's own application.

Endpoints:
- GET /application - Get own application with state flags
- POST /application/start - Start an application (idempotent)
- PUT /application/draft - Save draft answers
- POST /application/payment-proof/upload-url - Get a pre-signed proof upload URL
- POST /application/submit - Submit for review
- POST /application/reapply - Resubmit after rejection
- DELETE /application - Cancel a draft
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.auth import CurrentUser, get_current_user
from membership_api.core.database import get_db
from membership_api.core.errors import raise_http_error, raise_internal_error
from membership_api.core.storage import PaymentProofStorage, get_proof_storage
from membership_api.modules.applications import service
from membership_api.modules.applications.schemas import (
    AnswersRequest,
    ApplicationResponse,
    CancelApplicationResponse,
    GetApplicationResponse,
    ProofUploadUrlRequest,
    ProofUploadUrlResponse,
    StartApplicationResponse,
)
from membership_api.modules.applications.service import ApplicationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

INCOMPLETE_EXAMPLE = {
    "application/json": {
        "example": {
            "detail": {
                "error": "APPLICATION_INCOMPLETE",
                "message": "Application is incomplete.",
                "missing_required_fields": ["facebookLink", "referenceNumber"],
                "missing_payment_proof": False,
            }
        }
    }
}


@router.get(
    "",
    response_model=GetApplicationResponse,
    summary="Get My Application",
    description="""
Get the caller's application, if any.

Besides the record itself the response carries flags the form uses:
`can_submit`, `can_reapply`, `can_upload_payment_proof`, `membership_granted`,
`is_complete_for_submission`, `missing_required_fields` and `missing_payment_proof`.
""",
)
async def get_my_application(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> GetApplicationResponse:
    try:
        return await service.get_application(db, user.id)
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "getting application")


@router.post(
    "/start",
    response_model=StartApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start Application",
    description="""
Create an empty DRAFT application for the caller.

Idempotent: if the caller already has an application it is returned unchanged
with `created: false` and status 200.
""",
    responses={
        200: {"description": "Application already existed", "model": StartApplicationResponse},
        201: {"description": "Application created", "model": StartApplicationResponse},
    },
)
async def start_application(
    response: Response,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> StartApplicationResponse:
    try:
        application, created = await service.start_application(db, user.id)
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "starting application")

    if not created:
        response.status_code = status.HTTP_200_OK

    return StartApplicationResponse(
        created=created,
        application=ApplicationResponse.model_validate(application),
    )


@router.put(
    "/draft",
    response_model=ApplicationResponse,
    summary="Save Draft",
    description="""
Save partial answers. Only fields present in the body are changed; send `null`
(or an empty string) to clear a field.

Allowed while the application is DRAFT or REJECTED.
""",
    responses={
        409: {"description": "Application not started or not editable"},
    },
)
async def save_draft(
    data: AnswersRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.save_draft(db, user.id, data.answers)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "saving draft")


@router.post(
    "/payment-proof/upload-url",
    response_model=ProofUploadUrlResponse,
    summary="Get Payment Proof Upload URL",
    description="""
Issue a pre-signed URL for uploading the payment proof image directly to object storage.

**Accepted types:** `image/jpeg`, `image/png`, `image/webp` (10 MiB max by default).

The new object key is attached to the application immediately and any previous
payment verification is cleared. Upload with `PUT` and the returned
`required_headers`.
""",
    responses={
        409: {"description": "Application not started or payment proof locked"},
        422: {"description": "Unsupported content type or file too large"},
        503: {"description": "Object storage unavailable"},
    },
)
async def request_payment_proof_upload_url(
    data: ProofUploadUrlRequest,
    db: AsyncSession = Depends(get_db),
    storage: PaymentProofStorage = Depends(get_proof_storage),
    user: CurrentUser = Depends(get_current_user),
) -> ProofUploadUrlResponse:
    try:
        return await service.request_proof_upload_url(
            db, storage, user.id, data.content_type, data.content_length
        )
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "issuing payment proof upload URL")


@router.post(
    "/submit",
    response_model=ApplicationResponse,
    summary="Submit Application",
    description="""
Submit the application for review (DRAFT -> PENDING).

The submitted answers replace the stored ones. All required fields and an
uploaded payment proof are needed; otherwise the response lists what is missing.
""",
    responses={
        409: {
            "description": "Not started, already submitted, rejected (use reapply) or incomplete",
            "content": INCOMPLETE_EXAMPLE,
        },
    },
)
async def submit_application(
    data: AnswersRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.submit_application(db, user.id, data.answers)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting application")


@router.post(
    "/reapply",
    response_model=ApplicationResponse,
    summary="Reapply",
    description="""
Resubmit a rejected application (REJECTED -> PENDING).

Review fields and payment verification are reset. The existing payment proof is
kept unless a new one was uploaded.
""",
    responses={
        409: {
            "description": "Not started, not rejected or incomplete",
            "content": INCOMPLETE_EXAMPLE,
        },
    },
)
async def reapply(
    data: AnswersRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.reapply(db, user.id, data.answers)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "reapplying")


@router.delete(
    "",
    response_model=CancelApplicationResponse,
    summary="Cancel Draft",
    description="Delete the caller's application. Only allowed while it is a DRAFT.",
    responses={
        409: {"description": "Application not started or already submitted"},
    },
)
async def cancel_application(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CancelApplicationResponse:
    try:
        await service.cancel_application(db, user.id)
        return CancelApplicationResponse()
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "cancelling application")
