"""
Membership Applications Admin Router

Review endpoints for admins. All endpoints require an ADMIN token.

Endpoints:
- GET /admin/applications - Review queue (non-draft, newest first)
- GET /admin/applications/{id} - Application detail with answers
- POST /admin/applications/{id}/payment-verify - Confirm the proof exists in storage
- POST /admin/applications/{id}/decision - Accept or reject

Security:
- Admin role enforced by get_current_admin_user
- Rate limiting on write endpoints
- Audit logging for all admin actions
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.auth import CurrentUser, get_current_admin_user
from membership_api.core.database import get_db
from membership_api.core.errors import raise_http_error, raise_internal_error
from membership_api.core.rate_limit import enforce_admin_rate_limit
from membership_api.core.storage import PaymentProofStorage, get_proof_storage
from membership_api.modules.applications import service
from membership_api.modules.applications.schemas import (
    ApplicationDetail,
    ApplicationListResponse,
    ApplicationResponse,
    DecisionRequest,
)
from membership_api.modules.applications.service import ApplicationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_VERIFY_PAYMENT = (30, 60)  # 30 verifications per minute
RATE_LIMIT_DECISION = (10, 60)  # 10 decisions per minute


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications For Review",
    description="""
List every submitted application (PENDING, ACCEPTED, REJECTED), most recent
submission first. Drafts are never listed.

Each item includes the applicant and a short-lived `payment_proof_view_url`,
which is `null` if storage could not sign one.

**Access:** Admin only
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
    },
)
async def list_applications(
    db: AsyncSession = Depends(get_db),
    storage: PaymentProofStorage = Depends(get_proof_storage),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    try:
        applications = await service.admin_list_applications(db, storage)
        logger.info(f"Admin {admin.id} listed applications: total={len(applications)}")
        return ApplicationListResponse(applications=applications, total=len(applications))
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "listing applications")


@router.get(
    "/{application_id}",
    response_model=ApplicationDetail,
    summary="Get Application Details",
    description="""
Get an application with its raw answers, the applicant and a fresh
`payment_proof_view_url` (or `null` if storage is unavailable).

**Access:** Admin only
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
        404: {"description": "Application not found"},
    },
)
async def get_application_detail(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: PaymentProofStorage = Depends(get_proof_storage),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationDetail:
    try:
        detail = await service.admin_get_application_detail(db, storage, application_id)
        logger.info(f"Admin {admin.id} viewed application {application_id}")
        return detail
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "getting application detail")


@router.post(
    "/{application_id}/payment-verify",
    response_model=ApplicationResponse,
    summary="Verify Payment",
    description="""
Mark the payment as verified after confirming, against object storage, that
the uploaded proof exists.

**Errors:**
- `PAYMENT_PROOF_MISSING` - no proof uploaded
- `APPLICATION_NOT_SUBMITTED` - application is still a draft
- `PAYMENT_PROOF_NOT_FOUND` - proof key set but the file is not in storage
- `STORAGE_UNAVAILABLE` - storage could not be checked (retry later)

**Access:** Admin only
""",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Proof missing, not found, or application not submitted"},
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Object storage unavailable"},
    },
)
async def verify_payment(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: PaymentProofStorage = Depends(get_proof_storage),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationResponse:
    await enforce_admin_rate_limit(admin.id, "verify_payment", *RATE_LIMIT_VERIFY_PAYMENT)

    try:
        application = await service.admin_verify_payment(db, storage, admin.id, application_id)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "verifying payment")


@router.post(
    "/{application_id}/decision",
    response_model=ApplicationResponse,
    summary="Decide Application",
    description="""
Accept or reject a PENDING application, with an optional note.

Accepting requires a verified payment (`PAYMENT_NOT_VERIFIED` otherwise).

**Access:** Admin only
""",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Not submitted, already decided, or payment not verified"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def decide_application(
    application_id: UUID,
    data: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationResponse:
    await enforce_admin_rate_limit(admin.id, "decision", *RATE_LIMIT_DECISION)

    try:
        application = await service.admin_decide(
            db, admin.id, application_id, data.outcome, data.note
        )
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "deciding application")
