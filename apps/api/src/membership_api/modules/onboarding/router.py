"""
Onboarding Router

Endpoints:
- GET /onboarding - Get own onboarding state
- POST /onboarding - Submit onboarding answers (once)

Only accepted members and admins may use these endpoints.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.auth import CurrentUser, get_current_user
from membership_api.core.database import get_db
from membership_api.core.errors import ServiceError, raise_http_error, raise_internal_error
from membership_api.modules.onboarding import service
from membership_api.modules.onboarding.schemas import (
    OnboardingStatusResponse,
    OnboardingSubmitRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=OnboardingStatusResponse,
    summary="Get Onboarding",
    responses={403: {"description": "Not an accepted member"}},
)
async def get_onboarding(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> OnboardingStatusResponse:
    try:
        return await service.get_onboarding(db, user.id, user.role)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "getting onboarding")


@router.post(
    "",
    response_model=OnboardingStatusResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Onboarding",
    description="Submit onboarding answers. Can only be done once unless an admin resets it.",
    responses={
        403: {"description": "Not an accepted member"},
        409: {"description": "Onboarding already completed"},
    },
)
async def submit_onboarding(
    data: OnboardingSubmitRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> OnboardingStatusResponse:
    try:
        response = await service.submit_onboarding(db, user.id, user.role, data.answers)
        return OnboardingStatusResponse(
            completed=True,
            submitted_at=response.submitted_at,
            answers=response.answers,
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting onboarding")
