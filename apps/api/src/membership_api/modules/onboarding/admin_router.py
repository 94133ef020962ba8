"""
Onboarding Admin Router

Endpoints:
- POST /admin/onboarding/reset/{user_id} - Let a user redo onboarding
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.auth import CurrentUser, get_current_admin_user
from membership_api.core.database import get_db
from membership_api.core.errors import ServiceError, raise_http_error, raise_internal_error
from membership_api.core.rate_limit import enforce_admin_rate_limit
from membership_api.modules.onboarding import service
from membership_api.modules.onboarding.schemas import OnboardingResetResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_RESET = (20, 60)  # 20 resets per minute


@router.post(
    "/reset/{user_id}",
    response_model=OnboardingResetResponse,
    summary="Reset Onboarding",
    description="""
Delete a user's onboarding response and clear their completion marker, in one transaction.

**Access:** Admin only
""",
    responses={
        404: {"description": "User not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def reset_onboarding(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> OnboardingResetResponse:
    await enforce_admin_rate_limit(admin.id, "onboarding_reset", *RATE_LIMIT_RESET)

    try:
        await service.admin_reset_onboarding(db, admin.id, user_id)
        return OnboardingResetResponse(user_id=user_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "resetting onboarding")
