"""
Users Router

Endpoints:
- GET /me - Public profile of the caller
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.auth import CurrentUser, get_current_user
from membership_api.core.database import get_db
from membership_api.core.errors import raise_http_error, raise_internal_error
from membership_api.modules.users import service
from membership_api.modules.users.schemas import UserPublic
from membership_api.modules.users.service import UserServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=UserPublic,
    summary="Get Current User",
    responses={404: {"description": "User no longer exists"}},
)
async def get_me(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> UserPublic:
    try:
        profile = await service.get_profile(db, user.id)
        return UserPublic.model_validate(profile)
    except UserServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "getting current user")
