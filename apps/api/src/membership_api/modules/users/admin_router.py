"""
Users Admin Router

Endpoints:
- GET /admin/users - All users with their application summary
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.auth import CurrentUser, get_current_admin_user
from membership_api.core.database import get_db
from membership_api.core.errors import raise_http_error, raise_internal_error
from membership_api.modules.users import service
from membership_api.modules.users.schemas import AdminUserListResponse
from membership_api.modules.users.service import UserServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=AdminUserListResponse,
    summary="List Users",
    description="""
List every user, newest first, with a compact summary of their application
(status, submitted_at, payment_verified_at) or `null`.

**Access:** Admin only
""",
)
async def list_users(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> AdminUserListResponse:
    try:
        result = await service.admin_list_users(db)
        logger.info(f"Admin {admin.id} listed users: total={result.total}")
        return result
    except UserServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "listing users")
