from fastapi import APIRouter

from membership_api.modules.applications import router as applications_router
from membership_api.modules.applications.admin_router import router as admin_applications_router
from membership_api.modules.onboarding import router as onboarding_router
from membership_api.modules.onboarding.admin_router import router as admin_onboarding_router
from membership_api.modules.users.admin_router import router as admin_users_router
from membership_api.modules.users.router import router as me_router

api_router = APIRouter()

api_router.include_router(me_router, prefix="/me", tags=["Users"])

api_router.include_router(applications_router, prefix="/application", tags=["Application"])

api_router.include_router(onboarding_router, prefix="/onboarding", tags=["Onboarding"])

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)

api_router.include_router(admin_users_router, prefix="/admin/users", tags=["Admin - Users"])

api_router.include_router(
    admin_onboarding_router,
    prefix="/admin/onboarding",
    tags=["Admin - Onboarding"],
)
