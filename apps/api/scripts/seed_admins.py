"""
Seed Admin Users

Creates (or promotes) the users listed in ADMIN_EMAILS to the ADMIN role.
Safe to run repeatedly.

Usage:
    cd apps/api
    ADMIN_EMAILS=alice@example.org,bob@example.org python scripts/seed_admins.py
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from membership_api.core.config import settings
from membership_api.modules.applications.models import Application  # noqa: F401 - needed for relationship resolution
from membership_api.modules.users.repository import UserRepository


async def seed_admins() -> None:
    """Ensure every ADMIN_EMAILS address has an ADMIN account."""
    emails = settings.admin_emails_list
    if not emails:
        print("ADMIN_EMAILS is empty, nothing to seed.")
        return

    engine = create_async_engine(settings.database_url, echo=False)
    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        admins = await UserRepository.ensure_admins(db, emails)

        print(f"Ensured {len(admins)} admin user(s):")
        for admin in admins:
            print(f"  {admin.email} (ID: {admin.id})")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_admins())
