"""
Database Configuration

Async SQLAlchemy engine, session factory and declarative base.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from membership_api.core.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    The session is rolled back if the request handler raises.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def ping_db() -> bool:
    """Readiness probe: True if a trivial query succeeds."""
    try:
        await init_db()
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database ping failed: {e}")
        return False
    return True


async def init_db() -> None:
    """Verify the database is reachable. Call on application startup."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    """Dispose of the connection pool."""
    await engine.dispose()
