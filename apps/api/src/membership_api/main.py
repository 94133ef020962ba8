"""
Membership API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database and Redis connections
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from membership_api.api import api_router
from membership_api.core.config import settings
from membership_api.core.database import close_db, init_db, ping_db
from membership_api.core.redis import close_redis, init_redis, ping_redis

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Connects Redis and the database on startup. Failures are fatal only in
    production; elsewhere the API starts degraded (rate limiting falls back
    to memory).
    """
    logger.info(f"Starting Membership API in {settings.python_env} mode...")

    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.error(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    logger.info("Shutting down Membership API...")
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Membership API",
    description="Membership application, payment review and onboarding API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Membership API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "membership-api"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> JSONResponse:
    """
    Readiness check endpoint.

    Not ready without the database. Redis only degrades rate limiting to
    per-process memory, so it is reported but doesn't fail the check.
    """
    database_ok = await ping_db()
    redis_ok = await ping_redis()

    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if database_ok else "not_ready",
            "database": "ok" if database_ok else "unavailable",
            "redis": "ok" if redis_ok else "unavailable",
        },
    )
