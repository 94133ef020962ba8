"""
Rate Limiting Module

Sliding-window rate limiting for admin write actions (payment verification,
decisions, onboarding resets). Uses the shared Redis client when it is
connected and falls back to in-process memory otherwise.
"""

import logging
import time

from fastapi import HTTPException, status
from redis.asyncio import Redis

from membership_api.core import redis as redis_module

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using a Redis sorted set as a sliding window.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using in-memory storage.

    Only consistent within a single process.
    """
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Args:
        key: Unique key for this rate limit (e.g., "admin:decide:<admin id>")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = redis_module.redis_client

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_admin_rate_limit(
    admin_id: object,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Enforce a per-admin rate limit for a named action.

    Raises:
        RateLimitExceeded: If the admin exceeded the limit
    """
    key = f"admin:{action}:{admin_id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for admin {admin_id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "enforce_admin_rate_limit",
]
