"""
Redis Connection

Shared async client backing the admin rate limiter. Redis is optional: when
it is down the rate limiter keeps working from process memory, so the client
stays None rather than failing requests.
"""

import logging

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from membership_api.core.config import settings

logger = logging.getLogger(__name__)

# Bounded so a stalled Redis can't hold up an admin request
SOCKET_TIMEOUT_SECONDS = 2.0

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to REDIS_URL and publish the client once it answers a ping.

    Raises:
        RedisError: If Redis is unreachable (the client is left unset)
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=SOCKET_TIMEOUT_SECONDS,
        socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
    )
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise

    redis_client = client
    return redis_client


async def ping_redis() -> bool:
    """Readiness probe: True if the shared client exists and answers."""
    if redis_client is None:
        return False
    try:
        return bool(await redis_client.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


async def close_redis() -> None:
    """Close the shared client, if any."""
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
