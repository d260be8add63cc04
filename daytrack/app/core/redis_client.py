"""
Redis client initialization and connection management.

Redis is optional: without REDIS_URL the client is None and caching is
skipped.
"""

import redis.asyncio as redis
from daytrack.app.core.config import settings


# Create async Redis client
redis_client = (
    redis.from_url(
        settings.redis_url,
        decode_responses=settings.redis_decode_responses,
    )
    if settings.redis_url
    else None
)


async def get_redis():
    """
    Get Redis client instance (or None when not configured).

    This can be used as a FastAPI dependency.
    """
    return redis_client


async def ping_redis(client) -> bool:
    """
    Test a Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    if client is None:
        return False
    try:
        return bool(await client.ping())
    except (redis.RedisError, OSError):
        return False
