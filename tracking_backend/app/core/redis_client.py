"""
Redis client initialization and connection management.

Redis holds the revoked-token blacklist.
"""

import logging

import redis.asyncio as redis
from tracking_backend.app.core.config import settings

logger = logging.getLogger(__name__)


# Created once per process
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Usable as a FastAPI dependency.
    """
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return bool(await redis_client.ping())
    except redis.RedisError as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False


async def close_redis() -> None:
    """Close the shared client on shutdown."""
    await redis_client.aclose()
