"""
Token revocation using Redis.

Signing out blacklists the presented JWT until it would have expired anyway.
"""

import logging

from redis.exceptions import RedisError

import tracking_backend.app.core.redis_client as redis_client_module
from tracking_backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


def _key(token: str) -> str:
    return f"{TOKEN_BLACKLIST_PREFIX}{token}"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Add a token to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: Owner of the token, stored as the value for auditing

    Returns:
        True if the token was blacklisted
    """
    ttl_seconds = settings.access_token_expire_minutes * 60
    try:
        await redis_client_module.redis_client.set(_key(token), str(user_id), ex=ttl_seconds)
        return True
    except RedisError:
        logger.exception("Error revoking token for user %s", user_id)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check the blacklist.

    Fails open when Redis is unreachable: the request is allowed and the
    error is logged.
    """
    try:
        return await redis_client_module.redis_client.exists(_key(token)) > 0
    except RedisError:
        logger.exception("Error checking token revocation")
        return False
