"""
Token Revocation using Redis.

Logout blacklists the token's jti until the token would have expired anyway.
"""

import logging
from fleetops.app.core import redis_client as redis_module
from fleetops.app.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(jti: str, user_id: int) -> None:
    """
    Revoke a token by its jti.

    Args:
        jti: Token identifier from the JWT payload
        user_id: Owner of the token, stored for auditing
    """
    ttl_seconds = settings.access_token_expire_minutes * 60
    await redis_module.redis_client.set(f"{TOKEN_BLACKLIST_PREFIX}{jti}", str(user_id), ex=ttl_seconds)
    logger.info("Token %s revoked for user %s", jti, user_id)


async def is_token_revoked(jti: str) -> bool:
    """True if the token with this jti has been revoked."""
    exists = await redis_module.redis_client.exists(f"{TOKEN_BLACKLIST_PREFIX}{jti}")
    return exists > 0
