"""
Redis client initialization.

Redis holds the token revocation list used by logout. Callers reach the
client through this module's attribute so it can be swapped in tests.
"""

import redis.asyncio as redis
from fleetops.app.core.config import settings


redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)
