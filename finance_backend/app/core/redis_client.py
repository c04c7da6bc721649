"""
Redis client initialization and connection management.

Redis backs the token revocation list.
"""

import redis.asyncio as redis
from finance_backend.app.core.config import settings


# Create async Redis client (connections are opened lazily)
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except Exception:
        return False
