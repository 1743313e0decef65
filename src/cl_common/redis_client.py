"""Redis client factory — used for rate limiting and the notification relay only.

NOT used for inventory or any other state (that goes through the DocumentStore).
The client is created by the backend handle, not at import time.
"""

import redis.asyncio as aioredis

from config.settings import Settings


def create_redis(settings: Settings) -> aioredis.Redis | None:
    """Build a Redis connection pool, or None when REDIS_URL is empty."""
    if not settings.REDIS_URL:
        return None
    return aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )


async def close_redis(client: aioredis.Redis | None) -> None:
    """Close the Redis connection pool."""
    if client is not None:
        await client.aclose()
