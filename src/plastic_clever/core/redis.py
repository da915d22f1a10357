"""
Redis Connection

One process-wide async client, shared by the public response cache and the
rate limiter. Both treat Redis as optional and fall back to in-process
storage when ``get_redis()`` returns None.
"""

import logging

from redis.asyncio import Redis, from_url

from plastic_clever.core.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "pcs"

redis_client: Redis | None = None


def redis_key(*parts: str) -> str:
    """Build a namespaced key, e.g. ``pcs:cache:/api/stats``."""
    return ":".join((KEY_PREFIX, *parts))


async def init_redis() -> Redis:
    """Connect on application startup; raises if the server is unreachable."""
    global redis_client
    client = from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    await client.ping()
    redis_client = client
    logger.info("Redis client initialized")
    return redis_client


async def get_redis() -> Redis | None:
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
