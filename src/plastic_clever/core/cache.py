"""
Public Response Cache

Small TTL cache for expensive, read-mostly public endpoints (platform
stats, country list, school map, landing counters).

Values are JSON-serialised into Redis with SETEX. When Redis is not
available the cache falls back to an in-process dict of
``key -> (expires_at, value)``; expired entries are pruned whenever a
new entry is stored. There is no invalidation beyond expiry:
a write that changes the underlying data is visible once the entry ages out.
Any cache failure is logged and treated as a miss.
"""

import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi.encoders import jsonable_encoder

from plastic_clever.core.config import settings
from plastic_clever.core.redis import get_redis, redis_key

logger = logging.getLogger(__name__)

# Fallback store: key -> (expires_at monotonic seconds, value)
_memory_cache: dict[str, tuple[float, Any]] = {}


def build_cache_key(endpoint: str, params: dict[str, Any] | None = None) -> str:
    """
    Build a cache key from an endpoint and its query parameters.

    Parameters with a None value are ignored and the rest are sorted, so
    ``?b=2&a=1`` and ``?a=1&b=2`` share an entry.
    """
    if not params:
        return endpoint
    parts = [f"{name}={params[name]}" for name in sorted(params) if params[name] is not None]
    if not parts:
        return endpoint
    return f"{endpoint}?{'&'.join(parts)}"


async def cache_get(key: str) -> Any | None:
    """Return the cached value for ``key`` or None on a miss."""
    client = await get_redis()
    if client is not None:
        try:
            raw = await client.get(redis_key("cache", key))
            return json.loads(raw) if raw is not None else None
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    entry = _memory_cache.get(key)
    if entry is None:
        return None
    expires_at, value = entry
    if expires_at <= time.monotonic():
        _memory_cache.pop(key, None)
        return None
    return value


async def cache_set(key: str, value: Any, ttl_seconds: int | None = None) -> None:
    """Store ``value`` under ``key`` for ``ttl_seconds`` (default from settings)."""
    ttl = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
    encoded = jsonable_encoder(value)

    client = await get_redis()
    if client is not None:
        try:
            await client.setex(redis_key("cache", key), ttl, json.dumps(encoded))
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
        return

    now = time.monotonic()
    _prune_expired(now)
    _memory_cache[key] = (now + ttl, encoded)


def _prune_expired(now: float) -> None:
    """Drop every in-process entry whose expiry has passed."""
    expired = [name for name, (expires_at, _) in _memory_cache.items() if expires_at <= now]
    for name in expired:
        del _memory_cache[name]


async def cached(
    key: str,
    loader: Callable[[], Awaitable[Any]],
    ttl_seconds: int | None = None,
) -> Any:
    """
    Return the cached value for ``key``, calling ``loader`` on a miss.

    Loader exceptions propagate and nothing is stored.
    """
    hit = await cache_get(key)
    if hit is not None:
        return hit

    value = await loader()
    await cache_set(key, value, ttl_seconds)
    return jsonable_encoder(value)


def clear_memory_cache() -> None:
    """Drop every in-process entry."""
    _memory_cache.clear()
