"""
Rate Limiting

Sliding-window rate limiting backed by Redis sorted sets, with an
in-memory fallback when Redis is unavailable.

Applied to:
- Login and registration (brute force / sign-up spam)
- Bulk and test email sends (mail bombing)
"""

import logging
import time

from fastapi import HTTPException, Request, status

from plastic_clever.core.redis import get_redis, redis_key

logger = logging.getLogger(__name__)

# Fallback storage: key -> (expires_at, request timestamps inside the window)
_memory_store: dict[str, tuple[float, list[float]]] = {}

RATE_LIMIT_LOGIN = (10, 60)
RATE_LIMIT_REGISTER = (5, 60)
RATE_LIMIT_BULK_EMAIL = (5, 60)
RATE_LIMIT_TEST_EMAIL = (10, 60)


class RateLimitExceeded(HTTPException):
    """Raised when a caller exceeds the allowed number of requests."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": (
                    f"Rate limit exceeded. Maximum {limit} requests per "
                    f"{window_seconds} seconds."
                ),
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()
    return results[1] < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """Single-process only; counts are not shared between workers."""
    now = time.time()
    _prune_memory_store(now)

    window_start = now - window_seconds
    _, previous = _memory_store.get(key, (0.0, []))
    hits = [ts for ts in previous if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = ((hits[-1] if hits else now) + window_seconds, hits)
        return False

    hits.append(now)
    _memory_store[key] = (now + window_seconds, hits)
    return True


def _prune_memory_store(now: float) -> None:
    """Drop keys whose newest request has left its window."""
    stale = [key for key, (expires_at, _) in _memory_store.items() if expires_at <= now]
    for key in stale:
        del _memory_store[key]


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Record a request under ``key`` and report whether it is allowed.

    Args:
        key: Unique key, e.g. "login:203.0.113.7"
        limit: Maximum requests allowed in the window
        window_seconds: Window length in seconds

    Returns:
        True if the request is within the limit
    """
    full_key = redis_key("rate_limit", key)
    client = await get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, full_key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(full_key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """Raise RateLimitExceeded (HTTP 429) if ``key`` is over its limit."""
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


def client_ip(request: Request) -> str:
    """Best-effort caller IP, honouring X-Forwarded-For behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def reset_memory_store() -> None:
    _memory_store.clear()


__all__ = [
    "RATE_LIMIT_BULK_EMAIL",
    "RATE_LIMIT_LOGIN",
    "RATE_LIMIT_REGISTER",
    "RATE_LIMIT_TEST_EMAIL",
    "RateLimitExceeded",
    "check_rate_limit",
    "client_ip",
    "enforce_rate_limit",
]
