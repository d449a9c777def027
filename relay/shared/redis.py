"""Redis connection helper."""

from __future__ import annotations

import redis.asyncio as redis

from relay.shared.config import get_settings

_redis_client: redis.Redis | None = None


async def get_redis(redis_url: str | None = None) -> redis.Redis:
    """Get or create a Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            redis_url or get_settings().redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
