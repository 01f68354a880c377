"""
Redis client - item detail cache.
Fails gracefully when Redis is down: a miss is returned and the catalog reads the DB.
"""

import json
import logging
from typing import Any

from redis.asyncio import Redis

from lendoo.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Shared async Redis client (connection pool managed by redis-py)
_redis: Redis | None = None


async def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis


async def cache_get(key: str) -> str | None:
    """Get value from cache. Returns None if miss or error (graceful degradation)."""
    try:
        client = await get_redis()
        return await client.get(key)
    except Exception as e:
        logger.warning("cache_get failed: key=%s error=%s", key, e)
        return None


async def cache_set(key: str, value: str | dict[str, Any], ttl_seconds: int = 300) -> bool:
    """Set value in cache with TTL. Dict is JSON-serialized."""
    try:
        client = await get_redis()
        if isinstance(value, dict):
            value = json.dumps(value)
        await client.setex(key, ttl_seconds, value)
        return True
    except Exception as e:
        logger.warning("cache_set failed: key=%s error=%s", key, e)
        return False


async def cache_delete(key: str) -> bool:
    """Invalidate cache key (e.g. after a reservation changed availability)."""
    try:
        client = await get_redis()
        await client.delete(key)
        return True
    except Exception as e:
        logger.warning("cache_delete failed: key=%s error=%s", key, e)
        return False


class ItemCache:
    """Item detail documents keyed by id."""

    prefix = "item:"

    def __init__(self, ttl_seconds: int | None = None):
        self.ttl_seconds = ttl_seconds or settings.item_cache_ttl_seconds

    async def get(self, item_id: int) -> dict | None:
        cached = await cache_get(self.prefix + str(item_id))
        if not cached:
            return None
        return json.loads(cached)

    async def set(self, item_id: int, doc: dict) -> None:
        await cache_set(self.prefix + str(item_id), doc, self.ttl_seconds)

    async def invalidate(self, item_id: int) -> None:
        await cache_delete(self.prefix + str(item_id))
