"""Redis client wrapper for pub/sub fan-out and small JSON caches."""

import json
from typing import Any

import redis.asyncio as redis
from redis.asyncio import Redis

from paayo.config import settings
from paayo.core.logging import get_logger

logger = get_logger(__name__)

_redis_pool: redis.ConnectionPool | None = None
_redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Initialize the shared connection pool.

    Call this during application startup.
    """
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    _redis_pool = redis.ConnectionPool.from_url(
        str(settings.redis_url),
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )
    _redis_client = Redis(connection_pool=_redis_pool)

    try:
        await _redis_client.ping()
        logger.info("redis_connected", url=str(settings.redis_url).split("@")[-1])
    except Exception as e:
        logger.error("redis_connection_failed", error=str(e))
        _redis_client = None
        await _redis_pool.disconnect()
        _redis_pool = None
        raise

    return _redis_client


async def close_redis() -> None:
    global _redis_pool, _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None

    logger.info("redis_disconnected")


def get_redis_client() -> Redis | None:
    """Shared client, or None when Redis was not reachable at startup."""
    return _redis_client


async def check_redis_connection() -> bool:
    if _redis_client is None:
        return False

    try:
        await _redis_client.ping()
        return True
    except Exception:
        return False


class CacheClient:
    """JSON cache on top of Redis.

    Every operation is a no-op when Redis is unavailable, so callers fall
    through to the database.

    Usage:
        cache = CacheClient(get_redis_client())
        slides = await cache.get_json("hero_slides:active")
        if slides is None:
            slides = await load_slides()
            await cache.set_json("hero_slides:active", slides, ttl=300)
    """

    PREFIX = "cache:"

    def __init__(self, redis_client: Redis | None):
        self.redis = redis_client

    async def get_json(self, key: str) -> Any | None:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(f"{self.PREFIX}{key}")
        except redis.RedisError as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None
        return json.loads(raw) if raw is not None else None

    async def set_json(self, key: str, value: Any, ttl: int = 300) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(f"{self.PREFIX}{key}", ttl, json.dumps(value, default=str))
        except redis.RedisError as e:
            logger.warning("cache_set_failed", key=key, error=str(e))

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (e.g. ``hero_slides:*``)."""
        if self.redis is None:
            return 0
        try:
            keys = [key async for key in self.redis.scan_iter(match=f"{self.PREFIX}{pattern}")]
            if keys:
                return await self.redis.delete(*keys)
        except redis.RedisError as e:
            logger.warning("cache_invalidate_failed", pattern=pattern, error=str(e))
        return 0
