"""Redis-backed cache for the workflow stage listing."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis
from redis.exceptions import ConnectionError, RedisError

from sacdesk.core.config import settings

logger = logging.getLogger(__name__)


class InMemoryCache:
    """Fallback cache used when Redis is unavailable. TTLs are ignored."""

    def __init__(self):
        self._cache: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._cache.get(key)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self._cache[key] = value

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()


class RedisCache:
    """JSON values in Redis with a default TTL."""

    def __init__(self, client: redis.Redis, default_ttl: int = 300):
        self.default_ttl = default_ttl
        self._client = client

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self._client.get(key)
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache get error for key {key}: {e}")
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            self._client.setex(key, ttl or self.default_ttl, json.dumps(value))
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache set error for key {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache delete error for key {key}: {e}")

    def clear(self) -> None:
        try:
            self._client.flushdb()
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache clear error: {e}")


_cache: RedisCache | InMemoryCache | None = None


def _connect(url: str, default_ttl: int) -> RedisCache | InMemoryCache:
    try:
        pool = redis.ConnectionPool.from_url(url, max_connections=50, decode_responses=True)
        client = redis.Redis(connection_pool=pool)
        client.ping()
    except (ConnectionError, RedisError) as e:
        logger.warning(f"Failed to connect to Redis cache: {e}. Using fallback in-memory cache.")
        return InMemoryCache()
    logger.info(f"Redis cache connected: {url}")
    return RedisCache(client, default_ttl=default_ttl)


def get_cache() -> RedisCache | InMemoryCache | None:
    """Return the process-wide cache, or None when stage caching is disabled."""
    global _cache
    if settings.STAGE_CACHE_TTL <= 0:
        return None
    if _cache is None:
        _cache = _connect(settings.REDIS_CACHE_URL, settings.STAGE_CACHE_TTL)
    return _cache
