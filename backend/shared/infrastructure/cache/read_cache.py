"""
Redis JSON cache for read-only listings.

Every operation is best effort: a Redis failure is logged and treated as a
cache miss (reads) or a no-op (writes, invalidation). It never fails the
request and never rolls back a committed operation.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any

import redis

from shared.config.logging import get_logger

logger = get_logger(__name__)

TABLES_CACHE_KEY = "cache:tables"
SUMMARY_CACHE_PREFIX = "cache:summary:"

# Cap for pattern deletes
MAX_KEYS_PER_OPERATION = 1000


def summary_cache_key(day: date) -> str:
    return f"{SUMMARY_CACHE_PREFIX}{day.isoformat()}"


class ReadCache:
    """Thin JSON get/set/invalidate wrapper around a sync Redis client."""

    def __init__(self, client: redis.Redis):
        self._client = client

    def get_json(self, key: str) -> Any | None:
        try:
            raw = self._client.get(key)
        except Exception as e:
            logger.warning("Cache read failed", key=key, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed cache entry", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._client.setex(key, ttl_seconds, json.dumps(value, default=str))
        except Exception as e:
            logger.warning("Cache write failed", key=key, error=str(e))

    def invalidate(self, *keys: str) -> bool:
        if not keys:
            return True
        try:
            deleted = self._client.delete(*keys)
            logger.debug("Cache invalidated", keys=list(keys), deleted=deleted)
            return True
        except Exception as e:
            logger.warning("Cache invalidation failed", keys=list(keys), error=str(e))
            return False

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching pattern. Returns the number deleted."""
        try:
            keys = []
            for key in self._client.scan_iter(pattern, count=100):
                keys.append(key)
                if len(keys) >= MAX_KEYS_PER_OPERATION:
                    logger.warning("Pattern invalidation capped", pattern=pattern)
                    break
            if not keys:
                return 0
            return self._client.delete(*keys)
        except Exception as e:
            logger.warning("Cache pattern invalidation failed", pattern=pattern, error=str(e))
            return 0


_read_cache: ReadCache | None = None


def get_read_cache() -> ReadCache:
    """
    FastAPI dependency / accessor for the process-wide cache.

    Tests override it with a ReadCache around a mock client.
    """
    global _read_cache
    if _read_cache is None:
        from shared.infrastructure.events.redis_pool import get_redis_sync_client

        _read_cache = ReadCache(get_redis_sync_client())
    return _read_cache
