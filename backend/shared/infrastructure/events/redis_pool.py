"""
Redis connections.

- async client: the outbox processor publishes events with it
- sync pool: the read cache, used from the (sync) request handlers

Both are created lazily on first use and closed by the lifespan shutdown.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any

import redis
import redis.asyncio as redis_async

from shared.config.settings import settings, REDIS_URL
from shared.config.logging import get_logger

logger = get_logger(__name__)


def _connection_options(max_connections: int) -> dict[str, Any]:
    return {
        "max_connections": max_connections,
        "decode_responses": True,
        "socket_connect_timeout": settings.redis_socket_timeout,
        "socket_timeout": settings.redis_socket_timeout,
        "health_check_interval": 30,
    }


_async_client: redis_async.Redis | None = None
_async_lock: asyncio.Lock | None = None

_sync_pool: redis.ConnectionPool | None = None
_sync_lock = threading.Lock()


async def get_redis_pool() -> redis_async.Redis:
    """Shared async client (one connection pool per process)."""
    global _async_client, _async_lock

    if _async_client is not None:
        return _async_client

    if _async_lock is None:
        _async_lock = asyncio.Lock()
    async with _async_lock:
        if _async_client is None:
            _async_client = redis_async.from_url(
                REDIS_URL, **_connection_options(settings.redis_pool_max_connections)
            )
            logger.info(
                "Redis async client created",
                max_connections=settings.redis_pool_max_connections,
            )
    return _async_client


def get_redis_sync_client() -> redis.Redis:
    """A sync client on the shared pool. Cheap to create per call."""
    global _sync_pool

    if _sync_pool is None:
        with _sync_lock:
            if _sync_pool is None:
                _sync_pool = redis.ConnectionPool.from_url(
                    REDIS_URL, **_connection_options(settings.redis_sync_pool_max_connections)
                )
                logger.info(
                    "Redis sync pool created",
                    max_connections=settings.redis_sync_pool_max_connections,
                )
    return redis.Redis(connection_pool=_sync_pool)


def close_redis_sync_client() -> None:
    global _sync_pool
    with _sync_lock:
        pool, _sync_pool = _sync_pool, None
    if pool is None:
        return
    try:
        pool.disconnect()
        logger.info("Redis sync pool closed")
    except Exception as e:
        logger.warning("Error closing Redis sync pool", error=str(e))


async def close_redis_pool() -> None:
    """Close the async client and the sync pool."""
    global _async_client, _async_lock

    client, _async_client = _async_client, None
    _async_lock = None
    if client is not None:
        await client.aclose()
        logger.info("Redis async client closed")

    close_redis_sync_client()
