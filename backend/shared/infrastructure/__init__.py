"""
Infrastructure: database sessions, Redis connections, events and cache.
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    get_db_context,
    safe_commit,
    transactional,
)
from shared.infrastructure.events import (
    get_redis_pool,
    get_redis_sync_client,
    close_redis_pool,
    publish_to_subscribers,
)
from shared.infrastructure.cache import ReadCache, get_read_cache

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
    "transactional",
    "get_redis_pool",
    "get_redis_sync_client",
    "close_redis_pool",
    "publish_to_subscribers",
    "ReadCache",
    "get_read_cache",
]
