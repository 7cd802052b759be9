"""
Read-model cache (Redis).

Short-TTL JSON snapshots of the table map and the daily payment summary.
The settlement coordinator invalidates them after every commit that
affects them.
"""

from shared.infrastructure.cache.read_cache import (
    TABLES_CACHE_KEY,
    SUMMARY_CACHE_PREFIX,
    summary_cache_key,
    ReadCache,
    get_read_cache,
)

__all__ = [
    "TABLES_CACHE_KEY",
    "SUMMARY_CACHE_PREFIX",
    "summary_cache_key",
    "ReadCache",
    "get_read_cache",
]
