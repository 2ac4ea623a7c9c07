"""
Cache core for the query cache.

Provides a Redis-backed store for serialized query results with
per-entry TTLs, optional gzip compression, and a dependency index that
lets one invalidation call evict every entry derived from a changed
upstream source.
"""

from .config import CacheConfig
from .dependency_index import dependency_key
from .store import QueryCache

__all__ = ["CacheConfig", "QueryCache", "dependency_key"]
