"""
Query result cache for Redis with dependency-driven invalidation.
"""

from .cache import CacheConfig, QueryCache, dependency_key
from .factory import build_cache, build_redis_client, ping
from .shared.errors import (
    BackendError,
    CacheError,
    CorruptData,
    EntryTooLarge,
    InvalidConfig,
    InvalidKey,
    InvalidTTL,
)

__version__ = "0.1.0"

__all__ = [
    "BackendError",
    "CacheConfig",
    "CacheError",
    "CorruptData",
    "EntryTooLarge",
    "InvalidConfig",
    "InvalidKey",
    "InvalidTTL",
    "QueryCache",
    "build_cache",
    "build_redis_client",
    "dependency_key",
    "ping",
]
