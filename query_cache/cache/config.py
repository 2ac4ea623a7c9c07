"""
Immutable configuration for a query cache instance.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, field_validator


DEFAULT_TTL = 3600
DEFAULT_MAX_ENTRY_SIZE = 5_000_000
DEFAULT_COMPRESSION_LEVEL = 6
DEPENDENCY_PREFIX = "dependency:"

# (cache key, elapsed milliseconds)
CacheEventHandler = Callable[[str, float], Any]


class CacheConfig(BaseModel):
    """Options fixed at construction of a QueryCache."""

    model_config = ConfigDict(frozen=True)

    default_ttl: int = DEFAULT_TTL
    max_entry_size: int = DEFAULT_MAX_ENTRY_SIZE
    compression: bool = False
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    dependency_prefix: str = DEPENDENCY_PREFIX
    on_cache_hit: Optional[CacheEventHandler] = None
    on_cache_miss: Optional[CacheEventHandler] = None

    @field_validator("default_ttl", mode="before")
    @classmethod
    def _default_ttl_fallback(cls, value: Any) -> Any:
        if value is None or (isinstance(value, (int, float)) and value <= 0):
            return DEFAULT_TTL
        return value

    @field_validator("max_entry_size", mode="before")
    @classmethod
    def _max_entry_size_fallback(cls, value: Any) -> Any:
        if value is None or (isinstance(value, (int, float)) and value <= 0):
            return DEFAULT_MAX_ENTRY_SIZE
        return value

    @field_validator("compression_level", mode="before")
    @classmethod
    def _clamp_compression_level(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_COMPRESSION_LEVEL
        if isinstance(value, int):
            return max(1, min(9, value))
        return value

    @field_validator("dependency_prefix")
    @classmethod
    def _non_empty_prefix(cls, value: str) -> str:
        if not value:
            raise ValueError("dependency_prefix must not be empty")
        return value
