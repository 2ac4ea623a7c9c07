"""
Bootstrap helpers building a Redis client and a query cache from settings.
"""

from typing import Any, Optional

import redis.asyncio as redis

from .cache.backend import backend_errors
from .cache.config import CacheConfig
from .cache.store import QueryCache
from .shared.config import CacheSettings, get_settings
from .shared.logging import configure_logging, get_logger
from .shared.metrics import CacheMetrics


logger = get_logger("query_cache.factory")


def build_redis_client(settings: CacheSettings) -> redis.Redis:
    """Create an asyncio Redis client returning raw bytes."""
    return redis.from_url(
        settings.resolved_redis_url(),
        decode_responses=False,
        socket_connect_timeout=settings.socket_connect_timeout,
        socket_timeout=settings.socket_timeout,
        health_check_interval=30
    )


def cache_config_from_settings(settings: CacheSettings, **overrides) -> CacheConfig:
    """Build the immutable per-cache configuration from process settings."""
    values = {
        "default_ttl": settings.default_ttl,
        "max_entry_size": settings.max_entry_size,
        "compression": settings.compression,
        "compression_level": settings.compression_level,
    }
    values.update(overrides)
    return CacheConfig(**values)


async def ping(client: Any) -> bool:
    """Test the backend connection."""
    async with backend_errors("ping"):
        await client.ping()
    logger.info("Connected to Redis")
    return True


def build_cache(
    settings: Optional[CacheSettings] = None,
    client: Optional[Any] = None,
    metrics: Optional[CacheMetrics] = None,
    **config_overrides
) -> QueryCache:
    """Configure logging and return a QueryCache for ``settings``."""
    settings = settings or get_settings()
    configure_logging(settings.service_name, settings.log_level)

    if client is None:
        client = build_redis_client(settings)

    cache = QueryCache(client, cache_config_from_settings(settings, **config_overrides), metrics=metrics)
    logger.info(
        "Query cache configured",
        env=settings.env,
        compression=cache.config.compression,
        default_ttl=cache.config.default_ttl,
        max_entry_size=cache.config.max_entry_size
    )
    return cache
