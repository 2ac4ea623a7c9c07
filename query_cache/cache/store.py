"""
Redis query cache with TTLs, optional compression and dependency-driven
invalidation.
"""

import time
from typing import Any, Iterable, Optional

from ..shared.errors import CacheError, InvalidKey, InvalidTTL
from ..shared.logging import get_logger
from ..shared.metrics import CacheMetrics
from .backend import backend_errors, validate_client
from .codec import build_codec
from .config import CacheConfig, CacheEventHandler
from .dependency_index import DependencyIndex
from .writer import TransactionalWriter


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class QueryCache:
    """Cache of serialized query results in front of Redis.

    ``set`` stores a payload under a TTL and registers it under optional
    dependency names; ``get`` returns the payload or None on a miss;
    ``invalidate`` evicts every key registered under a dependency name.
    """

    def __init__(
        self,
        client: Any,
        config: Optional[CacheConfig] = None,
        *,
        metrics: Optional[CacheMetrics] = None
    ):
        self.config = config or CacheConfig()
        validate_client(client, self.config.compression)

        self.client = client
        self.metrics = metrics
        self.logger = get_logger("query_cache.store")
        self.codec = build_codec(self.config)
        self.index = DependencyIndex(client, self.config.dependency_prefix)
        self.writer = TransactionalWriter(client, self.index)

    async def set(
        self,
        key: str,
        payload: str,
        dependencies: Optional[Iterable[str]] = None,
        ttl_seconds: Optional[int] = None
    ) -> None:
        """Store ``payload`` under ``key`` for ``ttl_seconds`` (default TTL if omitted)."""
        start = time.perf_counter()
        names = list(dict.fromkeys(dependencies or ()))

        try:
            self._check_key(key)
            ttl = self._resolve_ttl(ttl_seconds)
            value = self.codec.encode(payload)
            if names:
                await self.writer.write(key, value, ttl, names)
            else:
                async with backend_errors("set", key=key):
                    await self.client.set(key, value, ex=ttl)
        except CacheError:
            self._record("set", "error", start)
            raise

        elapsed = _elapsed_ms(start)
        self._record("set", "ok", start)
        if self.metrics:
            raw_size = len(payload.encode("utf-8"))
            stored_size = len(value) if isinstance(value, bytes) else raw_size
            self.metrics.record_payload(raw_size, stored_size)
        self.logger.debug(
            "Cache write",
            key=key,
            ttl=ttl,
            dependencies=len(names),
            compressed=self.codec.compressed,
            elapsed_ms=round(elapsed, 3)
        )

    async def get(self, key: str) -> Optional[str]:
        """Return the cached payload for ``key`` or None on a miss."""
        start = time.perf_counter()

        try:
            async with backend_errors("get", key=key):
                raw = await self.client.get(key)
        except CacheError:
            self._record("get", "error", start)
            raise

        if raw is None:
            elapsed = _elapsed_ms(start)
            self._record("get", "miss", start)
            self.logger.debug("Cache miss", key=key, elapsed_ms=round(elapsed, 3))
            self._notify(self.config.on_cache_miss, key, elapsed)
            return None

        try:
            payload = self.codec.decode(raw, key)
        except CacheError as exc:
            self._record("get", "error", start)
            self.logger.error("Cache value could not be decoded", key=key, error=str(exc))
            raise

        elapsed = _elapsed_ms(start)
        self._record("get", "hit", start)
        self.logger.debug("Cache hit", key=key, elapsed_ms=round(elapsed, 3))
        self._notify(self.config.on_cache_hit, key, elapsed)
        return payload

    async def invalidate(self, dependency: str) -> int:
        """Delete every key registered under ``dependency`` and the record itself.

        Returns the number of cache keys actually deleted; keys that already
        expired are not counted. Invalidating an unknown or already
        invalidated dependency is a no-op.
        """
        start = time.perf_counter()

        removed = 0
        try:
            keys = await self.index.members(dependency)
            if keys:
                commands = self.index.invalidation_commands(dependency, keys)
                results = await self.writer.execute(commands, operation="invalidate", dependency=dependency)
                removed = results[0]
            else:
                async with backend_errors("invalidate", dependency=dependency):
                    await self.client.delete(self.index.key_for(dependency))
        except CacheError:
            self._record("invalidate", "error", start)
            raise

        elapsed = _elapsed_ms(start)
        self._record("invalidate", "ok", start)
        if self.metrics:
            self.metrics.record_invalidated(removed)
        self.logger.info(
            "Cache invalidated",
            dependency=dependency,
            registered=len(keys),
            count=removed,
            elapsed_ms=round(elapsed, 3)
        )
        return removed

    def _check_key(self, key: str):
        # Dependency records must only ever hold sets
        if key.startswith(self.config.dependency_prefix):
            raise InvalidKey(key, self.config.dependency_prefix)

    def _resolve_ttl(self, ttl_seconds: Optional[int]) -> int:
        if ttl_seconds is None:
            return self.config.default_ttl
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
            raise InvalidTTL(ttl_seconds)
        return ttl_seconds

    def _record(self, operation: str, result: str, start: float):
        if self.metrics:
            self.metrics.record_operation(operation, result, time.perf_counter() - start)

    def _notify(self, handler: Optional[CacheEventHandler], key: str, elapsed: float):
        if handler is None:
            return
        try:
            handler(key, elapsed)
        except Exception as exc:
            self.logger.warning(
                "Cache event handler failed",
                key=key,
                handler=getattr(handler, "__name__", repr(handler)),
                error=str(exc)
            )
