"""
Shared fixtures for query cache unit tests.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

import pytest
from prometheus_client import CollectorRegistry
from redis.exceptions import ResponseError

from query_cache.cache.config import CacheConfig
from query_cache.cache.store import QueryCache
from query_cache.shared.metrics import CacheMetrics


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis with a manual clock.

    Values are stored and returned as bytes, as with decode_responses=False.
    ``failures`` maps a command name (or "execute") to the exception it raises.
    """

    def __init__(self, decode_responses: bool = False):
        self.decode_responses = decode_responses
        self.now = 0.0
        self.failures: Dict[str, Exception] = {}
        self.commands: List[Tuple[str, tuple, dict]] = []
        self.executed_batches: List[List[Tuple[str, tuple, dict]]] = []
        self._data: Dict[str, Any] = {}
        self._expiry: Dict[str, float] = {}

    def get_connection_kwargs(self) -> Dict[str, Any]:
        return {"decode_responses": self.decode_responses}

    def advance(self, seconds: float):
        self.now += seconds

    def keys(self) -> List[str]:
        for key in list(self._data):
            self._purge(key)
        return sorted(self._data)

    # Internal helpers

    def _purge(self, key: str):
        deadline = self._expiry.get(key)
        if deadline is not None and deadline <= self.now:
            self._data.pop(key, None)
            self._expiry.pop(key, None)

    def _check(self, name: str):
        if name in self.failures:
            raise self.failures[name]

    @staticmethod
    def _key(key: Any) -> str:
        return key.decode("utf-8") if isinstance(key, bytes) else str(key)

    @staticmethod
    def _value(value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    def _run(self, name: str, args: tuple, kwargs: dict) -> Any:
        self.commands.append((name, args, kwargs))
        return getattr(self, f"_cmd_{name}")(*args, **kwargs)

    # Commands

    def _cmd_get(self, key):
        key = self._key(key)
        self._purge(key)
        value = self._data.get(key)
        if isinstance(value, set):
            raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")
        if value is not None and self.decode_responses:
            return value.decode("utf-8")
        return value

    def _cmd_set(self, key, value, ex: Optional[int] = None):
        key = self._key(key)
        if ex is not None and ex <= 0:
            raise ResponseError("invalid expire time in 'set' command")
        self._data[key] = self._value(value)
        self._expiry.pop(key, None)
        if ex is not None:
            self._expiry[key] = self.now + ex
        return True

    def _cmd_sadd(self, key, *members):
        key = self._key(key)
        self._purge(key)
        current = self._data.setdefault(key, set())
        if not isinstance(current, set):
            raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")
        before = len(current)
        current.update(self._value(member) for member in members)
        return len(current) - before

    def _cmd_smembers(self, key):
        key = self._key(key)
        self._purge(key)
        return set(self._data.get(key, set()))

    def _cmd_expire(self, key, time, nx=False, xx=False, gt=False, lt=False):
        key = self._key(key)
        self._purge(key)
        if key not in self._data:
            return False
        current = self._expiry.get(key)
        deadline = self.now + time
        if nx and current is not None:
            return False
        if xx and current is None:
            return False
        # A key without expiry counts as an infinite TTL for GT and LT
        if gt and (current is None or deadline <= current):
            return False
        if lt and current is not None and deadline >= current:
            return False
        self._expiry[key] = deadline
        return True

    def _cmd_ttl(self, key):
        key = self._key(key)
        self._purge(key)
        if key not in self._data:
            return -2
        if key not in self._expiry:
            return -1
        return math.ceil(self._expiry[key] - self.now)

    def _cmd_delete(self, *keys):
        removed = 0
        for key in keys:
            key = self._key(key)
            self._purge(key)
            if key in self._data:
                del self._data[key]
                self._expiry.pop(key, None)
                removed += 1
        return removed

    def _cmd_exists(self, *keys):
        return sum(1 for key in keys if self._key(key) in self.keys())

    # Async client surface

    async def get(self, key):
        self._check("get")
        return self._run("get", (key,), {})

    async def set(self, key, value, ex=None):
        self._check("set")
        return self._run("set", (key, value), {"ex": ex})

    async def sadd(self, key, *members):
        self._check("sadd")
        return self._run("sadd", (key,) + members, {})

    async def smembers(self, key):
        self._check("smembers")
        return self._run("smembers", (key,), {})

    async def expire(self, key, time, **kwargs):
        self._check("expire")
        return self._run("expire", (key, time), kwargs)

    async def ttl(self, key):
        return self._run("ttl", (key,), {})

    async def delete(self, *keys):
        self._check("delete")
        return self._run("delete", keys, {})

    async def exists(self, *keys):
        return self._cmd_exists(*keys)

    async def ping(self):
        self._check("ping")
        return True

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self, transaction)


class FakePipeline:
    """Buffers commands and applies them on execute() with MULTI/EXEC semantics.

    Commands run back to back with no interleaving. As in Redis, a command
    failing at run time does not roll back the rest; the first error is
    raised after all of them ran.
    """

    def __init__(self, redis: FakeRedis, transaction: bool):
        self.redis = redis
        self.transaction = transaction
        self.queued: List[Tuple[str, tuple, dict]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.queued = []

    def _queue(self, name: str, args: tuple, kwargs: dict) -> "FakePipeline":
        self.queued.append((name, args, kwargs))
        return self

    def set(self, key, value, ex=None):
        return self._queue("set", (key, value), {"ex": ex})

    def sadd(self, key, *members):
        return self._queue("sadd", (key,) + members, {})

    def expire(self, key, time, **kwargs):
        return self._queue("expire", (key, time), kwargs)

    def delete(self, *keys):
        return self._queue("delete", keys, {})

    async def execute(self):
        if "execute" in self.redis.failures:
            raise self.redis.failures["execute"]
        # EXEC runs every queued command; a failing one does not undo the others
        results = []
        for name, args, kwargs in self.queued:
            try:
                self.redis._check(name)
                results.append(self.redis._run(name, args, kwargs))
            except ResponseError as exc:
                results.append(exc)
        self.redis.executed_batches.append(list(self.queued))
        self.queued = []

        for index, result in enumerate(results, start=1):
            if isinstance(result, ResponseError):
                raise type(result)(f"Command # {index} of pipeline caused error: {result}")
        return results


@pytest.fixture
def fake_redis():
    """Fresh in-memory Redis."""
    return FakeRedis()


@pytest.fixture
def registry():
    """Isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    """Cache metrics bound to the isolated registry."""
    return CacheMetrics(registry)


@pytest.fixture
def cache(fake_redis, metrics):
    """Uncompressed cache over the fake backend."""
    return QueryCache(fake_redis, CacheConfig(), metrics=metrics)


@pytest.fixture
def compressed_cache(fake_redis):
    """Compressed cache with a 10 byte entry limit."""
    return QueryCache(fake_redis, CacheConfig(compression=True, max_entry_size=10))


@pytest.fixture
def decoding_redis():
    """Fake client configured with decode_responses=True."""
    return FakeRedis(decode_responses=True)
