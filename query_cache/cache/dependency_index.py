"""
Dependency index: one backend set per dependency name holding the cache
keys registered against it.

Membership is added only through the transactional writer and read only
by invalidation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set, Tuple

from .backend import backend_errors
from .config import DEPENDENCY_PREFIX


@dataclass(frozen=True)
class BatchCommand:
    """One backend command queued into an atomic batch."""

    name: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def apply(self, pipe: Any) -> Any:
        return getattr(pipe, self.name)(*self.args, **self.kwargs)


def dependency_key(name: str, prefix: str = DEPENDENCY_PREFIX) -> str:
    """Backend key of the dependency record for ``name``."""
    return f"{prefix}{name}"


def _as_str(member: Any) -> str:
    if isinstance(member, (bytes, bytearray)):
        return bytes(member).decode("utf-8")
    return member


class DependencyIndex:
    """Builds registration and invalidation commands for dependency records."""

    def __init__(self, client: Any, prefix: str = DEPENDENCY_PREFIX):
        self.client = client
        self.prefix = prefix

    def key_for(self, name: str) -> str:
        return dependency_key(name, self.prefix)

    def registration_commands(self, cache_key: str, dependencies: Iterable[str], ttl: int) -> List[BatchCommand]:
        """Commands registering ``cache_key`` under every dependency.

        EXPIRE NX gives a new record a TTL; EXPIRE GT then only ever extends
        it, so a record outlives every key registered under it.
        """
        commands: List[BatchCommand] = []
        for name in dependencies:
            dep_key = self.key_for(name)
            commands.append(BatchCommand("sadd", (dep_key, cache_key)))
            commands.append(BatchCommand("expire", (dep_key, ttl), {"nx": True}))
            commands.append(BatchCommand("expire", (dep_key, ttl), {"gt": True}))
        return commands

    async def members(self, name: str) -> Set[str]:
        """Cache keys currently registered under ``name``."""
        dep_key = self.key_for(name)
        async with backend_errors("smembers", dependency=name):
            members = await self.client.smembers(dep_key)
        return {_as_str(member) for member in members or ()}

    def invalidation_commands(self, name: str, cache_keys: Iterable[str]) -> List[BatchCommand]:
        """Commands deleting ``cache_keys`` and then the dependency record.

        The first reply is the number of cache keys that still existed.
        """
        return [
            BatchCommand("delete", tuple(sorted(cache_keys))),
            BatchCommand("delete", (self.key_for(name),)),
        ]
