"""
Transactional writer executing grouped cache writes as one MULTI/EXEC batch.
"""

from typing import Any, List, Sequence

from .backend import backend_errors
from .codec import StoredValue
from .dependency_index import BatchCommand, DependencyIndex


class TransactionalWriter:
    """Builds and executes all-or-nothing command batches.

    No retries happen here; a failed batch surfaces as BackendError and the
    caller decides what to do next.
    """

    def __init__(self, client: Any, index: DependencyIndex):
        self.client = client
        self.index = index

    def build_write(
        self,
        key: str,
        value: StoredValue,
        ttl: int,
        dependencies: Sequence[str]
    ) -> List[BatchCommand]:
        """Primary write followed by the dependency registrations."""
        commands = [BatchCommand("set", (key, value), {"ex": ttl})]
        commands.extend(self.index.registration_commands(key, dependencies, ttl))
        return commands

    async def write(self, key: str, value: StoredValue, ttl: int, dependencies: Sequence[str]) -> List[Any]:
        """Atomically write ``key`` and register it under ``dependencies``."""
        commands = self.build_write(key, value, ttl, dependencies)
        return await self.execute(commands, operation="set", key=key)

    async def execute(self, commands: Sequence[BatchCommand], operation: str, **context) -> List[Any]:
        """Run ``commands`` inside a single transaction."""
        async with backend_errors(operation, **context):
            async with self.client.pipeline(transaction=True) as pipe:
                for command in commands:
                    command.apply(pipe)
                return await pipe.execute()
