"""
Backend store capability checks and error translation.
"""

from contextlib import asynccontextmanager
from typing import Any

from redis.exceptions import RedisError

from ..shared.errors import BackendError, InvalidConfig
from ..shared.logging import get_logger


REQUIRED_COMMANDS = ("get", "set", "sadd", "smembers", "expire", "delete", "pipeline")

logger = get_logger("query_cache.backend")


def validate_client(client: Any, compression: bool) -> None:
    """Reject handles that cannot serve the cache."""
    if client is None:
        raise InvalidConfig("redis client not found")

    missing = [name for name in REQUIRED_COMMANDS if not callable(getattr(client, name, None))]
    if missing:
        raise InvalidConfig(
            "redis client is missing required commands",
            {"missing": missing, "client_type": type(client).__name__}
        )

    if compression and _decodes_responses(client):
        raise InvalidConfig(
            "compression requires a client created with decode_responses=False",
            {"client_type": type(client).__name__}
        )


def _decodes_responses(client: Any) -> bool:
    get_kwargs = getattr(client, "get_connection_kwargs", None)
    if not callable(get_kwargs):
        return False
    return bool(get_kwargs().get("decode_responses", False))


@asynccontextmanager
async def backend_errors(operation: str, **context):
    """Translate redis failures raised inside the block into BackendError."""
    try:
        yield
    except RedisError as exc:
        logger.error("Backend command failed", operation=operation, error=str(exc), **context)
        raise BackendError(operation, str(exc), context) from exc
