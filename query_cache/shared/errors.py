"""
Shared error handling for the query cache.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class CacheError(Exception):
    """Base exception for query cache operations."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidConfig(CacheError):
    """Cache construction errors (missing or incapable backend handle)."""

    def __init__(self, message: str = "Invalid cache configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_CONFIG", message, details)


class EntryTooLarge(CacheError):
    """Payload exceeds the configured maximum entry size."""

    def __init__(self, size: int, max_entry_size: int):
        super().__init__(
            "ENTRY_TOO_LARGE",
            f"maxEntrySize exceeded: {size} > {max_entry_size} bytes",
            {"size": size, "max_entry_size": max_entry_size}
        )


class BackendError(CacheError):
    """Backend store unreachable or command rejected."""

    def __init__(self, operation: str, message: str = "Backend error", details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("operation", operation)
        super().__init__("BACKEND_ERROR", f"{operation}: {message}", details)


class CorruptData(CacheError):
    """Stored value could not be decoded."""

    def __init__(self, key: str, message: str = "Stored value could not be decoded"):
        super().__init__("CORRUPT_DATA", message, {"key": key})


class InvalidTTL(CacheError):
    """TTL is not a positive number of seconds."""

    def __init__(self, ttl: Any):
        super().__init__("INVALID_TTL", f"TTL must be a positive integer, got {ttl!r}", {"ttl": repr(ttl)})


class InvalidKey(CacheError):
    """Cache key collides with the reserved dependency record namespace."""

    def __init__(self, key: str, prefix: str):
        super().__init__(
            "INVALID_KEY",
            f"Cache key {key!r} uses the reserved dependency prefix {prefix!r}",
            {"key": key, "prefix": prefix}
        )
