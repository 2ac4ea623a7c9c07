"""
Shared configuration management for the query cache.
"""

from urllib.parse import urlsplit, urlunsplit

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Process-level settings read from QUERY_CACHE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUERY_CACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    service_name: str = Field(default="query_cache")

    # Backend store
    redis_url: str = Field(default="redis://localhost:6379/0")
    docker: bool = Field(default=False)
    socket_timeout: float = Field(default=5.0)
    socket_connect_timeout: float = Field(default=5.0)

    # Cache behaviour
    default_ttl: int = Field(default=3600)
    max_entry_size: int = Field(default=5_000_000)
    compression: bool = Field(default=False)
    compression_level: int = Field(default=6)

    def resolved_redis_url(self) -> str:
        """Redis URL with the host swapped to the compose service name under docker."""
        if not self.docker:
            return self.redis_url

        parts = urlsplit(self.redis_url)
        netloc = "redis"
        if parts.port:
            netloc = f"redis:{parts.port}"
        if parts.username or parts.password:
            credentials = parts.username or ""
            if parts.password:
                credentials = f"{credentials}:{parts.password}"
            netloc = f"{credentials}@{netloc}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def get_settings(**kwargs) -> CacheSettings:
    """Get cache settings from the environment."""
    return CacheSettings(**kwargs)
