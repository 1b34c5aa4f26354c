"""
Shared configuration management for the auth client.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_REDIS_PORT = 6379
DEFAULT_POOL_MAX_CONNECTIONS = 128
DEFAULT_POOL_TIMEOUT_SECONDS = 20.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0


class AuthClientSettings(BaseSettings):
    """Settings used to assemble an AuthClient.

    Values are read from ``AUTH_CLIENT_*`` environment variables or a
    ``.env`` file. Leaving ``redis_host`` unset selects the in-memory cache.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_CLIENT_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Token cache
    cache_strategy: Optional[str] = Field(default=None)
    sweep_interval_seconds: float = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS)

    # Redis
    redis_host: Optional[str] = Field(default=None)
    redis_port: int = Field(default=DEFAULT_REDIS_PORT)
    redis_pool_max_connections: int = Field(default=DEFAULT_POOL_MAX_CONNECTIONS)
    redis_pool_timeout_seconds: float = Field(default=DEFAULT_POOL_TIMEOUT_SECONDS)

    # Auth service
    validate_token_endpoint: Optional[str] = Field(default=None)
    api_version: str = Field(default="v1")
    http_timeout_seconds: float = Field(default=10.0)

    def redis_connection_configured(self) -> bool:
        """Whether enough is set to reach a Redis server."""
        return bool(self.redis_host and self.redis_host.strip()) and self.redis_port > 0

    def redis_pool_configured(self) -> bool:
        """Whether the pool settings are usable as given."""
        return self.redis_pool_max_connections > 0 and self.redis_pool_timeout_seconds > 0


def get_settings(**overrides) -> AuthClientSettings:
    """Load settings from the environment, applying explicit overrides."""
    return AuthClientSettings(**overrides)
