"""
Assembly of an AuthClient from explicit options or from settings.
"""

import random
from typing import Optional, TYPE_CHECKING

from shared.config import AuthClientSettings, DEFAULT_POOL_MAX_CONNECTIONS, DEFAULT_POOL_TIMEOUT_SECONDS
from shared.errors import ConfigurationError
from shared.logging import get_logger
from .adapters.auth_service_client import AuthServiceHttpClient
from .cache.base import AuthTokenCache, CacheStrategy
from .cache.memory_cache import InMemoryAuthTokenCache, DEFAULT_SWEEP_INTERVAL_SECONDS
from .cache.redis_cache import RedisAuthTokenCache
from .models import ApiVersion
from .validation.validator import AuthClient

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


logger = get_logger("auth_client.builder")


class AuthClientBuilder:
    """Fluent builder for AuthClient.

    The in-memory cache is used unless ``cache_strategy(CacheStrategy.REDIS)``
    is set. ``build()`` starts the cache, so a Redis server that does not
    answer PING fails the build with ``CacheConnectivityError``.
    """

    def __init__(self):
        self._cache_strategy = CacheStrategy.IN_MEMORY
        self._redis_host: Optional[str] = None
        self._redis_port = 6379
        self._max_connections = DEFAULT_POOL_MAX_CONNECTIONS
        self._pool_timeout = DEFAULT_POOL_TIMEOUT_SECONDS
        self._validate_token_endpoint: Optional[str] = None
        self._api_version = ApiVersion.V1
        self._sweep_interval = DEFAULT_SWEEP_INTERVAL_SECONDS
        self._http_timeout = 10.0
        self._metrics: Optional["MetricsCollector"] = None
        self._rng: Optional[random.Random] = None

    def cache_strategy(self, strategy: CacheStrategy) -> "AuthClientBuilder":
        if strategy is None:
            raise ValueError("cache strategy can't be None")
        self._cache_strategy = strategy
        return self

    def redis_connection(self, host: str, port: int = 6379) -> "AuthClientBuilder":
        self._redis_host = host
        self._redis_port = port
        return self

    def redis_pool(self, max_connections: int, timeout: float = DEFAULT_POOL_TIMEOUT_SECONDS) -> "AuthClientBuilder":
        self._max_connections = max_connections
        self._pool_timeout = timeout
        return self

    def token_validation_endpoint(self, endpoint: Optional[str]) -> "AuthClientBuilder":
        self._validate_token_endpoint = endpoint
        return self

    def api_version(self, version: ApiVersion) -> "AuthClientBuilder":
        if version is None:
            raise ValueError("api version can't be None")
        self._api_version = version
        return self

    def sweep_interval(self, seconds: float) -> "AuthClientBuilder":
        self._sweep_interval = seconds
        return self

    def http_timeout(self, seconds: float) -> "AuthClientBuilder":
        self._http_timeout = seconds
        return self

    def metrics(self, collector: "MetricsCollector") -> "AuthClientBuilder":
        self._metrics = collector
        return self

    def random_source(self, rng: random.Random) -> "AuthClientBuilder":
        self._rng = rng
        return self

    def _build_token_cache(self) -> AuthTokenCache:
        if self._cache_strategy is CacheStrategy.REDIS:
            if not self._redis_host or not self._redis_host.strip():
                raise ConfigurationError(
                    "Redis cache strategy requires a redis host",
                    details={"cache_strategy": self._cache_strategy.value}
                )
            return RedisAuthTokenCache(
                self._redis_host,
                self._redis_port,
                max_connections=self._max_connections,
                pool_timeout=self._pool_timeout,
                metrics=self._metrics
            )
        return InMemoryAuthTokenCache(self._sweep_interval, metrics=self._metrics)

    async def build(self) -> AuthClient:
        """Create the client and start its cache."""
        token_cache = self._build_token_cache()
        http_client = AuthServiceHttpClient(
            self._validate_token_endpoint,
            self._api_version,
            timeout=self._http_timeout
        )
        client = AuthClient(token_cache, http_client, metrics=self._metrics, rng=self._rng)
        await client.start()

        logger.info(
            "Auth client built",
            cache_strategy=self._cache_strategy.value,
            validate_token_endpoint=http_client.validate_token_endpoint
        )
        return client


def resolve_cache_strategy(settings: AuthClientSettings) -> CacheStrategy:
    """Explicit strategy wins; otherwise Redis whenever a Redis host is configured."""
    if settings.cache_strategy:
        try:
            return CacheStrategy.parse(settings.cache_strategy)
        except ValueError as e:
            raise ConfigurationError(str(e), details={"cache_strategy": settings.cache_strategy}) from e

    if settings.redis_connection_configured():
        return CacheStrategy.REDIS
    return CacheStrategy.IN_MEMORY


def resolve_api_version(value: str) -> ApiVersion:
    try:
        return ApiVersion(value.strip().lower())
    except ValueError as e:
        raise ConfigurationError(f"Unsupported api version: {value}", details={"api_version": value}) from e


async def build_auth_client(
    settings: Optional[AuthClientSettings] = None,
    *,
    metrics: Optional["MetricsCollector"] = None
) -> AuthClient:
    """Build a started AuthClient from settings (environment by default)."""
    settings = settings or AuthClientSettings()
    strategy = resolve_cache_strategy(settings)
    logger.debug("Configuring auth client", cache_strategy=strategy.value, env=settings.env)

    builder = (
        AuthClientBuilder()
        .cache_strategy(strategy)
        .token_validation_endpoint(settings.validate_token_endpoint)
        .api_version(resolve_api_version(settings.api_version))
        .sweep_interval(settings.sweep_interval_seconds)
        .http_timeout(settings.http_timeout_seconds)
    )

    if strategy is CacheStrategy.REDIS:
        builder.redis_connection(settings.redis_host, settings.redis_port)
        if settings.redis_pool_configured():
            builder.redis_pool(settings.redis_pool_max_connections, settings.redis_pool_timeout_seconds)
        else:
            logger.warning(
                "Invalid redis pool settings, using defaults",
                max_connections=settings.redis_pool_max_connections,
                timeout=settings.redis_pool_timeout_seconds
            )

    if metrics is not None:
        builder.metrics(metrics)

    return await builder.build()
