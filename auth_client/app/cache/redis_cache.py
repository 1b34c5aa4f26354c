"""
Redis-backed token cache.
"""

from typing import Optional, TYPE_CHECKING

import redis.asyncio as redis

from shared.logging import get_logger
from shared.errors import CacheConnectivityError
from ..models import AuthToken, current_millis
from .base import AuthTokenCache
from .serialization import serialize_token, deserialize_token

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


REDIS_HASH_FIELD = "auth_token"
DEFAULT_MAX_CONNECTIONS = 128
DEFAULT_POOL_TIMEOUT = 20.0
HEALTH_CHECK_INTERVAL = 30


def remaining_lifetime_seconds(expiration_millis: int, now_millis: int) -> int:
    """Seconds until ``expiration_millis``, floored, never negative."""
    return max(0, (expiration_millis - now_millis) // 1000)


class RedisAuthTokenCache(AuthTokenCache):
    """Token cache stored in Redis hashes keyed by user id.

    Each token lives in the ``auth_token`` field of the user's hash, and the
    hash carries a native expiry matching the token, so Redis reclaims
    expired entries on its own.

    The cache owns one blocking connection pool for its whole lifetime.
    ``start()`` must succeed before the cache is used: it pings the server
    and raises ``CacheConnectivityError`` if Redis is unreachable.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        *,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        pool_timeout: float = DEFAULT_POOL_TIMEOUT,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if not host or not host.strip():
            raise ValueError("Redis host is required")

        self.host = host
        self.port = port
        self.metrics = metrics
        self.logger = get_logger("auth_client.cache.redis")

        self._pool = redis.BlockingConnectionPool(
            host=host,
            port=port,
            max_connections=max_connections,
            timeout=pool_timeout,
            health_check_interval=HEALTH_CHECK_INTERVAL,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        self._redis: redis.Redis = redis.Redis(connection_pool=self._pool)
        self._closed = False

    async def start(self):
        """Verify connectivity; raise if Redis cannot be reached."""
        try:
            response = await self._redis.ping()
            self.logger.debug("Redis ping response", response=response)
        except Exception as e:
            self.logger.error("PING to redis failed", host=self.host, port=self.port, error=str(e))
            await self.stop()
            raise CacheConnectivityError(
                "PING to redis failed",
                details={"host": self.host, "port": self.port, "error": str(e)}
            ) from e

        # The pool reconnects on demand, so a cache released by a failed start can be started again
        self._closed = False
        self.logger.info("Redis token cache initialized", host=self.host, port=self.port)

    async def stop(self):
        """Release the connection pool. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._release()
        self.logger.info("Redis token cache stopped")

    async def _release(self):
        try:
            await self._redis.aclose()
            await self._pool.disconnect()
        except Exception as e:
            self.logger.error("Error releasing redis connections", error=str(e))

    @property
    def closed(self) -> bool:
        return self._closed

    async def get_token(self, user_id: str) -> Optional[AuthToken]:
        try:
            payload = await self._redis.hget(user_id, REDIS_HASH_FIELD)
            if payload is None:
                return None
            return deserialize_token(payload)
        except Exception as e:
            self.logger.error("Error getting token", user_id=user_id, error=str(e))
            self._record_error("get")
            return None

    async def add_token(self, user_id: str, token: AuthToken) -> bool:
        try:
            payload = serialize_token(token)
            expire_seconds = remaining_lifetime_seconds(token.expiration, current_millis())
            self.logger.debug("Token expiration in seconds", user_id=user_id, expire_seconds=expire_seconds)

            # A zero lifetime is still written; Redis then drops the key at once
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hset(user_id, REDIS_HASH_FIELD, payload)
                pipe.expire(user_id, expire_seconds)
                await pipe.execute()

            return True
        except Exception as e:
            self.logger.error("Error adding token to redis", user_id=user_id, error=str(e))
            self._record_error("add")
            return False

    async def remove_token(self, user_id: str) -> bool:
        try:
            return await self._redis.hdel(user_id, REDIS_HASH_FIELD) == 1
        except Exception as e:
            self.logger.error("Error deleting token", user_id=user_id, error=str(e))
            self._record_error("remove")
            return False

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._redis.ping()
            return True
        except Exception:
            return False

    def _record_error(self, operation: str):
        if self.metrics:
            self.metrics.increment_counter("token_cache_errors_total", backend="redis", operation=operation)
