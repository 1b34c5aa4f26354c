"""
Token cache package.

Two interchangeable backends behind ``AuthTokenCache``: an in-process dict
swept on a timer, and Redis hashes with native per-key expiry. Both key
entries by user id on every path.
"""

from .base import AuthTokenCache, CacheStrategy
from .memory_cache import InMemoryAuthTokenCache
from .redis_cache import RedisAuthTokenCache

__all__ = [
    "AuthTokenCache",
    "CacheStrategy",
    "InMemoryAuthTokenCache",
    "RedisAuthTokenCache",
]
