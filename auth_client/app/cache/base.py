"""
Token cache contract.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ..models import AuthToken


class CacheStrategy(Enum):
    """Available token cache backends."""
    IN_MEMORY = "in_memory"
    REDIS = "redis"

    @classmethod
    def parse(cls, value: str) -> "CacheStrategy":
        """Accept either the enum name or value, case-insensitively."""
        normalized = value.strip().lower().replace("-", "_")
        for strategy in cls:
            if normalized in (strategy.value, strategy.name.lower()):
                return strategy
        raise ValueError(f"Unknown cache strategy: {value}")


class AuthTokenCache(ABC):
    """Storage for tokens the auth service already confirmed, keyed by user id.

    Implementations never raise from ``get_token``/``add_token``/``remove_token``:
    a backend failure reads as a miss or as a rejected write.
    """

    @abstractmethod
    async def get_token(self, user_id: str) -> Optional[AuthToken]:
        """Return the cached token for ``user_id`` or None."""

    @abstractmethod
    async def add_token(self, user_id: str, token: AuthToken) -> bool:
        """Insert or replace the token stored for ``user_id``."""

    @abstractmethod
    async def remove_token(self, user_id: str) -> bool:
        """Delete the token for ``user_id``; True if one was removed."""

    async def start(self):
        """Acquire backend resources. No-op by default."""

    async def stop(self):
        """Release backend resources. No-op by default."""

    async def __aenter__(self) -> "AuthTokenCache":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
