"""
In-process token cache with a periodic expiry sweep.
"""

import asyncio
from typing import Dict, Optional, TYPE_CHECKING

from shared.logging import get_logger
from ..models import AuthToken, current_millis
from .base import AuthTokenCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0


class InMemoryAuthTokenCache(AuthTokenCache):
    """Token cache held in a dict shared by every task of the process.

    Expired tokens are only dropped by the sweep, so a hit may be up to one
    sweep interval stale. Callers must check ``expiration`` themselves.
    """

    def __init__(
        self,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be positive")

        self.sweep_interval_seconds = sweep_interval_seconds
        self.metrics = metrics
        self.logger = get_logger("auth_client.cache.memory")

        self._tokens: Dict[str, AuthToken] = {}

        # Sweep task
        self._sweep_task: Optional[asyncio.Task] = None
        self.running = False

    @property
    def size(self) -> int:
        return len(self._tokens)

    async def start(self):
        """Start the background sweep."""
        if self.running:
            return
        self.running = True
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        self.logger.info("In-memory token cache started", sweep_interval=self.sweep_interval_seconds)

    async def stop(self):
        """Stop the background sweep."""
        if not self.running:
            return
        self.running = False
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

        self.logger.info("In-memory token cache stopped")

    async def get_token(self, user_id: str) -> Optional[AuthToken]:
        token = self._tokens.get(user_id)
        self.logger.debug("Token fetched from memory", user_id=user_id, found=token is not None)
        return token

    async def add_token(self, user_id: str, token: AuthToken) -> bool:
        self._tokens[user_id] = token
        self.logger.debug("Token added to memory", user_id=user_id, expiration=token.expiration)
        return True

    async def remove_token(self, user_id: str) -> bool:
        self.logger.debug("Removing token from memory", user_id=user_id)
        return self._tokens.pop(user_id, None) is not None

    def sweep_expired(self, now_millis: Optional[int] = None) -> int:
        """Drop every token whose expiration is strictly before ``now_millis``.

        Works over a snapshot; an entry replaced after the snapshot was taken
        is left alone.
        """
        now = current_millis() if now_millis is None else now_millis
        evicted = 0

        for user_id, token in list(self._tokens.items()):
            if token.expiration < now and self._tokens.get(user_id) is token:
                del self._tokens[user_id]
                evicted += 1

        if evicted:
            self.logger.info("Evicted expired tokens", count=evicted, remaining=len(self._tokens))
            if self.metrics:
                self.metrics.increment_counter("token_cache_evictions_total", amount=evicted)

        return evicted

    async def _sweep_loop(self):
        """Periodically evict expired tokens."""
        while self.running:
            try:
                await asyncio.sleep(self.sweep_interval_seconds)
                self.sweep_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Error in token sweep loop", error=str(e))
