"""
Token validation with cache lookup and auth service failover.
"""

import random
from typing import List, Optional, Sequence, TYPE_CHECKING

from shared.logging import bind_validation_user, get_logger
from ..adapters.auth_service_client import AuthServiceHttpClient
from ..cache.base import AuthTokenCache
from ..models import (
    AuthServiceEndpoint,
    AuthServiceRequest,
    AuthServiceResponse,
    AuthToken,
    ValidateTokenRequest,
    current_millis,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class AuthClient:
    """Answers "is this token currently valid for this user".

    A cached token is trusted until its own expiration. On a cache miss the
    auth service endpoints are tried one at a time, in random order, until
    one of them gives an answer. An endpoint that cannot be reached is
    dropped from the candidates; an answer, accept or reject, is final.

    Every failure below ``validate`` is absorbed, so callers only ever see a
    boolean. Unreachable auth services and rejected tokens both yield False.
    """

    def __init__(
        self,
        token_cache: AuthTokenCache,
        http_client: AuthServiceHttpClient,
        *,
        metrics: Optional["MetricsCollector"] = None,
        rng: Optional[random.Random] = None,
    ):
        if token_cache is None:
            raise ValueError("token_cache is required")
        if http_client is None:
            raise ValueError("http_client is required")

        self.token_cache = token_cache
        self.http_client = http_client
        self.metrics = metrics
        self.logger = get_logger("auth_client.validator")
        self._random = rng or random.Random()

    async def start(self):
        await self.token_cache.start()

    async def stop(self):
        await self.token_cache.stop()

    close = stop

    async def __aenter__(self) -> "AuthClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def validate_token(
        self,
        user_id: str,
        token: str,
        auth_service_endpoints: Sequence[AuthServiceEndpoint]
    ) -> bool:
        """Convenience wrapper around ``validate``."""
        return await self.validate(
            ValidateTokenRequest(
                user_id=user_id,
                token=token,
                auth_service_endpoints=list(auth_service_endpoints or [])
            )
        )

    async def validate(self, request: ValidateTokenRequest) -> bool:
        """Validate the token in ``request`` for ``request.user_id``."""
        self.logger.debug("Validating request", request=repr(request))

        if not request.is_valid():
            self.logger.error("Invalid validate request", request=repr(request))
            self._record_validation("malformed")
            return False

        with bind_validation_user(request.user_id):
            return await self._validate(request)

    async def _validate(self, request: ValidateTokenRequest) -> bool:
        cached = await self.token_cache.get_token(request.user_id)

        if cached is not None:
            self._record_lookup("hit")
            return self._check_cached_token(request, cached)

        self._record_lookup("miss")
        return await self._query_auth_service(request)

    def _check_cached_token(self, request: ValidateTokenRequest, cached: AuthToken) -> bool:
        if cached.user_id != request.user_id:
            self.logger.warning(
                "Cached token belongs to another user",
                cached_user_id=cached.user_id
            )
            self._record_validation("cache_mismatch")
            return False

        # The memory cache may still hold tokens past expiry until its next sweep
        valid = not cached.is_expired(current_millis())
        self._record_validation("cache_valid" if valid else "cache_expired")
        return valid

    async def _query_auth_service(self, request: ValidateTokenRequest) -> bool:
        candidates: List[AuthServiceEndpoint] = list(request.auth_service_endpoints)
        auth_service_request = AuthServiceRequest(user_id=request.user_id, token=request.token)
        response: Optional[AuthServiceResponse] = None

        while response is None and candidates:
            index = self._random.randrange(len(candidates))
            endpoint = candidates[index]
            response = await self.http_client.query_auth_service(endpoint, auth_service_request)

            if response is None:
                self.logger.debug("Removing unreachable auth service endpoint", endpoint=endpoint.base_url)
                self._record_query("unreachable")
                candidates.pop(index)
                continue

            self._record_query("answered")

        if response is None:
            self.logger.warning(
                "All auth service endpoints unreachable",
                endpoints_tried=len(request.auth_service_endpoints)
            )
            self._record_validation("unreachable")
            return False

        result = await self._process_response(request, response)
        self.logger.debug("Auth service query result", result=result)
        return result

    async def _process_response(self, request: ValidateTokenRequest, response: AuthServiceResponse) -> bool:
        if not (response.success and response.user_id == request.user_id):
            self._record_validation("rejected")
            return False

        token = AuthToken(
            user_id=request.user_id,
            token=response.token or request.token,
            expiration=response.expiration
        )
        if not await self.token_cache.add_token(request.user_id, token):
            self.logger.warning("Validated token could not be cached")

        self._record_validation("accepted")
        return True

    def _record_validation(self, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("token_validations_total", outcome=outcome)

    def _record_lookup(self, result: str):
        if self.metrics:
            self.metrics.increment_counter("token_cache_lookups_total", result=result)

    def _record_query(self, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("auth_service_queries_total", outcome=outcome)
