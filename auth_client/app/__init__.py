"""
Auth client package.

Validates opaque auth tokens against a pool of auth service instances,
caching confirmed tokens so repeat validations stay local.

Structure:
- app.models: Token, endpoint and wire request/response models.
- app.cache: Token cache contract with in-memory and Redis backends.
- app.adapters: HTTP client for the auth service validate-token endpoint.
- app.validation: AuthClient, the cache-then-failover validator.
- app.builder: Assembly from explicit options or AuthClientSettings.
"""

from .builder import AuthClientBuilder, build_auth_client
from .cache import CacheStrategy
from .models import ApiVersion, AuthServiceEndpoint, AuthToken, ValidateTokenRequest
from .validation import AuthClient

__all__ = [
    "ApiVersion",
    "AuthClient",
    "AuthClientBuilder",
    "AuthServiceEndpoint",
    "AuthToken",
    "CacheStrategy",
    "ValidateTokenRequest",
    "build_auth_client",
]
