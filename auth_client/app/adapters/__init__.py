"""
Adapters package for the auth client.

Contains the HTTP client that talks to auth service instances. The adapter
never raises: an endpoint that cannot answer yields None, and the validator
decides whether to try another one.
"""

from .auth_service_client import AuthServiceHttpClient

__all__ = [
    "AuthServiceHttpClient",
]
