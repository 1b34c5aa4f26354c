"""
Token validation package.

``AuthClient`` decides whether a token can be accepted from the cache or has
to be confirmed by an auth service instance, and keeps the cache in step
with the answers it gets.
"""

from .validator import AuthClient

__all__ = ["AuthClient"]
