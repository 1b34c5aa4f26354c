"""
Shared error types for the auth client.

Only construction-time failures are raised to callers. Failures that happen
while validating a token are absorbed where they occur and surface as a
``False`` validation result.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Serializable view of an error, for callers that report them."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AuthClientException(Exception):
    """Base exception for the auth client."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class CacheConnectivityError(AuthClientException):
    """The token cache backend could not be reached."""

    def __init__(self, message: str = "Token cache unreachable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_CONNECTIVITY_ERROR", message, details)


class ConfigurationError(AuthClientException):
    """The client was assembled from inconsistent settings."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class TokenSerializationError(AuthClientException):
    """A cached token payload could not be encoded or decoded."""

    def __init__(self, message: str = "Token serialization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_SERIALIZATION_ERROR", message, details)
