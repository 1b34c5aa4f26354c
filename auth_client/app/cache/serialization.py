"""
Byte encoding of cached tokens.

The payload format is private to the Redis cache; nothing outside this
package should depend on it.
"""

from pydantic import ValidationError

from shared.errors import TokenSerializationError
from ..models import AuthToken


def serialize_token(token: AuthToken) -> bytes:
    return token.model_dump_json().encode("utf-8")


def deserialize_token(payload: bytes) -> AuthToken:
    """Decode a payload written by ``serialize_token``."""
    try:
        return AuthToken.model_validate_json(payload)
    except (ValidationError, ValueError) as e:
        raise TokenSerializationError(
            "Cached token payload is not decodable",
            details={"error": str(e)}
        ) from e
