"""
Data models shared by the token cache, the auth service client and the validator.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def current_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class ApiVersion(Enum):
    """Auth service API versions."""
    V1 = "v1"


class AuthToken(BaseModel):
    """A token the auth service confirmed for a user, with its absolute expiry."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    token: str
    expiration: int  # epoch millis

    def is_expired(self, now_millis: int) -> bool:
        return self.expiration <= now_millis


@dataclass(frozen=True)
class AuthServiceEndpoint:
    """Network address of one auth service instance."""
    scheme: str
    host: str
    port: int

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass
class ValidateTokenRequest:
    """Caller input for a single validation."""
    user_id: str
    token: str
    auth_service_endpoints: List[AuthServiceEndpoint] = field(default_factory=list)

    def is_valid(self) -> bool:
        """Well-formed iff user id and token are non-blank and endpoints were given."""
        return (
            isinstance(self.user_id, str) and bool(self.user_id.strip())
            and isinstance(self.token, str) and bool(self.token.strip())
            and bool(self.auth_service_endpoints)
        )

    def __repr__(self) -> str:
        # Token values stay out of logs
        return (
            f"ValidateTokenRequest(user_id={self.user_id!r}, "
            f"endpoints={len(self.auth_service_endpoints or [])})"
        )


class AuthServiceRequest(BaseModel):
    """Body posted to the auth service validate-token endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str
    token: str = Field(serialization_alias="auth_token")


class AuthServiceResponse(BaseModel):
    """Parsed answer from one auth service endpoint.

    A response is always definitive: ``success=False`` is a rejection, not a
    transport failure. Transport failures are represented by ``None``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: Optional[str] = Field(default=None, alias="userId")
    token: Optional[str] = None
    expiration: int = -1
    success: bool = False
