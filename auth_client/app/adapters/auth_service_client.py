"""
HTTP client for the auth service validate-token endpoint.
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from shared.logging import get_logger
from ..models import ApiVersion, AuthServiceEndpoint, AuthServiceRequest, AuthServiceResponse


VALIDATE_TOKEN_ENDPOINT = "api/{version}/auth/validate-token"


class AuthServiceHttpClient:
    """Queries one auth service endpoint at a time.

    ``query_auth_service`` returns None when the endpoint gave no usable
    answer (connection failure, timeout, unparseable body). Any HTTP status
    other than 200 is a definitive rejection.
    """

    def __init__(
        self,
        validate_token_endpoint: Optional[str] = None,
        api_version: ApiVersion = ApiVersion.V1,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.validate_token_endpoint = self._resolve_endpoint(validate_token_endpoint, api_version)
        self.timeout = timeout
        self._transport = transport
        self.logger = get_logger("auth_client.adapters.auth_service")

    @staticmethod
    def _resolve_endpoint(validate_token_endpoint: Optional[str], api_version: ApiVersion) -> str:
        if validate_token_endpoint is None or not validate_token_endpoint.strip():
            return VALIDATE_TOKEN_ENDPOINT.format(version=api_version.value)
        return validate_token_endpoint.strip().lstrip("/")

    def build_url(self, endpoint: AuthServiceEndpoint) -> str:
        return f"{endpoint.base_url}/{self.validate_token_endpoint}"

    async def query_auth_service(
        self,
        endpoint: AuthServiceEndpoint,
        request: AuthServiceRequest
    ) -> Optional[AuthServiceResponse]:
        """Ask ``endpoint`` whether the token in ``request`` is valid."""
        url = self.build_url(endpoint)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=request.model_dump(by_alias=True),
                    headers={"Content-Type": "application/json"}
                )

            self.logger.debug(
                "Auth service response",
                url=url,
                status_code=response.status_code
            )

            if response.status_code != 200:
                return AuthServiceResponse(
                    user_id=request.user_id,
                    token=request.token,
                    expiration=-1,
                    success=False
                )

            return AuthServiceResponse.model_validate(response.json())

        except httpx.HTTPError as e:
            self.logger.error("Error querying auth service", url=url, error=str(e))
            return None
        except (ValidationError, ValueError) as e:
            self.logger.error("Unparseable auth service response", url=url, error=str(e))
            return None
        except Exception as e:
            self.logger.error("Auth service query failed", url=url, error=str(e))
            return None
