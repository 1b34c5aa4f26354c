"""
Integration tests for the token validation flow.

A full AuthClient runs against a fleet of fake auth service nodes served
through an httpx mock transport, routed by port.
"""

import json
import random
from typing import Dict

import httpx
import pytest
import pytest_asyncio

from auth_client.app.adapters.auth_service_client import AuthServiceHttpClient
from auth_client.app.cache.memory_cache import InMemoryAuthTokenCache
from auth_client.app.models import current_millis
from auth_client.app.validation.validator import AuthClient
from shared.metrics import MetricsCollector
from shared.test_helpers import DataFactory


class FakeAuthServiceFleet:
    """Auth service nodes keyed by port. Ports not marked up refuse connections."""

    def __init__(self, valid_tokens: Dict[str, str]):
        self.valid_tokens = valid_tokens
        self.up_ports = set()
        self.status_override: Dict[int, int] = {}
        self.hits: Dict[int, int] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        port = request.url.port
        self.hits[port] = self.hits.get(port, 0) + 1

        if port not in self.up_ports:
            raise httpx.ConnectError("Connection refused", request=request)
        if port in self.status_override:
            return httpx.Response(self.status_override[port])

        payload = json.loads(request.content)
        user_id = payload["user_id"]
        token = payload["auth_token"]
        valid = self.valid_tokens.get(user_id) == token

        return httpx.Response(200, json={
            "userId": user_id,
            "token": token,
            "expiration": current_millis() + 60_000 if valid else -1,
            "success": valid
        })


class TestValidationFlow:
    """Integration tests for cache plus failover validation."""

    @pytest.fixture
    def users(self):
        return DataFactory.create_users()

    @pytest.fixture
    def fleet(self, users):
        return FakeAuthServiceFleet({user.user_id: user.token for user in users})

    @pytest.fixture
    def endpoints(self):
        return DataFactory.create_endpoints(count=3, host="auth.internal", first_port=9001)

    @pytest.fixture
    def metrics(self):
        return MetricsCollector()

    @pytest_asyncio.fixture
    async def client(self, fleet, metrics):
        http_client = AuthServiceHttpClient(
            "auth/v1/validate-token",
            transport=httpx.MockTransport(fleet.handler)
        )
        auth_client = AuthClient(
            InMemoryAuthTokenCache(sweep_interval_seconds=60, metrics=metrics),
            http_client,
            metrics=metrics,
            rng=random.Random(7)
        )
        await auth_client.start()
        yield auth_client
        await auth_client.stop()

    @pytest.mark.asyncio
    async def test_valid_token_through_failover_then_cache(self, client, fleet, users, endpoints, metrics):
        fleet.up_ports = {9003}
        user = users[0]

        assert await client.validate_token(user.user_id, user.token, endpoints) is True
        calls_after_first = sum(fleet.hits.values())
        assert fleet.hits[9003] == 1

        assert await client.validate_token(user.user_id, user.token, endpoints) is True
        assert sum(fleet.hits.values()) == calls_after_first
        assert metrics.get_sample_value("token_cache_lookups_total", {"result": "hit"}) == 1.0

    @pytest.mark.asyncio
    async def test_wrong_token_is_rejected_and_not_cached(self, client, fleet, users, endpoints):
        fleet.up_ports = {9001, 9002, 9003}
        user = users[1]

        assert await client.validate_token(user.user_id, "stolen-token", endpoints) is False
        assert sum(fleet.hits.values()) == 1
        assert await client.token_cache.get_token(user.user_id) is None

    @pytest.mark.asyncio
    async def test_all_nodes_down(self, client, fleet, users, endpoints, metrics):
        user = users[2]

        assert await client.validate_token(user.user_id, user.token, endpoints) is False
        assert fleet.hits == {9001: 1, 9002: 1, 9003: 1}
        assert metrics.get_sample_value("token_validations_total", {"outcome": "unreachable"}) == 1.0

    @pytest.mark.asyncio
    async def test_error_status_is_final(self, client, fleet, users, endpoints):
        fleet.up_ports = {9001, 9002, 9003}
        fleet.status_override = {9001: 503, 9002: 503, 9003: 503}
        user = users[0]

        assert await client.validate_token(user.user_id, user.token, endpoints) is False
        assert sum(fleet.hits.values()) == 1

    @pytest.mark.asyncio
    async def test_expired_cache_entry_is_not_refreshed(self, client, fleet, users, endpoints):
        fleet.up_ports = {9001, 9002, 9003}
        user = users[0]
        await client.token_cache.add_token(
            user.user_id,
            DataFactory.create_auth_token(user_id=user.user_id, token=user.token, expires_in_ms=-10)
        )

        assert await client.validate_token(user.user_id, user.token, endpoints) is False
        assert fleet.hits == {}

        client.token_cache.sweep_expired()

        assert await client.validate_token(user.user_id, user.token, endpoints) is True
        assert sum(fleet.hits.values()) == 1
