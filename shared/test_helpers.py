"""
Test helper functions and fakes for the auth client.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from redis.exceptions import ConnectionError as RedisConnectionError

from auth_client.app.models import (
    AuthServiceEndpoint,
    AuthServiceRequest,
    AuthServiceResponse,
    AuthToken,
    current_millis,
)


@dataclass
class SampleUser:
    """Test user data."""
    user_id: str
    token: str


class DataFactory:
    """Factory for creating test data."""

    @staticmethod
    def create_users() -> List[SampleUser]:
        return [
            SampleUser(user_id="36f7cfae7e964cc0aa0cf17d006c3e97", token="token-john"),
            SampleUser(user_id="8d0c6f2b1a7e4b5c9f3e2d1c0b9a8f7e", token="token-jane"),
            SampleUser(user_id="admin", token="token-admin"),
        ]

    @staticmethod
    def create_endpoints(count: int = 3, host: str = "localhost", first_port: int = 8081) -> List[AuthServiceEndpoint]:
        return [AuthServiceEndpoint("http", host, first_port + i) for i in range(count)]

    @staticmethod
    def create_auth_token(
        user_id: str = "user-123",
        token: str = "opaque-token",
        expires_in_ms: int = 60_000,
        now_millis: Optional[int] = None
    ) -> AuthToken:
        now = current_millis() if now_millis is None else now_millis
        return AuthToken(user_id=user_id, token=token, expiration=now + expires_in_ms)

    @staticmethod
    def create_response(
        user_id: str = "user-123",
        token: str = "opaque-token",
        success: bool = True,
        expires_in_ms: int = 60_000
    ) -> AuthServiceResponse:
        return AuthServiceResponse(
            user_id=user_id,
            token=token,
            expiration=current_millis() + expires_in_ms if success else -1,
            success=success
        )


class FixedIndexRandom:
    """Stand-in for random.Random that always draws the same index."""

    def __init__(self, index: int = 0):
        self.index = index
        self.draws: List[int] = []

    def randrange(self, stop: int) -> int:
        self.draws.append(stop)
        return min(self.index, stop - 1)


Outcome = Union[Optional[AuthServiceResponse], Callable[[AuthServiceRequest], Optional[AuthServiceResponse]]]


class ScriptedAuthServiceClient:
    """Auth service client that answers from a per-endpoint script.

    Endpoints missing from the script are unreachable.
    """

    def __init__(self, script: Optional[Dict[AuthServiceEndpoint, Outcome]] = None):
        self.script: Dict[AuthServiceEndpoint, Outcome] = dict(script or {})
        self.calls: List[Tuple[AuthServiceEndpoint, AuthServiceRequest]] = []

    async def query_auth_service(
        self,
        endpoint: AuthServiceEndpoint,
        request: AuthServiceRequest
    ) -> Optional[AuthServiceResponse]:
        self.calls.append((endpoint, request))
        outcome = self.script.get(endpoint)
        if callable(outcome):
            return outcome(request)
        return outcome

    def called_endpoints(self) -> List[AuthServiceEndpoint]:
        return [endpoint for endpoint, _ in self.calls]


@dataclass
class _PendingOp:
    name: str
    args: Tuple[Any, ...]


class FakePipeline:
    """Queues hash commands and applies them on execute()."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: List[_PendingOp] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._ops.clear()

    def hset(self, key: str, field_name: str, value: bytes) -> "FakePipeline":
        self._ops.append(_PendingOp("hset", (key, field_name, value)))
        return self

    def expire(self, key: str, seconds: int) -> "FakePipeline":
        self._ops.append(_PendingOp("expire", (key, seconds)))
        return self

    async def execute(self) -> List[Any]:
        self._redis.check_available()
        results = []
        for op in self._ops:
            if op.name == "hset":
                key, field_name, value = op.args
                results.append(self._redis.apply_hset(key, field_name, value))
            else:
                key, seconds = op.args
                results.append(self._redis.apply_expire(key, seconds))
        self._ops.clear()
        return results


@dataclass
class FakeRedis:
    """In-process stand-in for the subset of redis.asyncio.Redis the cache uses.

    ``expire`` with a non-positive lifetime deletes the key, as Redis does.
    """

    available: bool = True
    hashes: Dict[str, Dict[str, bytes]] = field(default_factory=dict)
    ttls: Dict[str, int] = field(default_factory=dict)
    closed: bool = False
    pipelines_opened: int = 0

    def check_available(self):
        if not self.available:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def apply_hset(self, key: str, field_name: str, value: bytes) -> int:
        bucket = self.hashes.setdefault(key, {})
        created = field_name not in bucket
        bucket[field_name] = value
        return int(created)

    def apply_expire(self, key: str, seconds: int) -> bool:
        if key not in self.hashes:
            return False
        if seconds <= 0:
            self.hashes.pop(key, None)
            self.ttls.pop(key, None)
        else:
            self.ttls[key] = seconds
        return True

    async def ping(self) -> bool:
        self.check_available()
        return True

    async def hget(self, key: str, field_name: str) -> Optional[bytes]:
        self.check_available()
        return self.hashes.get(key, {}).get(field_name)

    async def hdel(self, key: str, field_name: str) -> int:
        self.check_available()
        bucket = self.hashes.get(key)
        if not bucket or field_name not in bucket:
            return 0
        del bucket[field_name]
        if not bucket:
            self.hashes.pop(key, None)
            self.ttls.pop(key, None)
        return 1

    async def ttl(self, key: str) -> int:
        if key not in self.hashes:
            return -2
        return self.ttls.get(key, -1)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        self.pipelines_opened += 1
        return FakePipeline(self)

    async def aclose(self):
        self.closed = True


def get_mock_settings() -> Dict[str, Any]:
    """Settings overrides for tests that must not read the environment."""
    return {
        "env": "test",
        "log_level": "debug",
        "redis_host": None,
        "redis_port": 6379,
        "cache_strategy": None,
        "validate_token_endpoint": None,
        "api_version": "v1",
        "sweep_interval_seconds": 300.0,
        "http_timeout_seconds": 1.0,
    }
