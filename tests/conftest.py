import asyncio
from typing import Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from todos_api.audit import AuditPublisher
from todos_api.cache import CacheResult, CacheTier, LocalTier
from todos_api.main import create_app
from todos_api.repositories import CacheAsideRepository
from todos_api.services import TodoService
from todos_api.settings import Settings

JWT_SECRET = "test-secret"


class FakeRemoteTier(CacheTier):
    """
    In-memory stand-in for the Redis tier.

    Every call yields to the event loop (optionally after ``delay`` seconds)
    the way a network round-trip would, and individual operations can be
    made to fail.
    """

    name = "fake-redis"

    def __init__(self, connected: bool = True) -> None:
        self.connected = connected
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.published: List[Tuple[str, str]] = []
        self.delay = 0.0
        self.fail_get = False
        self.fail_set = False
        self.fail_publish = False
        self.raise_on_publish = False
        self.publish_calls = 0

    @property
    def available(self) -> bool:
        return self.connected

    async def get(self, key: str) -> CacheResult:
        await asyncio.sleep(self.delay)
        if self.fail_get:
            return CacheResult.failure(ConnectionError("get failed"))
        return CacheResult.success(self.data.get(key))

    async def set(self, key: str, value: str, ttl_seconds: int = 0) -> CacheResult:
        await asyncio.sleep(self.delay)
        if self.fail_set:
            return CacheResult.failure(ConnectionError("set failed"))
        self.data[key] = value
        self.ttls[key] = ttl_seconds
        return CacheResult.success()

    async def publish(self, channel: str, message: str) -> CacheResult:
        self.publish_calls += 1
        await asyncio.sleep(0)
        if self.raise_on_publish:
            raise RuntimeError("publish exploded")
        if self.fail_publish:
            return CacheResult.failure(ConnectionError("publish failed"))
        self.published.append((channel, message))
        return CacheResult.success()

    def expire(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)


def make_settings(**overrides) -> Settings:
    values = dict(
        redis_url=None,
        redis_host="localhost",
        redis_port=6379,
        redis_password=None,
        redis_use_tls=False,
        redis_socket_timeout=5.0,
        redis_health_check_interval=10.0,
        log_channel="log_channel",
        cache_ttl=300,
        jwt_secret=JWT_SECRET,
        cors_allow_origins=["*"],
        log_level="INFO",
        environment="development",
    )
    values.update(overrides)
    return Settings(**values)


def make_token(username: str, secret: str = JWT_SECRET) -> str:
    return jwt.encode({"username": username}, secret, algorithm="HS256")


def auth_headers(username: str = "alice") -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(username)}"}


@pytest.fixture
def remote() -> FakeRemoteTier:
    return FakeRemoteTier()


@pytest.fixture
def local() -> LocalTier:
    return LocalTier()


@pytest.fixture
def repository(remote, local) -> CacheAsideRepository:
    return CacheAsideRepository(remote, local, ttl_seconds=300)


@pytest.fixture
def publisher(remote) -> AuditPublisher:
    return AuditPublisher(remote, "log_channel")


@pytest.fixture
def service(repository, publisher) -> TodoService:
    return TodoService(repository, publisher)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings, remote):
    app = create_app(settings=settings, remote_tier=remote)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers_for():
    """Return a factory of Authorization headers for a username."""
    return auth_headers


@pytest.fixture
def token_for():
    return make_token
