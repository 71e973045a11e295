"""
Cache tiers backing the todo repository.

Two implementations share the CacheTier contract:

- RedisTier: the shared remote cache (keys expire after a TTL, supports pub/sub).
- LocalTier: a process-local dict used when Redis is unreachable (no expiry).

Tier operations never raise. Failures come back as ``CacheResult.failure``
so callers can fall back from one tier to the other without try/except
ladders.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from .settings import Settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheResult:
    """
    Outcome of a single tier operation.

    - ok: False when the tier call failed (error holds the exception)
    - value: the stored string for reads, None when the key is absent
    """

    ok: bool
    value: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def found(self) -> bool:
        return self.ok and bool(self.value)

    @classmethod
    def success(cls, value: Optional[str] = None) -> "CacheResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "CacheResult":
        return cls(ok=False, error=error)


# PUBLIC_INTERFACE
class CacheTier(ABC):
    """Key/value tier contract used by the cache-aside repository."""

    name: str = "tier"

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether the tier should be tried at all right now."""

    @abstractmethod
    async def get(self, key: str) -> CacheResult:
        """Read a key; a missing key is a successful result with value None."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int = 0) -> CacheResult:
        """Store a value. ttl_seconds <= 0 means no expiry."""

    async def connect(self) -> bool:
        return self.available

    async def close(self) -> None:
        return None


class RedisTier(CacheTier):
    """
    Remote tier over a redis.asyncio client.

    ``available`` tracks the last known connectivity: it is set by ``connect``
    (a PING), cleared whenever a call fails with a connection or timeout
    error, and refreshed by ``monitor`` so the tier comes back after an
    outage.
    """

    name = "redis"

    def __init__(self, client: "aioredis.Redis") -> None:
        self._client = client
        self._connected = False

    @property
    def available(self) -> bool:
        return self._connected

    async def connect(self) -> bool:
        try:
            await self._client.ping()
        except (RedisError, OSError, asyncio.TimeoutError) as exc:
            if self._connected:
                logger.warning("redis_connection_lost", error=str(exc))
            else:
                logger.debug("redis_unreachable", error=str(exc))
            self._connected = False
        else:
            if not self._connected:
                logger.info("redis_connected")
            self._connected = True
        return self._connected

    async def monitor(self, interval: float) -> None:
        """Re-ping Redis every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            await self.connect()

    async def close(self) -> None:
        self._connected = False
        await self._client.aclose()

    async def get(self, key: str) -> CacheResult:
        try:
            value = await self._client.get(key)
        except Exception as exc:
            return self._failed("get", key, exc)
        return CacheResult.success(value)

    async def set(self, key: str, value: str, ttl_seconds: int = 0) -> CacheResult:
        try:
            if ttl_seconds > 0:
                await self._client.setex(key, ttl_seconds, value)
            else:
                await self._client.set(key, value)
        except Exception as exc:
            return self._failed("set", key, exc)
        return CacheResult.success()

    async def publish(self, channel: str, message: str) -> CacheResult:
        try:
            await self._client.publish(channel, message)
        except Exception as exc:
            return self._failed("publish", channel, exc)
        return CacheResult.success()

    def _failed(self, op: str, key: str, exc: Exception) -> CacheResult:
        if isinstance(exc, (RedisConnectionError, RedisTimeoutError, OSError, asyncio.TimeoutError)):
            self._connected = False
        logger.warning("redis_operation_failed", op=op, key=key, error=repr(exc))
        return CacheResult.failure(exc)


class LocalTier(CacheTier):
    """In-process fallback store. Always available; entries live for the process lifetime."""

    name = "local"

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    @property
    def available(self) -> bool:
        return True

    async def get(self, key: str) -> CacheResult:
        return CacheResult.success(self._data.get(key))

    async def set(self, key: str, value: str, ttl_seconds: int = 0) -> CacheResult:
        self._data[key] = value
        return CacheResult.success()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


# PUBLIC_INTERFACE
def build_redis_client(settings: Settings) -> "aioredis.Redis":
    """Create the redis.asyncio client; every call is bounded by the configured socket timeout."""
    return aioredis.from_url(
        settings.redis_dsn,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
    )
