from __future__ import annotations

from typing import Optional

import structlog
from pydantic import ValidationError

from .cache import CacheTier
from .models import TodoCollection, default_collection

logger = structlog.get_logger(__name__)

CACHE_KEY_PREFIX = "todos:user:"
DEFAULT_CACHE_TTL = 300


def cache_key(user_id: str) -> str:
    """Remote cache key holding a user's collection."""
    return f"{CACHE_KEY_PREFIX}{user_id}"


def _parse(raw: str, user_id: str, tier: str) -> Optional[TodoCollection]:
    try:
        return TodoCollection.from_json(raw)
    except (ValidationError, ValueError) as exc:
        logger.warning("cached_collection_unreadable", user_id=user_id, tier=tier, error=str(exc))
        return None


# PUBLIC_INTERFACE
class CacheAsideRepository:
    """
    Reads and writes per-user todo collections through two cache tiers.

    The remote tier is preferred whenever it reports itself available; the
    local tier takes over when it is not, or when a remote call fails.
    A user with no stored collection in either tier gets the default seed,
    which is also what happens after the remote entry's TTL runs out.

    Neither method raises on a cache failure. The repository does no
    locking of its own; callers serialize read-modify-write sequences.
    """

    def __init__(self, remote: CacheTier, local: CacheTier, ttl_seconds: int = DEFAULT_CACHE_TTL) -> None:
        self._remote = remote
        self._local = local
        self._ttl = ttl_seconds

    async def load(self, user_id: str) -> TodoCollection:
        """Return the user's collection, seeding it on first access."""
        if self._remote.available:
            key = cache_key(user_id)
            result = await self._remote.get(key)
            if result.ok:
                if result.found:
                    collection = _parse(result.value, user_id, self._remote.name)
                    if collection is not None:
                        return collection

                seed = default_collection()
                stored = await self._remote.set(key, seed.to_json(), self._ttl)
                if not stored.ok:
                    logger.warning("seed_stored_locally", user_id=user_id)
                    await self._local.set(user_id, seed.to_json())
                return seed

            logger.warning("remote_read_failed_using_local", user_id=user_id)

        result = await self._local.get(user_id)
        if result.found:
            collection = _parse(result.value, user_id, self._local.name)
            if collection is not None:
                return collection

        seed = default_collection()
        await self.save(user_id, seed)
        return seed

    async def save(self, user_id: str, collection: TodoCollection) -> None:
        """Write the collection to the remote tier, or to the local tier if that fails."""
        payload = collection.to_json()
        if self._remote.available:
            result = await self._remote.set(cache_key(user_id), payload, self._ttl)
            if result.ok:
                return
            logger.warning("remote_write_failed_using_local", user_id=user_id)
        await self._local.set(user_id, payload)
