"""
Read-through cache with Redis support and in-memory fallback.

This is a correctness cache: entries have no TTL and are never evicted,
they live until explicitly deleted or overwritten. Values are encoded
with msgspec JSON; a blob that fails to decode is treated as a miss.

Keys:
- allPlayerList / activePlayerList: full-list projections
- playerPage-<id>: per-player composite page
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping, Optional

import msgspec
import redis.asyncio as redis
from redis.exceptions import RedisError

from ..core.exceptions import CacheUnavailableError, MalformedCacheEntryError

if TYPE_CHECKING:
    from ..core.config import Settings

logger = logging.getLogger(__name__)

ALL_PLAYER_LIST_KEY = "allPlayerList"
ACTIVE_PLAYER_LIST_KEY = "activePlayerList"


def player_page_key(player_id: str) -> str:
    return f"playerPage-{player_id}"


# =============================================================================
# Backends (raw bytes)
# =============================================================================


class CacheBackend(ABC):
    """Abstract base class for cache backends storing raw bytes."""

    name = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Get raw value from cache."""
        pass

    @abstractmethod
    async def set_many(self, values: Mapping[str, bytes]) -> None:
        """Set several keys so readers see all or none of the new values."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key from cache."""
        pass

    @abstractmethod
    async def size(self) -> int:
        """Get number of cached entries."""
        pass

    async def close(self) -> None:
        return None


class InMemoryBackend(CacheBackend):
    """Process-local backend. Single event loop, so a dict update is atomic."""

    name = "memory"

    def __init__(self):
        self._cache: dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        await asyncio.sleep(0)
        return self._cache.get(key)

    async def set_many(self, values: Mapping[str, bytes]) -> None:
        await asyncio.sleep(0)
        self._cache.update(values)

    async def delete(self, key: str) -> None:
        await asyncio.sleep(0)
        self._cache.pop(key, None)

    async def size(self) -> int:
        return len(self._cache)


class RedisBackend(CacheBackend):
    """Redis backend for caching shared across workers."""

    name = "redis"

    def __init__(self, client: "redis.Redis", prefix: str = "pugstats:"):
        self._redis = client
        self._prefix = prefix

    @classmethod
    async def connect(cls, url: str, prefix: str = "pugstats:") -> "RedisBackend":
        client = redis.from_url(url, decode_responses=False)
        # Test connection
        await client.ping()
        logger.info("Redis cache backend connected")
        return cls(client, prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[bytes]:
        try:
            return await self._redis.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Redis get error for {key}: {e}")
            return None

    async def set_many(self, values: Mapping[str, bytes]) -> None:
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for key, value in values.items():
                    pipe.set(self._key(key), value)
                await pipe.execute()
        except RedisError as e:
            raise CacheUnavailableError(f"Redis set error: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except RedisError as e:
            raise CacheUnavailableError(f"Redis delete error for {key}: {e}") from e

    async def size(self) -> int:
        try:
            count = 0
            async for _ in self._redis.scan_iter(match=f"{self._prefix}*"):
                count += 1
            return count
        except RedisError as e:
            logger.warning(f"Redis size error: {e}")
            return 0

    async def close(self) -> None:
        await self._redis.aclose()


# =============================================================================
# Read-through cache
# =============================================================================


class ReadThroughCache:
    """
    Key -> value store over a CacheBackend.

    get() never recomputes; callers own the miss path. Values are any
    msgspec-encodable structure.
    """

    def __init__(self, backend: CacheBackend):
        self._backend = backend
        self._encoder = msgspec.json.Encoder()
        self._decoder = msgspec.json.Decoder()
        self._stats = {"hits": 0, "misses": 0, "malformed": 0}

    @property
    def backend_name(self) -> str:
        return self._backend.name

    def encode(self, value: Any) -> bytes:
        return self._encoder.encode(value)

    def _decode(self, key: str, data: bytes) -> Any:
        try:
            return self._decoder.decode(data)
        except msgspec.DecodeError as e:
            raise MalformedCacheEntryError(key, str(e)) from e

    async def get_raw(self, key: str) -> Optional[bytes]:
        """Return the stored blob as-is (None on miss)."""
        return await self._backend.get(key)

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Decoded value, or None on miss or malformed entry
        """
        data = await self._backend.get(key)
        if data is None:
            self._stats["misses"] += 1
            return None

        try:
            value = self._decode(key, data)
        except MalformedCacheEntryError as e:
            logger.warning(f"{e.message}; treating as miss")
            self._stats["malformed"] += 1
            self._stats["misses"] += 1
            try:
                await self._backend.delete(key)
            except CacheUnavailableError as delete_error:
                logger.warning(f"Could not drop malformed entry {key}: {delete_error.message}")
            return None

        self._stats["hits"] += 1
        return value

    async def set(self, key: str, value: Any) -> None:
        await self._backend.set_many({key: self.encode(value)})

    async def set_many(self, values: Mapping[str, Any]) -> None:
        """Write several keys as one unit."""
        await self._backend.set_many({key: self.encode(value) for key, value in values.items()})

    async def delete(self, key: str) -> None:
        await self._backend.delete(key)

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0
        return {
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "malformed": self._stats["malformed"],
            "hit_rate_percent": round(hit_rate, 2),
            "total_requests": total,
            "entries": await self._backend.size(),
            "backend": self._backend.name,
        }

    async def close(self) -> None:
        await self._backend.close()


async def create_cache(settings: "Settings") -> ReadThroughCache:
    """
    Build the cache for the given settings.

    Returns:
        ReadThroughCache over Redis if REDIS_URL is set and reachable,
        otherwise over an in-memory backend
    """
    if settings.redis_url:
        try:
            backend: CacheBackend = await RedisBackend.connect(settings.redis_url, settings.cache_key_prefix)
            logger.info("Using Redis as cache backend")
            return ReadThroughCache(backend)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis connection failed ({e}), using in-memory cache")
    else:
        logger.info("No REDIS_URL configured, using in-memory cache")

    return ReadThroughCache(InMemoryBackend())
