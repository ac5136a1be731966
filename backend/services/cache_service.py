"""
Read-through caching on top of a pluggable backend.

The backend is chosen once from settings: Redis when CACHE_ENABLED is true,
otherwise a no-op backend where every read misses. Callers go through
CacheService and never see a backend failure: a broken cache behaves like
an empty one.
"""

import json
from collections.abc import Callable
from typing import Any, Optional, Protocol, TypeVar

from loguru import logger
from redis import Redis
from redis.exceptions import RedisError

from models.config import settings

T = TypeVar("T")

# TTLs in seconds for cached reads
CATEGORIES_TTL = 3600
BADGES_TTL = 3600
USER_TTL = 600
USER_BADGES_TTL = 600
LEADERBOARD_TTL = 300
STATS_TTL = 300


class CacheBackend(Protocol):
    """Primitives the cache and rate limiter rely on."""

    # False when writes are dropped, so nothing can be read back
    stores_data: bool

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl: int) -> None: ...

    def delete(self, *keys: str) -> None: ...

    def delete_prefix(self, prefix: str) -> None: ...

    def incr(self, key: str) -> int: ...

    def expire(self, key: str, ttl: int) -> None: ...

    def ttl(self, key: str) -> int: ...


class NullCacheBackend:
    """Backend used when caching is disabled: stores nothing."""

    stores_data = False

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str, ttl: int) -> None:
        return None

    def delete(self, *keys: str) -> None:
        return None

    def delete_prefix(self, prefix: str) -> None:
        return None

    def incr(self, key: str) -> int:
        return 1

    def expire(self, key: str, ttl: int) -> None:
        return None

    def ttl(self, key: str) -> int:
        return -2


class RedisCacheBackend:
    """Redis-backed implementation. Errors propagate to CacheService."""

    stores_data = True

    def __init__(self, url: str, client: Optional[Redis] = None):
        self._client = client or Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)  # type: ignore[return-value]

    def set(self, key: str, value: str, ttl: int) -> None:
        self._client.set(key, value, ex=max(1, int(ttl)))

    def delete(self, *keys: str) -> None:
        if keys:
            self._client.delete(*keys)

    def delete_prefix(self, prefix: str) -> None:
        batch = list(self._client.scan_iter(match=f"{prefix}*", count=200))
        if batch:
            self._client.delete(*batch)

    def incr(self, key: str) -> int:
        return int(self._client.incr(key))  # type: ignore[arg-type]

    def expire(self, key: str, ttl: int) -> None:
        self._client.expire(key, ttl)

    def ttl(self, key: str) -> int:
        return int(self._client.ttl(key))  # type: ignore[arg-type]


def _build_backend() -> CacheBackend:
    if settings.CACHE_ENABLED:
        logger.info("Redis cache enabled")
        return RedisCacheBackend(settings.REDIS_URL)
    return NullCacheBackend()


_backend: CacheBackend = _build_backend()


def get_cache_backend() -> CacheBackend:
    """Get the process-wide cache backend."""
    return _backend


def set_cache_backend(backend: CacheBackend) -> None:
    """Swap the cache backend (tests, alternative deployments)."""
    global _backend
    _backend = backend


def cache_key(*parts: Any) -> str:
    """
    Build a namespaced cache key.

    Example:
        cache_key("zone", 4, "stats") -> "civictrack:zone:4:stats"
    """
    return ":".join([settings.CACHE_PREFIX, *(str(part) for part in parts)])


class CacheService:
    """Read-through cache facade. Never raises because of the backend."""

    @staticmethod
    def cached(
        key: str,
        compute: Callable[[], T],
        ttl: int | None = None,
    ) -> T:
        """
        Return the cached value for key, computing and storing it on a miss.

        Values must be JSON serializable. When the backend is unreachable
        the value is computed directly and nothing is stored.

        Args:
            key: Full cache key (see cache_key)
            compute: Zero-argument function producing the value
            ttl: Lifetime in seconds (defaults to CACHE_DEFAULT_TTL)

        Returns:
            Cached or freshly computed value
        """
        backend = get_cache_backend()
        try:
            raw = backend.get(key)
            if raw is not None:
                return json.loads(raw)
        except (RedisError, ValueError) as e:
            logger.warning(f"Cache read failed for {key}: {e!r}")
            return compute()

        value = compute()
        try:
            backend.set(
                key,
                json.dumps(value, default=str),
                ttl or settings.CACHE_DEFAULT_TTL,
            )
        except (RedisError, TypeError) as e:
            logger.warning(f"Cache write failed for {key}: {e!r}")
        return value

    @staticmethod
    def invalidate(*keys: str) -> None:
        """Delete cache entries by exact key."""
        try:
            get_cache_backend().delete(*keys)
        except RedisError as e:
            logger.warning(f"Cache invalidation failed for {keys}: {e!r}")

    @staticmethod
    def invalidate_prefix(prefix: str) -> None:
        """Delete every cache entry whose key starts with prefix."""
        try:
            get_cache_backend().delete_prefix(prefix)
        except RedisError as e:
            logger.warning(f"Cache prefix invalidation failed for {prefix}: {e!r}")
