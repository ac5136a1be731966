"""
Rate Limit Service - fixed-window counters per action and identifier.

Counters live in the cache backend under ``ratelimit:{action}:{identifier}``.
The first hit in a window creates the counter with the window as its TTL;
later hits increment it. When the backend is unreachable the request is
allowed.
"""

from dataclasses import dataclass

from loguru import logger
from redis.exceptions import RedisError

from models.config import settings
from models.exceptions import RateLimitExceededException
from services.cache_service import cache_key, get_cache_backend


@dataclass(frozen=True)
class RateLimit:
    """Maximum requests per window (seconds)."""

    max_requests: int
    window: int


class RateLimitService:
    """Service for per-action rate limits."""

    LIMITS: dict[str, RateLimit] = {
        "auth": RateLimit(max_requests=5, window=15 * 60),
        "upload": RateLimit(max_requests=10, window=60 * 60),
        "comment": RateLimit(max_requests=50, window=60 * 60),
        "issue": RateLimit(max_requests=20, window=60 * 60),
        "vote": RateLimit(max_requests=20, window=60),
    }

    @staticmethod
    def _key(action: str, identifier: str | int) -> str:
        return cache_key("ratelimit", action, identifier)

    @staticmethod
    def hit(action: str, identifier: str | int) -> None:
        """
        Count one request against the action's window.

        Args:
            action: Limit name (auth, upload, comment, issue, vote)
            identifier: User ID, email or IP the limit applies to

        Raises:
            RateLimitExceededException: If the window's budget is spent
            KeyError: If the action has no configured limit
        """
        limit = RateLimitService.LIMITS[action]
        if not settings.RATE_LIMIT_ENABLED:
            return

        backend = get_cache_backend()
        key = RateLimitService._key(action, identifier)
        try:
            current = backend.get(key)
            if current is None:
                backend.set(key, "1", limit.window)
                return
            if int(current) >= limit.max_requests:
                retry_after = backend.ttl(key)
                raise RateLimitExceededException(
                    message=f"Too many {action} requests. Please try again later.",
                    retry_after=retry_after if retry_after > 0 else limit.window,
                )
            backend.incr(key)
        except (RedisError, ValueError) as e:
            logger.warning(f"Rate limiter unavailable, allowing {action}: {e!r}")

