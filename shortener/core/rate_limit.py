"""
Rate Limiting

Fixed-window, per-client request limiting.

Design Decisions:
- Fixed window counter: each client gets `limit` requests per window; the
  window starts with the client's first request and is never extended
- Counters live in an injected ExpiringCache, so tests and alternative
  stores can supply their own
- Clients are identified by remote address (slowapi's get_remote_address)
- Limits are configured as "count/period" strings parsed by the limits library

Known imprecision: a client can issue up to 2x the limit across a window
boundary (end of one window, start of the next). Use a sliding window or a
token bucket if that matters; the check_and_increment contract stays the same.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from fastapi import FastAPI
from limits import RateLimitItem
from slowapi.util import get_remote_address

from shortener.core.cache import Clock, ExpiringCache, InMemoryExpiringCache
from shortener.core.exceptions import CacheUnavailable
from shortener.core.setting import Settings

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60
CACHE_KEY_PREFIX = "rl:"

# Key function used by the middleware to identify clients
key_func = get_remote_address


class Decision(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass(frozen=True)
class RateLimitCounter:
    """Request count for one client within one window."""
    count: int
    expires_at: float


@dataclass(frozen=True)
class RateLimitResult:
    decision: Decision
    count: int
    limit: int
    expires_at: float

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOWED

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)

    def reset_after(self, now: float) -> float:
        """Seconds until the current window ends."""
        return max(self.expires_at - now, 0.0)


class FixedWindowRateLimiter:
    """
    Allow at most `limit` requests per client in each `window` seconds.

    check_and_increment never blocks on other clients: it only holds the
    cache lock for the client being checked.
    """

    def __init__(self, cache: ExpiringCache, limit: int, window: float = DEFAULT_WINDOW_SECONDS):
        if limit < 0:
            raise ValueError("limit must be >= 0")
        if window <= 0:
            raise ValueError("window must be positive")
        self.cache = cache
        self.limit = limit
        self.window = window

    @classmethod
    def from_item(cls, cache: ExpiringCache, item: RateLimitItem) -> "FixedWindowRateLimiter":
        return cls(cache, limit=item.amount, window=item.get_expiry())

    async def check_and_increment(self, client_id: str) -> RateLimitResult:
        """
        Count one request for `client_id` and decide whether it may proceed.

        Returns:
            RateLimitResult with decision ALLOWED or DENIED. A denied request
            is not counted.

        Raises:
            CacheUnavailable: If the cache fails or yields no counter. Callers
            must treat this as a denial.
        """
        key = f"{CACHE_KEY_PREFIX}{client_id}"

        def new_counter() -> RateLimitCounter:
            return RateLimitCounter(count=0, expires_at=self.cache.now() + self.window)

        try:
            async with self.cache.lock(key):
                counter = await self.cache.get_or_create(key, new_counter, self.window)
                if counter is None:
                    raise CacheUnavailable(f"no counter returned for {client_id}")

                if counter.count >= self.limit:
                    logger.warning(f"Rate limit exceeded for {client_id}")
                    return RateLimitResult(Decision.DENIED, counter.count, self.limit, counter.expires_at)

                counter = replace(counter, count=counter.count + 1)
                # Keep the window's original expiry instead of restarting it
                await self.cache.set(key, counter, counter.expires_at - self.cache.now())
                return RateLimitResult(Decision.ALLOWED, counter.count, self.limit, counter.expires_at)
        except CacheUnavailable:
            logger.error(f"Rate limit cache unavailable for {client_id}", exc_info=True)
            raise
        except Exception as e:
            logger.error(f"Rate limit cache failure for {client_id}: {e}", exc_info=True)
            raise CacheUnavailable(str(e)) from e


async def initialize_rate_limiter(
    app: FastAPI,
    config: Settings,
    clock: Optional[Clock] = None,
) -> None:
    """
    Create the process-wide cache and limiter and attach them to the app.

    Called from the application's startup hook; the limiter is then read
    from app.state by the rate limit middleware.
    """
    if getattr(app.state, "rate_limiter", None) is not None:
        logger.warning("Rate limiter already initialized")
        return

    item = config.rate_limit_item
    cache = InMemoryExpiringCache(clock=clock)
    app.state.rate_limit_cache = cache
    app.state.rate_limiter = FixedWindowRateLimiter.from_item(cache, item)
    logger.info(f"Rate limiter initialized: {item.amount} requests per {item.get_expiry()}s")


async def shutdown_rate_limiter(app: FastAPI) -> None:
    """Close the cache created by initialize_rate_limiter."""
    cache = getattr(app.state, "rate_limit_cache", None)
    app.state.rate_limiter = None
    app.state.rate_limit_cache = None
    if cache is not None:
        logger.info("Shutting down rate limiter")
        await cache.close()
