"""
Expiring Key-Value Cache

Storage used by the rate limiter. The limiter only depends on the
ExpiringCache protocol, so the in-process implementation below can be
swapped for any store offering the same per-key guarantees.

Guarantees required from an implementation:
- get_or_create installs a missing entry and its expiry in one step
- expired entries are never returned (expiry is checked on access)
- lock(key) serialises callers for one key without blocking other keys
"""

import asyncio
import heapq
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional, Protocol

from shortener.core.exceptions import CacheUnavailable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ExpiringCache(Protocol):
    """Interface of the cache consumed by the rate limiter."""

    def now(self) -> float:
        ...

    async def get_or_create(self, key: str, factory: Callable[[], Any], ttl: float) -> Any:
        ...

    async def set(self, key: str, value: Any, ttl: float) -> None:
        ...

    def lock(self, key: str) -> Any:
        """Return an async context manager holding the lock for ``key``."""
        ...

    async def close(self) -> None:
        ...


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class InMemoryExpiringCache:
    """
    Process-local expiring cache.

    Entries are stored as (value, expires_at) against the injected clock.
    A heap of (expires_at, key) lets every get_or_create / set drop all
    expired entries in the same step, so counters of clients that never
    return do not stay behind.
    Per-key locks are reference counted and dropped once no task holds or
    waits on them, so the lock table never grows past the number of keys in
    active use.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock: Clock = clock or time.monotonic
        self._entries: dict[str, tuple[Any, float]] = {}
        self._expiry_heap: list[tuple[float, str]] = []
        self._locks: dict[str, _KeyLock] = {}
        self._closed = False

    def now(self) -> float:
        return self._clock()

    def _check_open(self) -> None:
        if self._closed:
            raise CacheUnavailable("cache is closed")

    def _store(self, key: str, value: Any, expires_at: float) -> None:
        self._entries[key] = (value, expires_at)
        heapq.heappush(self._expiry_heap, (expires_at, key))

    def _purge_expired(self) -> None:
        now = self.now()
        heap = self._expiry_heap
        while heap and heap[0][0] <= now:
            expires_at, key = heapq.heappop(heap)
            item = self._entries.get(key)
            # heap items left over from an overwritten entry are skipped
            if item is not None and item[1] == expires_at:
                del self._entries[key]

    def _live(self, key: str) -> Optional[tuple[Any, float]]:
        item = self._entries.get(key)
        if item is None:
            return None
        if item[1] <= self.now():
            del self._entries[key]
            return None
        return item

    async def get(self, key: str) -> Any:
        self._check_open()
        self._purge_expired()
        item = self._live(key)
        return item[0] if item else None

    async def get_or_create(self, key: str, factory: Callable[[], Any], ttl: float) -> Any:
        """
        Return the live entry for ``key`` or install ``factory()`` with ``ttl``.

        Lookup, expiry check and insertion run without yielding to the event
        loop, so two first requests cannot both create an entry.
        """
        self._check_open()
        self._purge_expired()
        item = self._live(key)
        if item is not None:
            return item[0]
        value = factory()
        self._store(key, value, self.now() + ttl)
        return value

    async def set(self, key: str, value: Any, ttl: float) -> None:
        self._check_open()
        self._purge_expired()
        if ttl <= 0:
            self._entries.pop(key, None)
            return
        self._store(key, value, self.now() + ttl)

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        self._check_open()
        key_lock = self._locks.get(key)
        if key_lock is None:
            key_lock = self._locks[key] = _KeyLock()
        key_lock.users += 1
        try:
            async with key_lock.lock:
                yield
        finally:
            key_lock.users -= 1
            if key_lock.users == 0 and self._locks.get(key) is key_lock:
                del self._locks[key]

    def __len__(self) -> int:
        return sum(1 for key in list(self._entries) if self._live(key) is not None)

    async def close(self) -> None:
        if not self._closed:
            logger.info(f"Closing in-memory cache ({len(self._entries)} entries)")
        self._closed = True
        self._entries.clear()
        self._expiry_heap.clear()
        self._locks.clear()
