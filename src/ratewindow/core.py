"""Core abstractions for fixed-window distributed rate limiting.

This module defines the store interface every backend implements (in-memory,
Redis REST, KV REST, native Redis) along with the clock helper and the
coordinator metrics.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from ratewindow.schemas import RateLimitEntry

# Returns the current time in epoch milliseconds
Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class RateLimiterMetrics:
    """Observability metrics for the rate limit coordinator.

    Attributes:
        total_checks: Number of check() calls that reached the store
        allowed: Checks that let the request through
        denied: Checks that rejected the request
        fail_open: Checks allowed because the store failed
        status_reads: Number of status() calls
        status_failures: status() calls where the store failed
        last_check_at: Timestamp of the last check (seconds since epoch)
    """

    total_checks: int = 0
    allowed: int = 0
    denied: int = 0
    fail_open: int = 0
    status_reads: int = 0
    status_failures: int = 0
    last_check_at: float | None = None

    def record_check(self, allowed: bool) -> None:
        """Record a decided check."""
        self.total_checks += 1
        if allowed:
            self.allowed += 1
        else:
            self.denied += 1
        self.last_check_at = time.time()

    def record_fail_open(self) -> None:
        """Record a check allowed because the store failed."""
        self.total_checks += 1
        self.allowed += 1
        self.fail_open += 1
        self.last_check_at = time.time()

    def record_status(self, failed: bool = False) -> None:
        """Record a status read."""
        self.status_reads += 1
        if failed:
            self.status_failures += 1


class RateLimitStore(ABC):
    """Abstract storage for fixed-window counters.

    Concrete stores decide how entries are persisted. Network-backed stores
    give every process instance the same view of a counter; the memory store
    does not.

    Contract:
    - ``get`` never returns an entry whose reset time has passed.
    - ``set`` overwrites unconditionally and makes the entry inaccessible
      after ``ttl_ms``.
    - ``increment`` starts a new window (count=1, reset=now+window) when no
      live entry exists, otherwise bumps the count and keeps the reset time.

    Example:
        >>> store = MemoryRateLimitStore()
        >>> entry = await store.increment("ratelimit:contact:203.0.113.7", 60_000)
        >>> entry.count
        1
    """

    backend_name: str = "unknown"

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or now_ms

    @abstractmethod
    async def get(self, key: str) -> RateLimitEntry | None:
        """Return the live entry for ``key``, or None if absent or expired.

        Raises:
            StoreError: If the backend cannot be reached or replies badly
        """

    @abstractmethod
    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        """Overwrite ``key`` with ``entry``, expiring it after ``ttl_ms``.

        Raises:
            StoreError: If the backend cannot be reached or replies badly
        """

    async def increment(self, key: str, window_ms: int) -> RateLimitEntry:
        """Count one action against ``key`` and return the updated entry.

        The default is a read-modify-write over ``get`` and ``set``: two
        round-trips with no server-side atomicity. Concurrent callers on
        different instances can both read count=N and both write N+1, so
        an increment may be lost. Stores that can do better override this.

        Args:
            key: Storage key
            window_ms: Window length used when a new window starts

        Returns:
            The entry as persisted by this call

        Raises:
            StoreError: If the backend cannot be reached or replies badly
        """
        now = self._clock()
        existing = await self.get(key)

        if existing is None or existing.is_expired(now):
            entry = RateLimitEntry(count=1, reset_time=now + window_ms)
            await self.set(key, entry, window_ms)
            return entry

        entry = RateLimitEntry(count=existing.count + 1, reset_time=existing.reset_time)
        await self.set(key, entry, existing.reset_time - now)
        return entry

    def cleanup(self) -> int:
        """Reclaim expired entries held locally.

        Network stores rely on native TTLs, so the default does nothing.

        Returns:
            Number of entries removed
        """
        return 0

    async def close(self) -> None:
        """Release connections held by the store (no-op by default)."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(backend={self.backend_name!r})"
