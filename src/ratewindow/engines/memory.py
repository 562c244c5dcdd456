"""
In-memory rate limit store backed by a dict.

This store is useful for:
- Local development (no external services)
- Unit tests
- Single-process applications

Note: This does NOT coordinate across processes or serverless instances.
Every instance holding its own MemoryRateLimitStore counts independently,
so the effective limit grows with the number of instances.
"""

import logging

from ratewindow.core import Clock, RateLimitStore
from ratewindow.schemas import RateLimitEntry

logger = logging.getLogger(__name__)


class MemoryRateLimitStore(RateLimitStore):
    """Dict-backed store for fixed-window counters.

    None of the operations await, so each one runs to completion on the
    event loop without interleaving; increments within one process are
    never lost. There is no cross-instance consistency whatsoever.

    Attributes:
        _entries: Mapping of key to (entry, expires_at) where expires_at is
            the epoch ms deadline set by the TTL passed to ``set``
        _warned: Whether the startup warning has been emitted
    """

    backend_name = "memory"

    def __init__(self, clock: Clock | None = None, *, warn: bool = True) -> None:
        """Initialize the memory store.

        Args:
            clock: Callable returning epoch milliseconds (default: wall clock)
            warn: Emit the one-time warning about missing distribution
        """
        super().__init__(clock)
        self._entries: dict[str, tuple[RateLimitEntry, int]] = {}
        self._warned = False
        if warn:
            self._warn_about_memory_store()

    def _warn_about_memory_store(self) -> None:
        if self._warned:
            return
        logger.warning(
            "Using in-memory rate limit store. Rate limits will not persist across "
            "serverless instances. Configure UPSTASH_REDIS_REST_URL or KV_REST_API_URL "
            "for distributed rate limiting."
        )
        self._warned = True

    def _live(self, key: str, now: int) -> RateLimitEntry | None:
        item = self._entries.get(key)
        if item is None:
            return None

        entry, expires_at = item
        if entry.is_expired(now) or now >= expires_at:
            del self._entries[key]
            return None

        return entry

    async def get(self, key: str) -> RateLimitEntry | None:
        """Return a copy of the live entry for ``key``."""
        entry = self._live(key, self._clock())
        if entry is None:
            return None
        return RateLimitEntry(count=entry.count, reset_time=entry.reset_time)

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        """Store a copy of ``entry``, hidden once ``ttl_ms`` has elapsed."""
        now = self._clock()
        self._entries[key] = (
            RateLimitEntry(count=entry.count, reset_time=entry.reset_time),
            now + ttl_ms,
        )

    async def increment(self, key: str, window_ms: int) -> RateLimitEntry:
        """Count one action against ``key`` with a direct read-modify-write."""
        now = self._clock()
        entry = self._live(key, now)

        if entry is None:
            entry = RateLimitEntry(count=1, reset_time=now + window_ms)
        else:
            entry.count += 1
        # The entry lives until its window ends, whatever TTL an earlier set() gave it
        self._entries[key] = (entry, entry.reset_time)

        return RateLimitEntry(count=entry.count, reset_time=entry.reset_time)

    def cleanup(self) -> int:
        """Delete every expired entry.

        Expired entries are already hidden from ``get``; this only bounds
        memory growth and is meant to be called periodically.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [
            key
            for key, (entry, expires_at) in self._entries.items()
            if entry.is_expired(now) or now >= expires_at
        ]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug("Removed %d expired rate limit entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Drop all entries (for testing)."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
