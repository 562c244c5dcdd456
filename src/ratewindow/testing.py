"""Testing utilities for rate-window.

This module provides helpers for testing code that uses rate limiting:
a controllable clock, a store that always fails, and reset helpers.

Example:
    >>> from ratewindow import DistributedRateLimiter, MemoryRateLimitStore
    >>> from ratewindow.testing import ManualClock
    >>>
    >>> clock = ManualClock()
    >>> limiter = DistributedRateLimiter(MemoryRateLimitStore(clock=clock), clock=clock)
    >>> await limiter.check("203.0.113.7", "contact")
    >>> clock.advance(61_000)  # next check starts a fresh window
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ratewindow.core import RateLimitStore
from ratewindow.exceptions import StoreError

if TYPE_CHECKING:
    from ratewindow.schemas import RateLimitEntry

logger = logging.getLogger(__name__)

DEFAULT_START_MS = 1_700_000_000_000


class ManualClock:
    """Epoch-millisecond clock that only moves when told to.

    Pass the same instance to the store and the limiter.
    """

    def __init__(self, start_ms: int = DEFAULT_START_MS) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        """Move the clock forward by ``ms`` and return the new time."""
        if ms < 0:
            raise ValueError("ManualClock cannot go backwards")
        self.now += ms
        return self.now


class FailingStore(RateLimitStore):
    """Store whose every operation raises StoreError.

    Simulates a backend outage to exercise the fail-open path.
    """

    backend_name = "failing"

    def __init__(self, message: str = "store unavailable") -> None:
        super().__init__()
        self.message = message
        self.calls: list[str] = []

    def _fail(self, operation: str) -> StoreError:
        self.calls.append(operation)
        return StoreError(self.message, backend=self.backend_name, operation=operation)

    async def get(self, key: str) -> RateLimitEntry | None:
        raise self._fail("get")

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        raise self._fail("set")

    async def increment(self, key: str, window_ms: int) -> RateLimitEntry:
        raise self._fail("increment")


def reset_store(store: RateLimitStore) -> None:
    """Drop every entry held by ``store``.

    Only stores with a ``clear()`` method (the memory store) can be reset;
    network stores are left untouched with a warning.
    """
    if not hasattr(store, "clear"):
        logger.warning(
            "Store %s doesn't support clear(). State may persist.",
            store.__class__.__name__,
        )
        return

    store.clear()
    logger.debug("Store %s reset successfully", store.__class__.__name__)


async def reset_default_store() -> None:
    """Close and drop the process-wide store.

    Useful in fixtures: the next module-level call rebuilds the store from
    the current environment.

    Example:
        >>> @pytest.fixture(autouse=True)
        >>> async def fresh_store():
        ...     await reset_default_store()
        ...     yield
        ...     await reset_default_store()
    """
    from ratewindow.factory import _holder, reset_rate_limit_store

    store = _holder.store
    reset_rate_limit_store()
    if store is not None:
        await store.close()


__all__ = [
    "ManualClock",
    "FailingStore",
    "reset_store",
    "reset_default_store",
]
