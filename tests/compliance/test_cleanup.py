"""Compliance tests for cleanup().

Cleanup only reclaims local memory; for network stores it is a no-op and
must never affect live counters.
"""

from __future__ import annotations

import pytest

from ratewindow.core import RateLimitStore
from ratewindow.testing import ManualClock

pytestmark = [pytest.mark.compliance, pytest.mark.asyncio]


class TestCleanup:
    """Test cleanup across stores."""

    async def test_cleanup_keeps_live_entries(
        self, store: RateLimitStore, clock: ManualClock
    ) -> None:
        await store.increment("live", 60_000)

        store.cleanup()

        assert (await store.get("live")).count == 1

    async def test_cleanup_returns_non_negative_count(
        self, store: RateLimitStore, clock: ManualClock
    ) -> None:
        await store.increment("short", 1_000)
        clock.advance(1_000)

        assert store.cleanup() >= 0
        assert await store.get("short") is None

    async def test_close_is_safe_to_call_twice(self, store: RateLimitStore) -> None:
        await store.increment("k", 60_000)

        await store.close()
        await store.close()
