"""Fixtures for store compliance tests.

The ``store`` fixture is parametrized over every store that can run without
infrastructure. REST stores talk to in-process fakes through respx, and
every store shares the test's ManualClock so windows can be expired
without sleeping.

Usage:
    async def test_something(store, clock):
        entry = await store.increment("key", 60_000)
        clock.advance(60_000)
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import respx

from compliance.utils import (
    KV_REST_HOST,
    REDIS_REST_HOST,
    FakeKvRestServer,
    FakeRedisRestServer,
    get_stores_with,
)
from ratewindow.core import RateLimitStore
from ratewindow.engines import KvRestRateLimitStore, MemoryRateLimitStore, RedisRestRateLimitStore
from ratewindow.testing import ManualClock


@pytest.fixture(params=get_stores_with("no_infrastructure"))
async def store(request, clock: ManualClock) -> AsyncIterator[RateLimitStore]:
    """Parametrized store under test."""
    name = request.param

    with respx.mock(assert_all_called=False) as router:
        if name == "memory":
            instance: RateLimitStore = MemoryRateLimitStore(clock=clock, warn=False)
        elif name == "redis_rest":
            server = FakeRedisRestServer(clock)
            router.route(host=REDIS_REST_HOST).mock(side_effect=server.handle)
            instance = RedisRestRateLimitStore(
                f"https://{REDIS_REST_HOST}", server.token, clock=clock
            )
        elif name == "kv_rest":
            server = FakeKvRestServer(clock)
            router.route(host=KV_REST_HOST).mock(side_effect=server.handle)
            instance = KvRestRateLimitStore(f"https://{KV_REST_HOST}", server.token, clock=clock)
        else:
            pytest.fail(f"Unknown store: {name}")

        yield instance

        await instance.close()
