"""Tests for backend selection and the process-wide store."""

from __future__ import annotations

import logging

import pytest

from conftest import REDIS_AVAILABLE
from ratewindow.config import StoreSettings
from ratewindow.engines import KvRestRateLimitStore, MemoryRateLimitStore, RedisRestRateLimitStore
from ratewindow.factory import (
    create_rate_limit_store,
    get_rate_limit_store,
    reset_rate_limit_store,
    select_backend,
    set_rate_limit_store,
)
from ratewindow.testing import ManualClock

REDIS_REST = {
    "redis_rest_url": "https://redis.example.com",
    "redis_rest_token": "secret-redis-token",
}
KV_REST = {"kv_rest_url": "https://kv.example.com", "kv_rest_token": "k"}
NATIVE = {"redis_url": "redis://localhost:6379/0"}


class TestSelectBackend:
    """Selection priority: Redis REST, KV REST, native Redis, memory."""

    @pytest.mark.parametrize(
        ("settings", "expected"),
        [
            ({}, "memory"),
            ({**REDIS_REST}, "redis_rest"),
            ({**KV_REST}, "kv_rest"),
            ({**NATIVE}, "redis"),
            ({**REDIS_REST, **KV_REST, **NATIVE}, "redis_rest"),
            ({**KV_REST, **NATIVE}, "kv_rest"),
            ({"redis_rest_url": "https://redis.example.com", **KV_REST}, "kv_rest"),
            ({"redis_rest_token": "r"}, "memory"),
            ({"kv_rest_url": "https://kv.example.com"}, "memory"),
        ],
    )
    def test_priority(self, settings: dict[str, str], expected: str) -> None:
        assert select_backend(StoreSettings(**settings)) == expected


class TestCreateStore:
    """Test create_rate_limit_store()."""

    def test_memory_when_unconfigured(self) -> None:
        assert isinstance(create_rate_limit_store(StoreSettings()), MemoryRateLimitStore)

    def test_redis_rest(self) -> None:
        store = create_rate_limit_store(StoreSettings(**REDIS_REST, request_timeout=2.0))

        assert isinstance(store, RedisRestRateLimitStore)
        assert store.base_url == "https://redis.example.com"

    def test_kv_rest(self) -> None:
        store = create_rate_limit_store(StoreSettings(**KV_REST))

        assert isinstance(store, KvRestRateLimitStore)

    @pytest.mark.skipif(not REDIS_AVAILABLE, reason="Redis library not installed")
    def test_native_redis(self) -> None:
        from ratewindow.engines.redis import RedisRateLimitStore

        store = create_rate_limit_store(StoreSettings(**NATIVE))

        assert isinstance(store, RedisRateLimitStore)

    def test_reads_environment_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KV_REST_API_URL", "https://kv.example.com")
        monkeypatch.setenv("KV_REST_API_TOKEN", "k")

        assert isinstance(create_rate_limit_store(), KvRestRateLimitStore)

    async def test_clock_is_passed_to_store(self) -> None:
        clock = ManualClock(start_ms=1_000)
        store = create_rate_limit_store(StoreSettings(), clock=clock)

        entry = await store.increment("k", 500)

        assert entry.reset_time == 1_500

    def test_choice_is_logged_without_token(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="ratewindow.factory"):
            create_rate_limit_store(StoreSettings(**REDIS_REST))

        messages = " ".join(r.getMessage() for r in caplog.records)
        assert "Redis REST" in messages
        assert "https://redis.example.com" in messages
        assert REDIS_REST["redis_rest_token"] not in messages


class TestDefaultStore:
    """Test the memoized process-wide store."""

    def test_memoized(self) -> None:
        assert get_rate_limit_store() is get_rate_limit_store()

    def test_reset_rebuilds_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_rate_limit_store()
        assert isinstance(first, MemoryRateLimitStore)

        monkeypatch.setenv("UPSTASH_REDIS_REST_URL", "https://redis.example.com")
        monkeypatch.setenv("UPSTASH_REDIS_REST_TOKEN", "r")
        assert get_rate_limit_store() is first

        reset_rate_limit_store()

        assert isinstance(get_rate_limit_store(), RedisRestRateLimitStore)

    def test_set_overrides_default(self) -> None:
        store = MemoryRateLimitStore(warn=False)

        set_rate_limit_store(store)

        assert get_rate_limit_store() is store

    @pytest.mark.parametrize("timeout", ["5s", "0", "-1"])
    def test_invalid_settings_fall_back_to_memory(
        self,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
        timeout: str,
    ) -> None:
        monkeypatch.setenv("UPSTASH_REDIS_REST_URL", "https://redis.example.com")
        monkeypatch.setenv("UPSTASH_REDIS_REST_TOKEN", "r")
        monkeypatch.setenv("RATE_LIMIT_TIMEOUT", timeout)

        with caplog.at_level(logging.ERROR, logger="ratewindow.factory"):
            store = get_rate_limit_store()

        assert isinstance(store, MemoryRateLimitStore)
        assert get_rate_limit_store() is store
        assert any("falling back" in r.getMessage() for r in caplog.records)

    def test_unbuildable_backend_falls_back_to_memory(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken(*args: object, **kwargs: object) -> None:
            raise ImportError("No module named 'redis'")

        monkeypatch.setattr("ratewindow.factory.create_rate_limit_store", broken)

        assert isinstance(get_rate_limit_store(), MemoryRateLimitStore)
