"""Global test configuration and fixtures for rate-window.

This module provides common fixtures and pytest configuration used across
all test modules. It isolates tests from the process environment and from
the process-wide default store, and handles availability checks for the
optional Redis backend.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator

import pytest

from ratewindow.domain.value_objects.identifier import reset_pepper_warning
from ratewindow.testing import ManualClock, reset_default_store

# =============================================================================
# ENVIRONMENT DETECTION
# =============================================================================


def is_redis_available() -> bool:
    """Check if Redis library is installed."""
    try:
        import redis.asyncio  # noqa: F401

        return True
    except ImportError:
        return False


REDIS_AVAILABLE = is_redis_available()

STORE_ENV_VARS = (
    "UPSTASH_REDIS_REST_URL",
    "UPSTASH_REDIS_REST_TOKEN",
    "KV_REST_API_URL",
    "KV_REST_API_TOKEN",
    "RATE_LIMIT_REDIS_URL",
    "RATE_LIMIT_TIMEOUT",
    "RATE_LIMIT_PEPPER",
    "RATE_LIMIT_PEPPER_PREVIOUS",
    "ENVIRONMENT",
)


# =============================================================================
# ISOLATION
# =============================================================================


@pytest.fixture(autouse=True)
async def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[None]:
    """Clear store configuration and drop the default store around each test."""
    for name in STORE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_pepper_warning()
    await reset_default_store()
    yield
    await reset_default_store()


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock shared by a store and its limiter."""
    return ManualClock()


@pytest.fixture
def redis_url() -> str:
    """Redis URL for integration tests.

    Reads from REDIS_URL environment variable, with fallback to localhost.
    """
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


# =============================================================================
# SKIP HELPERS
# =============================================================================


def skip_if_no_redis():
    """Skip test if Redis library is not available."""
    if not REDIS_AVAILABLE:
        pytest.skip("Redis library not installed")


def skip_if_no_redis_server():
    """Skip test unless REDIS_URL points at a server to test against."""
    skip_if_no_redis()
    if not os.environ.get("REDIS_URL"):
        pytest.skip("REDIS_URL not set")
