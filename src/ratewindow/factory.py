"""Backend selection for the rate limit store.

Selection is a pure function of StoreSettings, in priority order:
Redis REST (URL + token), KV REST (URL + token), native Redis URL, and
finally the in-memory store.

Applications that own their composition root should build the store once
with create_rate_limit_store() and hand it to DistributedRateLimiter. The
memoized default (get_rate_limit_store) backs the module-level functions in
ratewindow.limiter for callers that do not.
"""

from __future__ import annotations

import logging
from typing import Literal

from ratewindow.config import StoreSettings
from ratewindow.core import Clock, RateLimitStore
from ratewindow.engines.kv_rest import KvRestRateLimitStore
from ratewindow.engines.memory import MemoryRateLimitStore
from ratewindow.engines.redis_rest import RedisRestRateLimitStore

logger = logging.getLogger(__name__)

BackendName = Literal["redis_rest", "kv_rest", "redis", "memory"]


def select_backend(settings: StoreSettings) -> BackendName:
    """Choose the backend for the given settings.

    Args:
        settings: Store settings

    Returns:
        Backend name, the first configured one in priority order
    """
    if settings.has_redis_rest:
        return "redis_rest"
    if settings.has_kv_rest:
        return "kv_rest"
    if settings.redis_url:
        return "redis"
    return "memory"


def create_rate_limit_store(
    settings: StoreSettings | None = None,
    *,
    clock: Clock | None = None,
) -> RateLimitStore:
    """Build the store selected by ``settings``.

    Args:
        settings: Store settings (default: read from the environment)
        clock: Optional clock passed to the store (for testing)

    Returns:
        A new RateLimitStore instance

    Raises:
        ImportError: If the native Redis backend is selected but redis is
            not installed
    """
    if settings is None:
        settings = StoreSettings.from_env()

    backend = select_backend(settings)

    if backend == "redis_rest":
        logger.info("Using Redis REST rate limit store at %s", settings.redis_rest_url)
        return RedisRestRateLimitStore(
            settings.redis_rest_url,
            settings.redis_rest_token,
            timeout=settings.request_timeout,
            clock=clock,
        )

    if backend == "kv_rest":
        logger.info("Using KV REST rate limit store at %s", settings.kv_rest_url)
        return KvRestRateLimitStore(
            settings.kv_rest_url,
            settings.kv_rest_token,
            timeout=settings.request_timeout,
            clock=clock,
        )

    if backend == "redis":
        # Imported here so the redis extra stays optional
        from ratewindow.engines.redis import RedisRateLimitStore

        logger.info("Using native Redis rate limit store")
        return RedisRateLimitStore(
            settings.redis_url,
            socket_timeout=settings.request_timeout,
            socket_connect_timeout=settings.request_timeout,
            clock=clock,
        )

    return MemoryRateLimitStore(clock=clock)


class _StoreHolder:
    """Holds the process-wide default store."""

    def __init__(self) -> None:
        self.store: RateLimitStore | None = None


_holder = _StoreHolder()


def get_rate_limit_store() -> RateLimitStore:
    """Return the process-wide store, building it from the environment on first use.

    A store that cannot be built (invalid settings, missing redis extra)
    is replaced by the in-memory store so the module-level checks keep
    answering.
    """
    if _holder.store is None:
        try:
            _holder.store = create_rate_limit_store()
        except Exception as e:
            logger.error(
                "Failed to build the configured rate limit store, "
                "falling back to in-memory store: %s",
                e,
            )
            _holder.store = MemoryRateLimitStore()
    return _holder.store


def set_rate_limit_store(store: RateLimitStore) -> None:
    """Install ``store`` as the process-wide default.

    Lets a composition root choose the backend explicitly while still
    serving the module-level functions.
    """
    _holder.store = store


def reset_rate_limit_store() -> None:
    """Drop the process-wide store so the next use rebuilds it (for testing)."""
    _holder.store = None


__all__ = [
    "BackendName",
    "select_backend",
    "create_rate_limit_store",
    "get_rate_limit_store",
    "set_rate_limit_store",
    "reset_rate_limit_store",
]
