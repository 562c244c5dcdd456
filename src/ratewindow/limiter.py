"""
Fixed-window rate limit coordinator.

DistributedRateLimiter turns a preset and an identifier into a storage key,
counts the action in the store and derives the admission decision. Store
failures never reach the caller: they are logged and the request is allowed
(fail-open), trading abuse protection for availability during an outage.

The module-level functions keep the simple call style of a single
process-wide store:

    >>> result = await check_distributed_rate_limit("203.0.113.7", "contact")
    >>> if not result.allowed:
    ...     return 429, create_rate_limit_headers(result)
"""

import logging
import math
from collections.abc import Mapping

from ratewindow.contrib.prometheus.metrics import record_check, record_store_error
from ratewindow.core import Clock, RateLimiterMetrics, RateLimitStore, now_ms
from ratewindow.factory import get_rate_limit_store, reset_rate_limit_store
from ratewindow.headers import create_rate_limit_headers
from ratewindow.presets import RATE_LIMIT_PRESETS, Preset, get_preset
from ratewindow.schemas import RateLimitResult

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "ratelimit"


def _retry_after(reset_time: int, now: int) -> int:
    return max(0, math.ceil((reset_time - now) / 1000))


class DistributedRateLimiter:
    """Admission control over a RateLimitStore.

    Args:
        store: Backing store, usually built once by the composition root
            with create_rate_limit_store()
        presets: Preset registry (default: RATE_LIMIT_PRESETS)
        key_prefix: Namespace for storage keys
        clock: Epoch-millisecond clock (default: wall clock)

    Example:
        >>> store = create_rate_limit_store()
        >>> limiter = DistributedRateLimiter(store)
        >>> result = await limiter.check("203.0.113.7", "contact")
        >>> result.remaining
        4
    """

    def __init__(
        self,
        store: RateLimitStore,
        *,
        presets: Mapping[str, Preset] = RATE_LIMIT_PRESETS,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._presets = presets
        self._key_prefix = key_prefix
        self._clock: Clock = clock or now_ms
        self._metrics = RateLimiterMetrics()

    @property
    def store(self) -> RateLimitStore:
        """The backing store."""
        return self._store

    def key_for(self, preset: str, identifier: str) -> str:
        """Storage key for a (preset, identifier) pair."""
        return f"{self._key_prefix}:{preset}:{identifier}"

    async def check(self, identifier: str, preset: str) -> RateLimitResult:
        """Count one action and decide whether it may proceed.

        Args:
            identifier: Caller-distinguishing key (e.g. client IP)
            preset: Preset name

        Returns:
            The decision. Never raises for store failures.

        Raises:
            UnknownPresetError: If ``preset`` is not registered
        """
        config = get_preset(preset, self._presets)
        key = self.key_for(preset, identifier)

        try:
            entry = await self._store.increment(key, config.window_ms)
        except Exception as e:
            now = self._clock()
            logger.error(
                "Rate limit check failed for preset %s on %s store, allowing request: %s",
                preset,
                self._store.backend_name,
                e,
            )
            self._metrics.record_fail_open()
            record_store_error(self._store.backend_name, "increment")
            record_check(preset, self._store.backend_name, "fail_open")
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests - 1,
                reset_time=now + config.window_ms,
            )

        allowed = entry.count <= config.max_requests
        remaining = max(0, config.max_requests - entry.count)
        retry_after = None if allowed else _retry_after(entry.reset_time, self._clock())

        self._metrics.record_check(allowed)
        record_check(preset, self._store.backend_name, "allowed" if allowed else "denied")
        logger.debug(
            "Rate limit %s: count=%d/%d allowed=%s", key, entry.count, config.max_requests, allowed
        )

        return RateLimitResult(
            allowed=allowed,
            remaining=remaining,
            reset_time=entry.reset_time,
            retry_after=retry_after,
        )

    async def status(self, identifier: str, preset: str) -> RateLimitResult:
        """Inspect the current window without consuming quota.

        ``allowed`` reports whether the next request would pass.

        Raises:
            UnknownPresetError: If ``preset`` is not registered
        """
        config = get_preset(preset, self._presets)
        key = self.key_for(preset, identifier)

        try:
            entry = await self._store.get(key)
        except Exception as e:
            logger.error(
                "Rate limit status failed for preset %s on %s store: %s",
                preset,
                self._store.backend_name,
                e,
            )
            self._metrics.record_status(failed=True)
            record_store_error(self._store.backend_name, "get")
            entry = None
        else:
            self._metrics.record_status()

        now = self._clock()
        if entry is None or entry.is_expired(now):
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests,
                reset_time=now + config.window_ms,
            )

        allowed = entry.count < config.max_requests
        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, config.max_requests - entry.count),
            reset_time=entry.reset_time,
            retry_after=None if allowed else _retry_after(entry.reset_time, now),
        )

    def cleanup(self) -> int:
        """Reclaim expired entries held by the store.

        Returns:
            Number of entries removed (0 for network stores)
        """
        removed = self._store.cleanup()
        if removed:
            logger.debug("Removed %d expired rate limit entries", removed)
        return removed

    def get_metrics(self) -> RateLimiterMetrics:
        """Return the coordinator's counters."""
        return self._metrics

    def __repr__(self) -> str:
        return f"DistributedRateLimiter(store={self._store!r}, key_prefix={self._key_prefix!r})"


class _LimiterHolder:
    """Caches the limiter bound to the process-wide store."""

    def __init__(self) -> None:
        self.limiter: DistributedRateLimiter | None = None


_holder = _LimiterHolder()


def _default_limiter() -> DistributedRateLimiter:
    store = get_rate_limit_store()
    # Rebuild when the default store was reset or replaced
    if _holder.limiter is None or _holder.limiter.store is not store:
        _holder.limiter = DistributedRateLimiter(store)
    return _holder.limiter


async def check_distributed_rate_limit(identifier: str, preset: str) -> RateLimitResult:
    """Count one action against the process-wide store.

    See DistributedRateLimiter.check.
    """
    return await _default_limiter().check(identifier, preset)


async def get_rate_limit_status(identifier: str, preset: str) -> RateLimitResult:
    """Inspect a counter in the process-wide store without consuming quota."""
    return await _default_limiter().status(identifier, preset)


def cleanup_rate_limit_store() -> int:
    """Reclaim expired entries in the process-wide store.

    Meant to run on a periodic tick; a no-op for network stores.
    """
    return _default_limiter().cleanup()


__all__ = [
    "DEFAULT_KEY_PREFIX",
    "DistributedRateLimiter",
    "check_distributed_rate_limit",
    "get_rate_limit_status",
    "cleanup_rate_limit_store",
    "reset_rate_limit_store",
    "create_rate_limit_headers",
]
