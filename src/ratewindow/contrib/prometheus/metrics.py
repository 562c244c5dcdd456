"""Prometheus metrics definitions for rate-window.

Metrics are lazily initialized so that importing this module never fails
when prometheus-client is not installed; recording is a no-op until
enable_metrics() has run.

Metrics:
    ratewindow_checks_total: Counter of rate limit decisions by outcome
        (allowed, denied, fail_open)
    ratewindow_store_errors_total: Counter of store failures by operation
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from prometheus_client import Counter

logger = logging.getLogger(__name__)

# Try to import prometheus_client classes at module level
try:
    from prometheus_client import Counter as _Counter

    _PROMETHEUS_CLASSES: dict[str, Any] | None = {"Counter": _Counter}
except ImportError:
    _PROMETHEUS_CLASSES = None


NAMESPACE = "ratewindow"


class _MetricsState:
    """Encapsulates metrics state to avoid global variables."""

    def __init__(self) -> None:
        self.initialized: bool = False
        self.checks_total: Counter | None = None
        self.store_errors_total: Counter | None = None


_state = _MetricsState()


def is_enabled() -> bool:
    """Check if Prometheus metrics are enabled."""
    return _state.initialized


def _init_metrics() -> None:
    """Initialize Prometheus metrics (idempotent)."""
    if _state.initialized:
        return

    if _PROMETHEUS_CLASSES is None:
        logger.debug("prometheus-client not installed, metrics disabled")
        return

    counter_cls = _PROMETHEUS_CLASSES["Counter"]

    _state.checks_total = counter_cls(
        f"{NAMESPACE}_checks_total",
        "Total number of rate limit decisions",
        ["preset", "backend", "outcome"],
    )

    _state.store_errors_total = counter_cls(
        f"{NAMESPACE}_store_errors_total",
        "Total number of rate limit store failures",
        ["backend", "operation"],
    )

    _state.initialized = True
    logger.info("Prometheus metrics initialized for rate-window")


def record_check(preset: str, backend: str, outcome: str) -> None:
    """Record a rate limit decision.

    Args:
        preset: Preset name (e.g., "contact")
        backend: Store backend (e.g., "redis_rest", "memory")
        outcome: "allowed", "denied" or "fail_open"
    """
    if not _state.initialized:
        return
    if _state.checks_total is not None:
        _state.checks_total.labels(preset=preset, backend=backend, outcome=outcome).inc()


def record_store_error(backend: str, operation: str) -> None:
    """Record a store failure absorbed by the coordinator.

    Args:
        backend: Store backend
        operation: "increment" or "get"
    """
    if not _state.initialized:
        return
    if _state.store_errors_total is not None:
        _state.store_errors_total.labels(backend=backend, operation=operation).inc()
