"""Prometheus metrics integration for rate-window.

Requires the `prometheus-client` package to be installed.

Installation:
    pip install 'rate-window[prometheus]'

Usage:
    from ratewindow.contrib.prometheus import enable_metrics

    # Enable metrics collection (call once at startup)
    enable_metrics()

    # Decisions and store failures are then recorded automatically
    # in the default Prometheus registry
"""

from ratewindow.contrib.prometheus.metrics import _init_metrics, is_enabled

# Check if prometheus-client is available
try:
    import prometheus_client  # noqa: F401

    PROMETHEUS_AVAILABLE = True
except ImportError:
    PROMETHEUS_AVAILABLE = False


def enable_metrics() -> bool:
    """Enable Prometheus metrics collection.

    Returns:
        True if metrics were enabled, False if prometheus-client not installed.
    """
    if not PROMETHEUS_AVAILABLE:
        return False
    _init_metrics()
    return True


__all__ = ["enable_metrics", "is_enabled", "PROMETHEUS_AVAILABLE"]
