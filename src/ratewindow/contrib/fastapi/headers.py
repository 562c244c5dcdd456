"""Rate limit header utilities for FastAPI/Starlette responses."""

from __future__ import annotations

from ratewindow.headers import create_rate_limit_headers
from ratewindow.schemas import RateLimitResult

# Lazy import for Starlette - allows graceful handling if not installed
try:
    from starlette.responses import Response

    FASTAPI_AVAILABLE = True
except ImportError:
    Response = None  # type: ignore[misc, assignment]
    FASTAPI_AVAILABLE = False


def set_rate_limit_headers(
    response: "Response",
    result: RateLimitResult,
) -> None:
    """Set rate limit headers on an HTTP response.

    Sets X-RateLimit-Remaining and X-RateLimit-Reset, plus Retry-After
    when the request was denied.

    Args:
        response: The Starlette/FastAPI Response object to modify.
        result: The RateLimitResult from a check.

    Example:
        >>> result = await limiter.check(client_ip, "contact")
        >>> set_rate_limit_headers(response, result)
        >>> response.headers["X-RateLimit-Remaining"]
        '4'
    """
    if not FASTAPI_AVAILABLE:
        raise RuntimeError("FastAPI/Starlette not installed. Install with: pip install rate-window[fastapi]")

    for name, value in create_rate_limit_headers(result).items():
        response.headers[name] = value


__all__ = [
    "set_rate_limit_headers",
]
