"""HTTP header helpers for rate limit results."""

from ratewindow.schemas import RateLimitResult


def create_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build the rate limit response headers for ``result``.

    X-RateLimit-Remaining and X-RateLimit-Reset (epoch milliseconds) are
    always present; Retry-After (seconds) only when the result carries one.

    Example:
        >>> create_rate_limit_headers(RateLimitResult(True, 4, 1700000060000))
        {'X-RateLimit-Remaining': '4', 'X-RateLimit-Reset': '1700000060000'}
    """
    headers = {
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_time),
    }
    if result.retry_after is not None:
        headers["Retry-After"] = str(result.retry_after)
    return headers


__all__ = ["create_rate_limit_headers"]
