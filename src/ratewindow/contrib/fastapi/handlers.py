"""Exception handlers for rate limiting in FastAPI applications.

This module converts rate limit denials into HTTP 429 Too Many Requests
responses carrying the rate limit headers.
"""

from __future__ import annotations

import logging
from typing import Any

from ratewindow.headers import create_rate_limit_headers
from ratewindow.schemas import RateLimitResult

# Lazy import for FastAPI - allows graceful handling if not installed
try:
    from starlette.requests import Request
    from starlette.responses import JSONResponse

    FASTAPI_AVAILABLE = True
except ImportError:
    Request = None  # type: ignore[misc, assignment]
    JSONResponse = None  # type: ignore[misc, assignment]
    FASTAPI_AVAILABLE = False


logger = logging.getLogger(__name__)


class RateLimitExceededError(Exception):
    """Exception raised when a request is denied by a rate limit.

    Converted to an HTTP 429 response by rate_limit_exception_handler.

    Attributes:
        identifier: Client identifier that hit the limit.
        preset: Name of the preset that was exceeded.
        remaining: Requests remaining (0 when denied).
        reset_time: Epoch milliseconds when the window ends.
        retry_after: Seconds until the client should retry.

    Example:
        >>> result = await limiter.check(client_ip, "contact")
        >>> if not result.allowed:
        ...     raise RateLimitExceededError.from_result(client_ip, "contact", result)
    """

    def __init__(
        self,
        identifier: str,
        preset: str,
        remaining: int,
        reset_time: int,
        retry_after: int,
    ) -> None:
        self.identifier = identifier
        self.preset = preset
        self.remaining = remaining
        self.reset_time = reset_time
        self.retry_after = retry_after

        super().__init__(
            f"Rate limit '{preset}' exceeded for {identifier} (retry in {retry_after}s)"
        )

    @classmethod
    def from_result(
        cls, identifier: str, preset: str, result: RateLimitResult
    ) -> "RateLimitExceededError":
        """Build the exception from a denied RateLimitResult."""
        return cls(
            identifier=identifier,
            preset=preset,
            remaining=result.remaining,
            reset_time=result.reset_time,
            retry_after=result.retry_after or 0,
        )

    def to_result(self) -> RateLimitResult:
        """Convert back to a RateLimitResult for header generation."""
        return RateLimitResult(
            allowed=False,
            remaining=self.remaining,
            reset_time=self.reset_time,
            retry_after=self.retry_after,
        )


def create_rate_limit_response(
    result: RateLimitResult,
    message: str | None = None,
    preset: str | None = None,
) -> "JSONResponse":
    """Create a 429 response from a denied RateLimitResult.

    Response format:
        {
            "detail": [
                {
                    "type": "rate_limit_exceeded",
                    "msg": "Rate limit exceeded. Retry in X seconds.",
                    "context": {"retry_after_seconds": X, "preset": "contact"}
                }
            ]
        }

    Args:
        result: The denied result.
        message: Optional custom error message.
        preset: Optional preset name for the response context.

    Returns:
        JSONResponse with status 429 and rate limit headers.
    """
    if not FASTAPI_AVAILABLE:
        raise RuntimeError("FastAPI/Starlette not installed. Install with: pip install rate-window[fastapi]")

    if message is None:
        message = f"Rate limit exceeded. Retry in {result.retry_after} seconds."

    context: dict[str, Any] = {"retry_after_seconds": result.retry_after}
    if preset:
        context["preset"] = preset

    return JSONResponse(
        status_code=429,
        content={
            "detail": [
                {
                    "type": "rate_limit_exceeded",
                    "msg": message,
                    "context": context,
                }
            ]
        },
        headers=create_rate_limit_headers(result),
    )


async def rate_limit_exception_handler(
    _request: "Request",
    exc: RateLimitExceededError,
) -> "JSONResponse":
    """FastAPI exception handler for rate limit errors.

    Example:
        >>> app = FastAPI()
        >>> app.add_exception_handler(
        ...     RateLimitExceededError,
        ...     rate_limit_exception_handler,
        ... )
    """
    logger.warning(
        "Rate limit exceeded: identifier=%s, preset=%s, retry_after=%ds",
        exc.identifier,
        exc.preset,
        exc.retry_after,
    )
    return create_rate_limit_response(exc.to_result(), preset=exc.preset)


__all__ = [
    "RateLimitExceededError",
    "rate_limit_exception_handler",
    "create_rate_limit_response",
]
