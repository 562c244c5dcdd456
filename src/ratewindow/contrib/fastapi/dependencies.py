"""FastAPI dependency injection for rate limiting.

This module provides a dependency class that applies a preset to an
endpoint through FastAPI's Depends().
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

from ratewindow.contrib.fastapi.handlers import RateLimitExceededError
from ratewindow.contrib.fastapi.headers import set_rate_limit_headers
from ratewindow.limiter import DistributedRateLimiter, check_distributed_rate_limit
from ratewindow.schemas import RateLimitResult

# Lazy import for FastAPI - allows graceful handling if not installed
try:
    from starlette.requests import Request
    from starlette.responses import Response

    FASTAPI_AVAILABLE = True
except ImportError:
    Request = None  # type: ignore[misc, assignment]
    Response = None  # type: ignore[misc, assignment]
    FASTAPI_AVAILABLE = False


logger = logging.getLogger(__name__)

# Type alias for identifier extractor functions
IdentifierExtractor = Callable[["Request"], str | Awaitable[str]]

UNKNOWN_CLIENT = "unknown"


def _default_identifier_extractor(request: Request) -> str:
    """Use the ASGI peer address as the identifier.

    Behind a proxy every client shares the proxy's address; supply an
    identifier_extractor that reads the trusted forwarding header instead.
    """
    if request.client is None or not request.client.host:
        return UNKNOWN_CLIENT
    return request.client.host


class RateLimitDependency:
    """FastAPI dependency for rate limiting endpoints.

    The dependency will:
    1. Extract a client identifier (default: peer address)
    2. Count the request against the preset
    3. Set rate limit headers on the response
    4. Raise RateLimitExceededError if the request is denied

    Store failures never reach the endpoint: the check fails open.

    Attributes:
        preset: Preset name (e.g., "contact").
        identifier_extractor: Callable to extract client identifier from request.
        limiter: Limiter to use (default: the process-wide store).

    Example:
        >>> app = FastAPI()
        >>> app.add_exception_handler(RateLimitExceededError, rate_limit_exception_handler)
        >>>
        >>> @app.post("/api/contact")
        >>> async def contact(
        ...     _: None = Depends(RateLimitDependency("contact")),
        ... ):
        ...     return {"status": "sent"}
    """

    def __init__(
        self,
        preset: str,
        identifier_extractor: IdentifierExtractor | None = None,
        limiter: DistributedRateLimiter | None = None,
    ) -> None:
        if not FASTAPI_AVAILABLE:
            raise RuntimeError(
                "FastAPI/Starlette not installed. Install with: pip install rate-window[fastapi]"
            )

        self.preset = preset
        self.identifier_extractor = identifier_extractor
        self.limiter = limiter

    async def __call__(
        self,
        request: Request,
        response: Response,
    ) -> RateLimitResult:
        """Execute the rate limit check.

        Returns:
            The allowed result, so endpoints can read it if they need to.

        Raises:
            RateLimitExceededError: If the request is denied.
        """
        identifier = await self._get_identifier(request)

        if self.limiter is None:
            result = await check_distributed_rate_limit(identifier, self.preset)
        else:
            result = await self.limiter.check(identifier, self.preset)

        set_rate_limit_headers(response, result)

        if not result.allowed:
            raise RateLimitExceededError.from_result(identifier, self.preset, result)

        return result

    async def _get_identifier(self, request: Request) -> str:
        if self.identifier_extractor is None:
            return _default_identifier_extractor(request)

        # Extractor may be sync or async
        result = self.identifier_extractor(request)
        if inspect.isawaitable(result):
            return await result
        return result


def rate_limit(
    preset: str,
    identifier_extractor: IdentifierExtractor | None = None,
    limiter: DistributedRateLimiter | None = None,
) -> RateLimitDependency:
    """Factory function for creating rate limit dependencies.

    Example:
        >>> @app.post("/api/subscribe")
        >>> async def subscribe(
        ...     _: None = Depends(rate_limit("subscribe")),
        ... ):
        ...     return {"status": "ok"}
    """
    return RateLimitDependency(
        preset=preset,
        identifier_extractor=identifier_extractor,
        limiter=limiter,
    )


__all__ = [
    "RateLimitDependency",
    "IdentifierExtractor",
    "rate_limit",
]
