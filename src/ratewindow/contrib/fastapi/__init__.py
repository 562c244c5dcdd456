"""FastAPI integration for rate-window.

Installation:
    The FastAPI integration requires FastAPI/Starlette to be installed.
    rate-window itself is framework-agnostic and doesn't require FastAPI.

    pip install 'rate-window[fastapi]'

Quick Start:
    >>> from fastapi import Depends, FastAPI
    >>> from ratewindow.contrib.fastapi import (
    ...     RateLimitDependency,
    ...     RateLimitExceededError,
    ...     rate_limit_exception_handler,
    ... )
    >>>
    >>> app = FastAPI()
    >>> app.add_exception_handler(
    ...     RateLimitExceededError,
    ...     rate_limit_exception_handler,
    ... )
    >>>
    >>> @app.post("/api/contact")
    >>> async def contact(
    ...     _: None = Depends(RateLimitDependency("contact")),
    ... ):
    ...     return {"status": "sent"}

Custom identifiers:
    Hash the identity before it reaches the store:

    >>> from ratewindow.domain.value_objects import hmac_key
    >>>
    >>> def api_key_identifier(request: Request) -> str:
    ...     return f"key:{hmac_key(request.headers['X-API-Key'])}"
    >>>
    >>> Depends(RateLimitDependency("analytics", identifier_extractor=api_key_identifier))
"""

from __future__ import annotations

# Check if FastAPI/Starlette is available
try:
    import starlette.requests  # noqa: F401

    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False

# Import components (they handle missing FastAPI gracefully)
from ratewindow.contrib.fastapi.dependencies import (
    IdentifierExtractor,
    RateLimitDependency,
    rate_limit,
)
from ratewindow.contrib.fastapi.handlers import (
    RateLimitExceededError,
    create_rate_limit_response,
    rate_limit_exception_handler,
)
from ratewindow.contrib.fastapi.headers import set_rate_limit_headers

__all__ = [
    # Availability flag
    "FASTAPI_AVAILABLE",
    # Dependencies
    "RateLimitDependency",
    "IdentifierExtractor",
    "rate_limit",
    # Handlers
    "RateLimitExceededError",
    "rate_limit_exception_handler",
    "create_rate_limit_response",
    # Headers
    "set_rate_limit_headers",
]
