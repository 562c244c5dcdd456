"""Shared HTTP plumbing for REST-backed rate limit stores.

Both REST dialects authenticate with a bearer token, exchange JSON and wrap
their replies in a ``{"result": ...}`` envelope. This module owns the
httpx client, timeouts and error mapping so the dialect modules only
describe how a command is shaped.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from ratewindow.core import Clock, RateLimitStore
from ratewindow.exceptions import StoreError
from ratewindow.schemas import RateLimitEntry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class RestRateLimitStore(RateLimitStore):
    """Base class for stores that talk to a key-value service over HTTPS.

    Subclasses implement ``get`` and ``set`` on top of ``_request``; the
    increment is the read-modify-write inherited from RateLimitStore.

    Attributes:
        _base_url: Service URL without trailing slash
        _token: Bearer token sent with every request
        _timeout: Per-request timeout in seconds
        _client: Lazily created httpx.AsyncClient (or one passed in)
    """

    def __init__(
        self,
        url: str,
        token: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the REST store.

        Args:
            url: Base URL of the service
            token: Bearer token
            timeout: Per-request timeout in seconds; a timeout is a store error
            client: Optional pre-configured client (the store will not close it)
            clock: Callable returning epoch milliseconds (default: wall clock)

        Raises:
            ValueError: If url or token is empty, or timeout <= 0
        """
        super().__init__(clock)

        if not url or not url.strip():
            raise ValueError("url cannot be empty")
        if not token or not token.strip():
            raise ValueError("token cannot be empty")
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")

        self._base_url = url.strip().rstrip("/")
        self._token = token.strip()
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        """Service URL without trailing slash."""
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json_body: Any = None,
        *,
        expect_result: bool = True,
    ) -> Any:
        """Send one request and return the ``result`` field of the reply.

        Args:
            method: HTTP method
            path: Path appended to the base URL
            operation: Store operation name, for logs and errors
            json_body: Body to send as JSON
            expect_result: Require a JSON ``{"result": ...}`` envelope.
                Writes only need a 2xx status without an ``error`` field.

        Raises:
            StoreError: On transport failure, timeout, non-2xx status,
                a body that is not JSON, or an ``error`` reply
        """
        client = self._get_client()
        url = f"{self._base_url}{path}"

        try:
            response = await client.request(
                method,
                url,
                json=json_body,
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.HTTPError as e:
            logger.error(
                "Rate limit store %s %s failed: %s",
                self.backend_name,
                operation,
                e.__class__.__name__,
            )
            raise StoreError(
                f"{self.backend_name} {operation} failed: {e}",
                backend=self.backend_name,
                operation=operation,
            ) from e

        if not response.is_success:
            logger.error(
                "Rate limit store %s %s returned HTTP %d",
                self.backend_name,
                operation,
                response.status_code,
            )
            raise StoreError(
                f"{self.backend_name} {operation} returned HTTP {response.status_code}",
                backend=self.backend_name,
                operation=operation,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            if not expect_result:
                return None
            logger.error(
                "Rate limit store %s %s returned a non-JSON body", self.backend_name, operation
            )
            raise StoreError(
                f"{self.backend_name} {operation} returned a non-JSON body",
                backend=self.backend_name,
                operation=operation,
                status_code=response.status_code,
            ) from e

        has_error = isinstance(data, dict) and "error" in data
        if not has_error:
            if isinstance(data, dict) and "result" in data:
                return data["result"]
            if not expect_result:
                return None

        logger.error(
            "Rate limit store %s %s returned an unexpected body: %r",
            self.backend_name,
            operation,
            data,
        )
        raise StoreError(
            f"{self.backend_name} {operation} returned an unexpected body",
            backend=self.backend_name,
            operation=operation,
            status_code=response.status_code,
        )

    def _decode_entry(self, key: str, raw: Any) -> RateLimitEntry | None:
        """Turn a stored value into a live entry, or None.

        A value that does not parse is logged and treated as absent; the
        next increment overwrites it.
        """
        if raw is None:
            return None

        try:
            entry = RateLimitEntry.from_json(raw)
        except (TypeError, ValueError):
            logger.warning(
                "Ignoring unreadable rate limit entry in %s for key '%s'",
                self.backend_name,
                key,
            )
            return None

        if entry.is_expired(self._clock()):
            return None
        return entry

    @staticmethod
    def _ttl_ms(ttl_ms: float) -> int:
        return max(1, math.ceil(ttl_ms))

    async def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(url={self._base_url!r})"
