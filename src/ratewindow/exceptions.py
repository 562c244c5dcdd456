"""Rate limiter specific exceptions."""


class RateLimitError(Exception):
    """Base exception for rate limiter errors."""


class StoreError(RateLimitError):
    """Exception raised when a backing store cannot complete an operation.

    Covers transport failures (network unreachable, timeouts), non-2xx HTTP
    replies and malformed response bodies. The coordinator converts these
    into a permissive result instead of letting them reach callers.
    """

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message
            backend: Name of the store backend (e.g., "redis_rest")
            operation: Store operation that failed (e.g., "get", "set")
            status_code: HTTP status code, when the failure was an HTTP reply
        """
        self.backend = backend
        self.operation = operation
        self.status_code = status_code
        super().__init__(message)


class UnknownPresetError(RateLimitError):
    """Exception raised when a preset name is not in the registry."""

    def __init__(self, name: str) -> None:
        """Initialize the exception.

        Args:
            name: The preset name that was requested
        """
        self.name = name
        super().__init__(
            f"Rate limit preset '{name}' is not defined. "
            f"Add it to RATE_LIMIT_PRESETS or pass a presets mapping to the limiter."
        )


class ConfigValidationError(RateLimitError):
    """Exception raised when configuration validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        expected: str | None = None,
        received: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message
            field: Field name that failed validation
            expected: Expected value or type
            received: Received value or type
        """
        self.field = field
        self.expected = expected
        self.received = received

        full_message = message
        if field and expected and received:
            full_message = f"{message} (field='{field}', expected={expected}, received={received})"

        super().__init__(full_message)
