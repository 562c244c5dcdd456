"""
State and result types for fixed-window rate limiting.

RateLimitEntry is the persisted unit of state for one (preset, identifier)
pair; RateLimitResult is the decision handed back to callers and is never
persisted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(slots=True)
class RateLimitEntry:
    """Counter state for the current window of one key.

    Attributes:
        count: Actions observed in the current window (>= 1)
        reset_time: Epoch milliseconds at which the window ends
    """

    count: int
    reset_time: int

    def is_expired(self, now_ms: int) -> bool:
        """Whether the window has ended at ``now_ms``.

        An expired entry must be treated as absent, never as a zero count.
        """
        return now_ms >= self.reset_time

    def to_json(self) -> str:
        """Serialize to the wire format shared by the network backends."""
        return json.dumps({"count": self.count, "resetTime": self.reset_time})

    @classmethod
    def from_json(cls, raw: str | bytes) -> "RateLimitEntry":
        """Parse the wire format.

        Raises:
            ValueError: If ``raw`` is not a JSON object with integer
                ``count`` and ``resetTime`` fields
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        try:
            count = int(data["count"])
            reset_time = int(data["resetTime"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid rate limit entry: {data!r}") from e
        return cls(count=count, reset_time=reset_time)


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        remaining: Requests left in the current window (>= 0).
        reset_time: Epoch milliseconds when the current window ends.
        retry_after: Seconds the client should wait, set only when the
            request was denied.

    Example:
        >>> result = await check_distributed_rate_limit("203.0.113.7", "contact")
        >>> if not result.allowed:
        ...     # Return 429 Too Many Requests
        ...     pass
    """

    allowed: bool
    remaining: int
    reset_time: int
    retry_after: int | None = None


__all__ = [
    "RateLimitEntry",
    "RateLimitResult",
]
