"""Redis-over-REST rate limit store (Upstash-compatible).

Commands are POSTed to the service root as JSON arrays, e.g.
``["GET", key]`` or ``["SET", key, value, "PX", ttl_ms]``, and replies come
back as ``{"result": ...}``.

The increment is the two round-trip read-modify-write from
RateLimitStore: under concurrent access from several instances an update
can be lost and the counter undercounts. Use RedisRateLimitStore when the
service also exposes the native protocol and exact counting matters.
"""

from __future__ import annotations

import logging

from ratewindow.engines.rest import RestRateLimitStore
from ratewindow.schemas import RateLimitEntry

logger = logging.getLogger(__name__)


class RedisRestRateLimitStore(RestRateLimitStore):
    """Store speaking Redis commands over an authenticated REST endpoint.

    Example:
        >>> store = RedisRestRateLimitStore(
        ...     url="https://eu1-example.upstash.io",
        ...     token=os.environ["UPSTASH_REDIS_REST_TOKEN"],
        ... )
        >>> entry = await store.increment("ratelimit:contact:203.0.113.7", 60_000)
    """

    backend_name = "redis_rest"

    async def _command(self, operation: str, *args: str | int) -> object:
        return await self._request("POST", "", operation, json_body=list(args))

    async def get(self, key: str) -> RateLimitEntry | None:
        """Fetch the entry with ``GET``; expired or unreadable values are absent."""
        raw = await self._command("get", "GET", key)
        return self._decode_entry(key, raw)

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        """Write the entry with ``SET ... PX ttl_ms``."""
        await self._command("set", "SET", key, entry.to_json(), "PX", self._ttl_ms(ttl_ms))
        logger.debug("Stored %s=%d (ttl=%dms)", key, entry.count, ttl_ms)
