"""Path-based REST key-value rate limit store (Vercel KV-compatible).

Reads are ``GET {base}/get/{key}`` replying ``{"result": <string or null>}``;
writes are ``POST {base}/set/{key}`` with a JSON body
``{"value": <entry json>, "ex": <ttl seconds>}``.

Same non-atomic increment as RedisRestRateLimitStore.
"""

from __future__ import annotations

import logging
import math
from urllib.parse import quote

from ratewindow.engines.rest import RestRateLimitStore
from ratewindow.schemas import RateLimitEntry

logger = logging.getLogger(__name__)


class KvRestRateLimitStore(RestRateLimitStore):
    """Store speaking a path-based GET/SET dialect over REST."""

    backend_name = "kv_rest"

    @staticmethod
    def _path(command: str, key: str) -> str:
        return f"/{command}/{quote(key, safe=':')}"

    async def get(self, key: str) -> RateLimitEntry | None:
        """Fetch the entry; expired or unreadable values are absent."""
        raw = await self._request("GET", self._path("get", key), "get")
        return self._decode_entry(key, raw)

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        """Write the entry with a whole-second expiry (rounded up)."""
        ttl_seconds = max(1, math.ceil(ttl_ms / 1000))
        await self._request(
            "POST",
            self._path("set", key),
            "set",
            json_body={"value": entry.to_json(), "ex": ttl_seconds},
            expect_result=False,
        )
        logger.debug("Stored %s=%d (ttl=%ds)", key, entry.count, ttl_seconds)
