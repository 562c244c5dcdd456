"""Redis-based rate limit store with an atomic fixed-window increment.

The REST stores emulate increment with two round-trips and can lose updates
under concurrency. This store runs the whole read-modify-write as a Lua
script on the Redis server, so concurrent increments from any number of
instances are counted exactly.

Entries use the same JSON wire format as the REST stores, so a deployment
can point both at the same database.

Requirements:
    pip install 'rate-window[redis]'  or  pip install redis
"""

import logging

from redis import asyncio as redis_asyncio
from redis.exceptions import RedisError

from ratewindow.core import Clock, RateLimitStore
from ratewindow.exceptions import StoreError
from ratewindow.schemas import RateLimitEntry

logger = logging.getLogger(__name__)

# =============================================================================
# LUA SCRIPT
# =============================================================================

# Fixed-window increment executed atomically on the server.
# Returns: [count, reset_time_ms]
# Args: now (epoch ms), window (ms)
#
# A live entry keeps its reset time and is re-written with the remaining TTL;
# a missing, unreadable or expired entry starts a new window.
INCREMENT_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])

local raw = redis.call('GET', key)
if raw then
    local ok, entry = pcall(cjson.decode, raw)
    if ok and type(entry) == 'table' and tonumber(entry.resetTime)
        and tonumber(entry.count) and tonumber(entry.resetTime) > now then
        local reset_time = tonumber(entry.resetTime)
        local count = tonumber(entry.count) + 1
        redis.call('SET', key,
            '{"count":' .. string.format('%d', count) ..
            ',"resetTime":' .. string.format('%d', reset_time) .. '}',
            'PX', reset_time - now)
        return {count, reset_time}
    end
end

local reset_time = now + window
redis.call('SET', key,
    '{"count":1,"resetTime":' .. string.format('%d', reset_time) .. '}',
    'PX', window)
return {1, reset_time}
"""


class RedisRateLimitStore(RateLimitStore):
    """Store using the native Redis protocol.

    Example:
        >>> store = RedisRateLimitStore(url="redis://localhost:6379/0")
        >>> entry = await store.increment("ratelimit:contact:203.0.113.7", 60_000)
        >>> await store.close()
    """

    backend_name = "redis"

    def __init__(
        self,
        url: str,
        *,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        client: "redis_asyncio.Redis | None" = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize Redis store.

        Args:
            url: Redis connection URL (redis://[:password@]host[:port][/db])
            socket_timeout: Socket timeout in seconds
            socket_connect_timeout: Connection timeout in seconds
            client: Optional pre-configured client (the store will not close it)
            clock: Callable returning epoch milliseconds (default: wall clock)

        Raises:
            ValueError: If url is empty
        """
        super().__init__(clock)

        if not url or not url.strip():
            raise ValueError("url cannot be empty")

        self._url = url.strip()
        self._socket_timeout = socket_timeout
        self._socket_connect_timeout = socket_connect_timeout
        self._client = client
        self._owns_client = client is None
        self._increment_script = None

    def _get_client(self) -> "redis_asyncio.Redis":
        if self._client is None:
            self._client = redis_asyncio.from_url(
                self._url,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_connect_timeout,
                decode_responses=True,
            )
            logger.info("Created Redis client for rate limiting")
        if self._increment_script is None:
            self._increment_script = self._client.register_script(INCREMENT_SCRIPT)
        return self._client

    def _store_error(self, operation: str, error: Exception) -> StoreError:
        logger.error("Redis rate limit store %s failed: %s", operation, error)
        return StoreError(
            f"redis {operation} failed: {error}",
            backend=self.backend_name,
            operation=operation,
        )

    async def get(self, key: str) -> RateLimitEntry | None:
        """Fetch the entry; expired or unreadable values are absent."""
        client = self._get_client()
        try:
            raw = await client.get(key)
        except (RedisError, OSError) as e:
            raise self._store_error("get", e) from e

        if raw is None:
            return None

        try:
            entry = RateLimitEntry.from_json(raw)
        except ValueError:
            logger.warning("Ignoring unreadable rate limit entry in redis for key '%s'", key)
            return None

        return None if entry.is_expired(self._clock()) else entry

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        """Write the entry with a millisecond expiry."""
        client = self._get_client()
        try:
            await client.set(key, entry.to_json(), px=max(1, int(ttl_ms)))
        except (RedisError, OSError) as e:
            raise self._store_error("set", e) from e

    async def increment(self, key: str, window_ms: int) -> RateLimitEntry:
        """Count one action atomically on the server."""
        self._get_client()
        try:
            result = await self._increment_script(keys=[key], args=[self._clock(), window_ms])
        except (RedisError, OSError) as e:
            raise self._store_error("increment", e) from e

        try:
            return RateLimitEntry(count=int(result[0]), reset_time=int(result[1]))
        except (TypeError, ValueError, IndexError) as e:
            raise self._store_error("increment", e) from e

    async def close(self) -> None:
        """Close the Redis client if this store created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._increment_script = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(backend={self.backend_name!r})"
