"""Store implementations for rate limiting.

This module contains concrete implementations of the RateLimitStore
interface.

Available stores:
- Memory: In-process dict for local/development use (no cross-instance state)
- Redis REST: Redis commands over an authenticated REST endpoint (Upstash)
- KV REST: Path-based GET/SET over REST (Vercel KV)
- Redis: Native Redis protocol with an atomic Lua increment (optional extra)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ratewindow.engines.kv_rest import KvRestRateLimitStore
from ratewindow.engines.memory import MemoryRateLimitStore
from ratewindow.engines.redis_rest import RedisRestRateLimitStore

if TYPE_CHECKING:
    from ratewindow.engines.redis import RedisRateLimitStore

__all__ = ["MemoryRateLimitStore", "RedisRestRateLimitStore", "KvRestRateLimitStore"]

# Optional native Redis store - lazy loaded to avoid ImportError
try:
    from ratewindow.engines.redis import RedisRateLimitStore

    __all__.append("RedisRateLimitStore")
except ImportError:
    pass
