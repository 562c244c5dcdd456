"""rate-window: Fixed-window distributed rate limiting.

This package counts actions per (preset, identifier) in fixed time windows
and decides whether each action may proceed. Counters live in a shared
store so that every instance of a service sees the same limits.

Features:
- Named presets (contact, inquiry, subscribe, whatsapp, analytics)
- Interchangeable stores: Redis REST, KV REST, native Redis, in-memory
- Backend selection from environment variables or a TOML file
- Fail-open: store outages never block legitimate requests
- Response header helpers and an optional FastAPI integration
- Integrated metrics for observability (optional Prometheus export)

Basic example (process-wide store chosen from the environment):
    >>> from ratewindow import check_distributed_rate_limit, create_rate_limit_headers
    >>>
    >>> result = await check_distributed_rate_limit(client_ip, "contact")
    >>> headers = create_rate_limit_headers(result)
    >>> if not result.allowed:
    ...     return JSONResponse({"error": "Too many requests"}, 429, headers=headers)

Explicit composition (recommended for services):
    >>> from ratewindow import DistributedRateLimiter, create_rate_limit_store
    >>>
    >>> store = create_rate_limit_store()
    >>> limiter = DistributedRateLimiter(store)
    >>> result = await limiter.check(client_ip, "inquiry")
    >>> await store.close()  # on shutdown
"""

from ratewindow.config import StoreSettings, load_config
from ratewindow.core import Clock, RateLimiterMetrics, RateLimitStore, now_ms
from ratewindow.domain.value_objects.identifier import hmac_key, hmac_key_with_rotation
from ratewindow.engines import (
    KvRestRateLimitStore,
    MemoryRateLimitStore,
    RedisRestRateLimitStore,
)
from ratewindow.exceptions import (
    ConfigValidationError,
    RateLimitError,
    StoreError,
    UnknownPresetError,
)
from ratewindow.factory import (
    create_rate_limit_store,
    get_rate_limit_store,
    reset_rate_limit_store,
    select_backend,
    set_rate_limit_store,
)
from ratewindow.headers import create_rate_limit_headers
from ratewindow.limiter import (
    DistributedRateLimiter,
    check_distributed_rate_limit,
    cleanup_rate_limit_store,
    get_rate_limit_status,
)
from ratewindow.presets import RATE_LIMIT_PRESETS, Preset, PresetName, get_preset
from ratewindow.schemas import RateLimitEntry, RateLimitResult

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Coordinator
    "DistributedRateLimiter",
    "check_distributed_rate_limit",
    "get_rate_limit_status",
    "cleanup_rate_limit_store",
    "create_rate_limit_headers",
    # Presets
    "Preset",
    "PresetName",
    "RATE_LIMIT_PRESETS",
    "get_preset",
    # Data model
    "RateLimitEntry",
    "RateLimitResult",
    # Stores
    "RateLimitStore",
    "MemoryRateLimitStore",
    "RedisRestRateLimitStore",
    "KvRestRateLimitStore",
    # Factory and configuration
    "StoreSettings",
    "load_config",
    "select_backend",
    "create_rate_limit_store",
    "get_rate_limit_store",
    "set_rate_limit_store",
    "reset_rate_limit_store",
    # Identifiers
    "hmac_key",
    "hmac_key_with_rotation",
    # Core
    "Clock",
    "now_ms",
    "RateLimiterMetrics",
    # Exceptions
    "RateLimitError",
    "StoreError",
    "UnknownPresetError",
    "ConfigValidationError",
]
