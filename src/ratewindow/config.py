"""Store configuration for the rate limiter.

Settings are read once, when the store is built, either from the process
environment or from a TOML file with environment variable expansion.

Environment variables:
    UPSTASH_REDIS_REST_URL / UPSTASH_REDIS_REST_TOKEN: Redis REST service
    KV_REST_API_URL / KV_REST_API_TOKEN: KV REST service
    RATE_LIMIT_REDIS_URL: native Redis connection URL
    RATE_LIMIT_TIMEOUT: per-request timeout in seconds (default 5)

Example TOML:
    [store]
    redis_rest_url = "${UPSTASH_REDIS_REST_URL}"
    redis_rest_token = "${UPSTASH_REDIS_REST_TOKEN}"
    request_timeout = "${RATE_LIMIT_TIMEOUT:-2.5}"
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

# Python 3.11+ has tomllib in stdlib
import tomllib

from ratewindow.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 5.0

ENV_REDIS_REST_URL = "UPSTASH_REDIS_REST_URL"
ENV_REDIS_REST_TOKEN = "UPSTASH_REDIS_REST_TOKEN"
ENV_KV_REST_URL = "KV_REST_API_URL"
ENV_KV_REST_TOKEN = "KV_REST_API_TOKEN"
ENV_REDIS_URL = "RATE_LIMIT_REDIS_URL"
ENV_REQUEST_TIMEOUT = "RATE_LIMIT_TIMEOUT"


@dataclass(frozen=True)
class StoreSettings:
    """Credentials and tuning for the backing store.

    A REST backend is usable only when both its URL and token are set.

    Attributes:
        redis_rest_url: Redis REST endpoint
        redis_rest_token: Bearer token for the Redis REST endpoint
        kv_rest_url: KV REST endpoint
        kv_rest_token: Bearer token for the KV REST endpoint
        redis_url: Native Redis connection URL
        request_timeout: Per-request timeout in seconds for network stores
    """

    redis_rest_url: str | None = None
    redis_rest_token: str | None = None
    kv_rest_url: str | None = None
    kv_rest_token: str | None = None
    redis_url: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        # Blank strings count as unset
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, str) and not value.strip():
                object.__setattr__(self, f.name, None)

        timeout = _parse_timeout(self.request_timeout)
        object.__setattr__(self, "request_timeout", timeout)

    @property
    def has_redis_rest(self) -> bool:
        """Whether both Redis REST URL and token are configured."""
        return bool(self.redis_rest_url and self.redis_rest_token)

    @property
    def has_kv_rest(self) -> bool:
        """Whether both KV REST URL and token are configured."""
        return bool(self.kv_rest_url and self.kv_rest_token)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StoreSettings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Raises:
            ConfigValidationError: If RATE_LIMIT_TIMEOUT is not a positive number
        """
        env = os.environ if environ is None else environ
        return cls(
            redis_rest_url=env.get(ENV_REDIS_REST_URL),
            redis_rest_token=env.get(ENV_REDIS_REST_TOKEN),
            kv_rest_url=env.get(ENV_KV_REST_URL),
            kv_rest_token=env.get(ENV_KV_REST_TOKEN),
            redis_url=env.get(ENV_REDIS_URL),
            request_timeout=env.get(ENV_REQUEST_TIMEOUT) or DEFAULT_REQUEST_TIMEOUT,
        )

    def __repr__(self) -> str:
        # Tokens never appear in logs
        return (
            f"StoreSettings(redis_rest_url={self.redis_rest_url!r}, "
            f"redis_rest_token={'***' if self.redis_rest_token else None}, "
            f"kv_rest_url={self.kv_rest_url!r}, "
            f"kv_rest_token={'***' if self.kv_rest_token else None}, "
            f"redis_url={'***' if self.redis_url else None}, "
            f"request_timeout={self.request_timeout!r})"
        )


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(
            "request_timeout must be a number",
            field="request_timeout",
            expected="positive number",
            received=repr(value),
        ) from None

    if timeout <= 0:
        raise ConfigValidationError(
            "request_timeout must be > 0",
            field="request_timeout",
            expected="positive number",
            received=repr(value),
        )
    return timeout


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax (bash-like default values).
    Values stay strings; typed fields are converted by StoreSettings.

    Example:
        >>> _expand_env_vars("https://${KV_HOST}")
        "https://kv.example.com"  # If KV_HOST=kv.example.com
        >>> _expand_env_vars("${RATE_LIMIT_TIMEOUT:-2.5}")
        "2.5"
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]

    if isinstance(obj, str):

        def replace_with_default(match: re.Match[str]) -> str:
            return os.environ.get(match.group(1), match.group(2))

        # Pattern: ${VAR_NAME:-default_value}
        result = re.sub(r"\$\{([^}:]+):-([^}]*)\}", replace_with_default, obj)

        # Then expand remaining ${VAR} and $VAR using standard expandvars
        result = os.path.expandvars(result)

        # An unset ${VAR} is left verbatim by expandvars; treat it as missing
        if re.fullmatch(r"\$\{[^}]+\}|\$\w+", result):
            return None
        return result

    return obj


def load_config(path: str | Path) -> StoreSettings:
    """Load store settings from the ``[store]`` table of a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        StoreSettings built from the expanded values

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML, the [store]
            section is not a table, or it contains unknown keys
    """
    config_path = Path(path)

    try:
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {config_path}: {e}") from e

    store = raw.get("store", {})
    if not isinstance(store, dict):
        raise ConfigValidationError(
            "store section must be a table",
            field="store",
            expected="dict",
            received=type(store).__name__,
        )

    known = {f.name for f in fields(StoreSettings)}
    unknown = sorted(set(store) - known)
    if unknown:
        raise ConfigValidationError(
            f"Unknown keys in [store]: {', '.join(unknown)}",
            field="store",
            expected=", ".join(sorted(known)),
            received=", ".join(unknown),
        )

    expanded = {key: value for key, value in _expand_env_vars(store).items() if value is not None}
    settings = StoreSettings(**expanded)
    logger.info("Loaded rate limit store settings from %s", config_path)
    return settings


__all__ = [
    "StoreSettings",
    "load_config",
]
