"""Domain value objects for rate limit identifiers.

Raw identifiers (client IPs, session IDs, API keys) should not be written to
the store or to logs. hmac_key() replaces them with a keyed hash: without
the server-side pepper, stored keys cannot be correlated back to the
values they came from.

Environment variables:
    RATE_LIMIT_PEPPER: HMAC secret, at least 32 characters (required when
        ENVIRONMENT=production)
    RATE_LIMIT_PEPPER_PREVIOUS: previous secret, kept during a rotation
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os

from ratewindow.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

ENV_PEPPER = "RATE_LIMIT_PEPPER"
ENV_PREVIOUS_PEPPER = "RATE_LIMIT_PEPPER_PREVIOUS"
ENV_ENVIRONMENT = "ENVIRONMENT"

# 64-bit keys
HMAC_OUTPUT_LENGTH = 16
MIN_PEPPER_LENGTH = 32
DEV_PEPPER = "default-dev-pepper-insecure"


class _PepperWarningState:
    """Tracks whether the insecure pepper warning was already logged."""

    def __init__(self) -> None:
        self.logged: bool = False


_warning = _PepperWarningState()


def _is_production() -> bool:
    return os.environ.get(ENV_ENVIRONMENT, "").lower() == "production"


def _warn_once(message: str, *args: object) -> None:
    if not _warning.logged:
        logger.warning(message, *args)
        _warning.logged = True


def get_pepper() -> str:
    """Return the HMAC pepper from the environment.

    Raises:
        ConfigValidationError: In production, if the pepper is missing or
            shorter than MIN_PEPPER_LENGTH
    """
    pepper = os.environ.get(ENV_PEPPER)

    if not pepper:
        if _is_production():
            raise ConfigValidationError(
                f"{ENV_PEPPER} is required in production",
                field=ENV_PEPPER,
                expected=f"secret of at least {MIN_PEPPER_LENGTH} characters",
                received="unset",
            )
        _warn_once(
            "%s not configured, using the development pepper. "
            "Rate limit keys are not private; set %s for production.",
            ENV_PEPPER,
            ENV_PEPPER,
        )
        return DEV_PEPPER

    if len(pepper) < MIN_PEPPER_LENGTH:
        if _is_production():
            raise ConfigValidationError(
                f"{ENV_PEPPER} is too short ({len(pepper)} chars)",
                field=ENV_PEPPER,
                expected=f"at least {MIN_PEPPER_LENGTH} characters",
                received=f"{len(pepper)} characters",
            )
        _warn_once(
            "%s is weak (%d chars), at least %d recommended for production",
            ENV_PEPPER,
            len(pepper),
            MIN_PEPPER_LENGTH,
        )

    return pepper


def _digest(value: str, pepper: str) -> str:
    mac = hmac.new(pepper.encode(), value.encode(), hashlib.sha256)
    return mac.hexdigest()[:HMAC_OUTPUT_LENGTH]


def hmac_key(value: str, *, pepper: str | None = None) -> str:
    """Hash an identifier with the server-side pepper.

    Args:
        value: Raw identifier (IP, session ID, API key)
        pepper: Explicit pepper (default: RATE_LIMIT_PEPPER)

    Returns:
        16 hex characters, deterministic for a given value and pepper

    Example:
        >>> key = hmac_key(client_ip)
        >>> result = await limiter.check(f"ip:{key}", "contact")
    """
    return _digest(value, pepper if pepper is not None else get_pepper())


def hmac_key_with_rotation(value: str) -> list[str]:
    """Keys for ``value`` under the current and, if set, the previous pepper.

    During a rotation grace period (about two windows) a caller can check
    both keys so counters are not reset by the pepper change.

    Returns:
        One key, or two while RATE_LIMIT_PEPPER_PREVIOUS is set
    """
    keys = [hmac_key(value)]

    previous = os.environ.get(ENV_PREVIOUS_PEPPER)
    if previous:
        keys.append(_digest(value, previous))

    return keys


def reset_pepper_warning() -> None:
    """Allow the insecure pepper warning to be logged again (for testing)."""
    _warning.logged = False


__all__ = [
    "get_pepper",
    "hmac_key",
    "hmac_key_with_rotation",
    "reset_pepper_warning",
]
