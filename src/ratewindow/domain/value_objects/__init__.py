"""Value objects for rate limiting domain.

These are domain-level utilities, not tied to any framework.
"""

from __future__ import annotations

from ratewindow.domain.value_objects.identifier import (
    get_pepper,
    hmac_key,
    hmac_key_with_rotation,
    reset_pepper_warning,
)

__all__ = [
    "get_pepper",
    "hmac_key",
    "hmac_key_with_rotation",
    "reset_pepper_warning",
]
