"""Named rate limit presets.

Each preset pairs a request ceiling with a fixed window length. Presets are
defined at deploy time and never change while the process runs; every
identifier checked against a preset gets its own counter but shares the
preset's ceiling and window.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

from ratewindow.exceptions import UnknownPresetError

MINUTE_MS = 60_000


@dataclass(frozen=True, slots=True)
class Preset:
    """Fixed-window limit configuration.

    Attributes:
        max_requests: Maximum actions allowed per window
        window_ms: Window length in milliseconds
    """

    max_requests: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.max_requests <= 0:
            raise ValueError(f"max_requests must be > 0, got {self.max_requests}")
        if self.window_ms <= 0:
            raise ValueError(f"window_ms must be > 0, got {self.window_ms}")


PresetName = Literal["contact", "inquiry", "subscribe", "whatsapp", "analytics"]

RATE_LIMIT_PRESETS: Mapping[str, Preset] = MappingProxyType(
    {
        "contact": Preset(max_requests=5, window_ms=MINUTE_MS),
        "inquiry": Preset(max_requests=10, window_ms=MINUTE_MS),
        "subscribe": Preset(max_requests=3, window_ms=MINUTE_MS),
        "whatsapp": Preset(max_requests=5, window_ms=MINUTE_MS),
        "analytics": Preset(max_requests=100, window_ms=MINUTE_MS),
    }
)


def get_preset(name: str, presets: Mapping[str, Preset] = RATE_LIMIT_PRESETS) -> Preset:
    """Resolve a preset by name.

    Args:
        name: Preset name (e.g., "contact")
        presets: Mapping to resolve against (default: RATE_LIMIT_PRESETS)

    Returns:
        The matching Preset

    Raises:
        UnknownPresetError: If the name is not defined
    """
    try:
        return presets[name]
    except KeyError:
        raise UnknownPresetError(name) from None


__all__ = [
    "MINUTE_MS",
    "Preset",
    "PresetName",
    "RATE_LIMIT_PRESETS",
    "get_preset",
]
