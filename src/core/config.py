"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

DEFAULT_MINOR_MARKER_WORDS: Tuple[str, ...] = (
    "typo",
    "fix",
    "clean",
    "misc",
    "revert",
    "image",
    "file:",
    "commons",
)

DEFAULT_LANGUAGE_PREFERENCE_ORDER: Tuple[str, ...] = ("en", "fr", "es", "it", "de")


@dataclass(frozen=True)
class AggregatorConfig:
    """Window lifetime, scan cadence and burst heuristic settings."""

    lifetime_ms: int = 15 * 60 * 1000
    eviction_interval_ms: int = 60 * 1000
    detection_interval_ms: int = 60 * 1000
    status_interval_ms: int = 30 * 1000
    min_edit_count: int = 2
    min_distinct_languages: int = 3
    minimal_diff_size: int = 3
    minor_marker_words: Tuple[str, ...] = field(default=DEFAULT_MINOR_MARKER_WORDS)
    language_preference_order: Tuple[str, ...] = field(default=DEFAULT_LANGUAGE_PREFERENCE_ORDER)

    def __post_init__(self) -> None:
        for name in ("lifetime_ms", "eviction_interval_ms", "detection_interval_ms", "status_interval_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")


@dataclass(frozen=True)
class NotificationConfig:
    """Notification formatting settings consumed by notifier adapters."""

    snippet_chars: int
    language_preference_order: Tuple[str, ...] = DEFAULT_LANGUAGE_PREFERENCE_ORDER
