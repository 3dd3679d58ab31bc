"""Ports (interfaces) used around the core aggregator.

Ports define the minimal contracts for resolution and notification adapters
so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.events import InterestingChange


class EntityResolverPort(Protocol):
    """Maps a per-language page title to a cross-language entity id."""

    async def resolve(self, language_code: str, title: str) -> Optional[str]:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the dispatcher."""

    async def send(self, event: InterestingChange) -> None:
        ...
