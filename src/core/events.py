"""Publish point for interesting-change events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List

from core.models import EditWindow

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterestingChange:
    """A window that passed the burst heuristic and left the store."""

    entity_id: str
    first_seen_at: int
    window: EditWindow


ChangeHandler = Callable[[InterestingChange], None]


class ChangeNotifier:
    """Synchronous fan-out to every subscribed handler, in subscription order."""

    def __init__(self) -> None:
        self._handlers: List[ChangeHandler] = []

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        """Register ``handler`` and return a callable that unregisters it."""

        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: InterestingChange) -> None:
        # Iterate over a copy so a handler may unsubscribe itself.
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                LOGGER.exception("Subscriber failed for interesting change %s", event.entity_id)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)
