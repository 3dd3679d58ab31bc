"""Notifier adapter that only writes bursts to the log."""

from __future__ import annotations

import logging

from adapters.notification_formatting import format_notification
from core.config import NotificationConfig
from core.events import InterestingChange

LOGGER = logging.getLogger(__name__)


class LogNotifier:
    def __init__(self, config: NotificationConfig) -> None:
        self._config = config

    async def send(self, event: InterestingChange) -> None:
        message = format_notification(
            event,
            self._config.language_preference_order,
            self._config.snippet_chars,
            mode="plain",
        )
        LOGGER.info("Interesting change %s:\n%s", event.entity_id, message)
