"""Telegram user-session notification adapter.

Posts a Markdown message through a Telethon client, either to a public
channel the account can write to or to the user's Saved Messages ("me").
"""

from __future__ import annotations

from adapters.notification_formatting import format_notification
from core.config import NotificationConfig
from core.events import InterestingChange


class TelegramChannelNotifier:
    """Notifier adapter that posts to a channel or Saved Messages."""

    def __init__(self, client, config: NotificationConfig, target: str = "me") -> None:
        self._client = client
        self._config = config
        self._target = target

    async def send(self, event: InterestingChange) -> None:
        message = format_notification(
            event,
            self._config.language_preference_order,
            self._config.snippet_chars,
            mode="markdown",
        )
        await self._client.send_message(self._target, message, parse_mode="Markdown", link_preview=False)
