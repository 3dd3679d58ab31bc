"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so bursts can be posted to a bot chat or a
channel the bot administers.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request

from adapters.notification_formatting import format_notification
from core.config import NotificationConfig
from core.events import InterestingChange


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str, config: NotificationConfig, timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._config = config
        self._timeout = timeout

    def _endpoint(self) -> str:
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def build_payload(self, event: InterestingChange) -> dict:
        message = format_notification(
            event,
            self._config.language_preference_order,
            self._config.snippet_chars,
            mode="html",
        )
        return {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    def _post(self, payload: dict) -> None:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e

    async def send(self, event: InterestingChange) -> None:
        """Send the formatted notification via the Bot API."""

        # urllib blocks; run it off the event loop so scans keep their cadence.
        await asyncio.to_thread(self._post, self.build_payload(event))
