"""Application entry point for the wikiburst watcher."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import threading
from dataclasses import asdict
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.log_notifier import LogNotifier
from adapters.recent_changes import RecentChangesStream
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.wikidata_resolver import WikidataResolver
from core.aggregator import ChangesAggregator
from core.config import AggregatorConfig, NotificationConfig
from core.dispatch import NotificationDispatcher
from pipeline import EditIngestor

NAME = "WIKIBURST"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = [os.getenv(name) for name in redact_cfg.get("patterns", [])]
    return sorted({value for value in values if value}, key=len, reverse=True)


def _build_log_handlers(config: dict) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if not config.get("enabled", True):
        return [logging.NullHandler()]
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "wikiburst.log")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 1_048_576)),
                backupCount=int(file_cfg.get("backup_count", 3)),
                encoding="utf-8",
            )
        )
    return handlers


def _configure_logging(config: Optional[dict] = None) -> list[logging.Handler]:
    """Install console/file handlers that mask configured secrets.

    Expects the environment to be loaded already, since redacted values are
    read from it.
    """

    config = settings.LOGGING if config is None else config
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _RedactingFormatter(
        _collect_redaction_values(config),
        fmt=config.get("format", "%(asctime)s %(levelname)s %(name)s: %(message)s"),
    )
    handlers = _build_log_handlers(config)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers, force=True)
    return handlers


def build_aggregator_config() -> AggregatorConfig:
    return AggregatorConfig(
        lifetime_ms=settings.LIFETIME_MS,
        eviction_interval_ms=settings.EVICTION_INTERVAL_MS,
        detection_interval_ms=settings.DETECTION_INTERVAL_MS,
        status_interval_ms=settings.STATUS_INTERVAL_MS,
        min_edit_count=settings.MIN_EDIT_COUNT,
        min_distinct_languages=settings.MIN_DISTINCT_LANGUAGES,
        minimal_diff_size=settings.MINIMAL_DIFF_SIZE,
        minor_marker_words=settings.MINOR_MARKER_WORDS,
        language_preference_order=settings.LANGUAGE_PREFERENCE_ORDER,
    )


def build_notification_config(aggregator_config: AggregatorConfig) -> NotificationConfig:
    # Formatters pick the headline record with the same order the aggregator uses.
    return NotificationConfig(
        snippet_chars=settings.SNIPPET_CHARS,
        language_preference_order=aggregator_config.language_preference_order,
    )


async def _build_notifier(method: str, notification_config: NotificationConfig):
    """Return (notifier, telegram_client_or_None) for the configured method."""

    if method == "bot":
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when notification_method=bot")
        if not settings.BOT_CHAT_ID:
            raise RuntimeError("notifications.bot_chat_id is required for bot notifications")
        return TelegramBotNotifier(bot_token, str(settings.BOT_CHAT_ID), notification_config), None
    if method == "channel":
        # Telethon is only needed for user-session delivery.
        from adapters.telegram_notifier import TelegramChannelNotifier
        from client import authorize, build_client

        client = build_client()
        await client.connect()
        try:
            await authorize(client)
        except BaseException:
            await client.disconnect()
            raise
        return TelegramChannelNotifier(client, notification_config, target=settings.CHANNEL), client
    if method == "log":
        return LogNotifier(notification_config), None
    raise RuntimeError("notification_method must be 'log', 'bot' or 'channel'")


async def _serve(method: str) -> None:
    logger = logging.getLogger(__name__)

    aggregator = ChangesAggregator(build_aggregator_config())
    notification_config = build_notification_config(aggregator.config)
    notifier, client = await _build_notifier(method, notification_config)
    logger.info("Selected notification method - %s", method)

    dispatcher = NotificationDispatcher(notifier)
    dispatcher.attach(aggregator.notifier)

    resolver = WikidataResolver(
        api_url=settings.RESOLVER_API_URL,
        user_agent=settings.USER_AGENT,
        timeout=settings.RESOLVER_TIMEOUT_SECONDS,
        cache_size=settings.RESOLVER_CACHE_SIZE,
    )
    ingestor = EditIngestor(aggregator, resolver, languages=settings.FEED_LANGUAGES)

    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[dict]" = asyncio.Queue()
    stream = RecentChangesStream(
        url=settings.FEED_URL,
        user_agent=settings.USER_AGENT,
        reconnect_delay=settings.FEED_RECONNECT_DELAY_SECONDS,
    )

    # The stream reader blocks on the socket, so it lives in a daemon thread
    # and hands events to the loop.
    reader = threading.Thread(
        target=stream.read_forever,
        args=(lambda event: loop.call_soon_threadsafe(queue.put_nowait, event),),
        name="recent-changes-reader",
        daemon=True,
    )

    workers = [
        asyncio.create_task(ingestor.consume(queue), name=f"ingest-{index}")
        for index in range(max(settings.FEED_WORKERS, 1))
    ]
    aggregator.start()
    dispatcher.start()
    reader.start()
    logger.info("Watching recent changes. Press Ctrl+C to stop.")

    try:
        await asyncio.gather(*workers)
    finally:
        stream.stop()
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        await aggregator.stop()
        await dispatcher.stop()
        if client is not None:
            await client.disconnect()
        logger.info(
            "Stopped: accepted=%s rejected=%s unresolved=%s notified=%s",
            ingestor.accepted,
            ingestor.rejected,
            ingestor.unresolved,
            dispatcher.sent,
        )


def _run(log_only: bool) -> None:
    _print_banner()
    load_dotenv()
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting wikiburst")

    method = "log" if log_only else settings.NOTIFICATION_METHOD
    try:
        asyncio.run(_serve(method))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


def _show_config() -> None:
    config = asdict(build_aggregator_config())
    config["notification_method"] = settings.NOTIFICATION_METHOD
    config["feed_languages"] = settings.FEED_LANGUAGES
    print(json.dumps(config, indent=2))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="wikiburst")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start the watcher")
    run_parser.add_argument(
        "--log-only",
        action="store_true",
        help="Write interesting changes to the log instead of the configured notifier.",
    )
    subparsers.add_parser("config", help="Print the effective burst detection settings")

    args = parser.parse_args(argv)
    if args.command == "config":
        _show_config()
        return
    _run(getattr(args, "log_only", False))


if __name__ == "__main__":
    main()
