"""Static configuration for wikiburst.

All user-editable settings (burst heuristic, feed, notifications, logging)
live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from core.config import DEFAULT_LANGUAGE_PREFERENCE_ORDER, DEFAULT_MINOR_MARKER_WORDS

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("WIKIBURST_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Burst heuristic and scan cadence. Times are in milliseconds.
_aggregator = _CONFIG.get("aggregator", {})
LIFETIME_MS = int(_aggregator.get("lifetime_ms", 15 * 60 * 1000))
EVICTION_INTERVAL_MS = int(_aggregator.get("eviction_interval_ms", 60 * 1000))
DETECTION_INTERVAL_MS = int(_aggregator.get("detection_interval_ms", 60 * 1000))
STATUS_INTERVAL_MS = int(_aggregator.get("status_interval_ms", 30 * 1000))
MIN_EDIT_COUNT = int(_aggregator.get("min_edit_count", 2))
MIN_DISTINCT_LANGUAGES = int(_aggregator.get("min_distinct_languages", 3))
MINIMAL_DIFF_SIZE = int(_aggregator.get("minimal_diff_size", 3))
MINOR_MARKER_WORDS = tuple(_aggregator.get("minor_marker_words", DEFAULT_MINOR_MARKER_WORDS))
LANGUAGE_PREFERENCE_ORDER = tuple(
    _aggregator.get("language_preference_order", DEFAULT_LANGUAGE_PREFERENCE_ORDER)
)

# Recent changes feed. An empty language list accepts every Wikipedia.
_feed = _CONFIG.get("feed", {})
FEED_URL = _feed.get("stream_url", "https://stream.wikimedia.org/v2/stream/recentchange")
FEED_LANGUAGES = list(_feed.get("languages", []))
FEED_RECONNECT_DELAY_SECONDS = float(_feed.get("reconnect_delay_seconds", 5))
FEED_WORKERS = int(_feed.get("workers", 8))
USER_AGENT = _feed.get("user_agent", "wikiburst/0.1")

# Wikidata lookups for cross-language entity ids.
_resolver = _CONFIG.get("resolver", {})
RESOLVER_API_URL = _resolver.get("api_url", "https://www.wikidata.org/w/api.php")
RESOLVER_CACHE_SIZE = int(_resolver.get("cache_size", 10000))
RESOLVER_TIMEOUT_SECONDS = float(_resolver.get("timeout_seconds", 10))

# Notification method switches adapters without changing core logic.
# - "log": write bursts to the log only
# - "bot": Telegram Bot API, BOT_API token in .env
# - "channel": Telethon user session, posts to CHANNEL ("me" = Saved Messages)
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "log")
SNIPPET_CHARS = int(_notifications.get("snippet_chars", 200))
BOT_CHAT_ID = _notifications.get("bot_chat_id")
CHANNEL = _notifications.get("channel", "me")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
