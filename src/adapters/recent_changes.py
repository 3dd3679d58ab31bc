"""Wikimedia recent-changes feed adapter.

Reads the EventStreams ``recentchange`` server-sent-event stream and maps
each event to an edit payload. This keeps the upstream event shape out of the
core aggregator.
"""

from __future__ import annotations

import http.client
import json
import logging
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable, Collection, Iterable, Iterator, Optional

LOGGER = logging.getLogger(__name__)

STREAM_URL = "https://stream.wikimedia.org/v2/stream/recentchange"
WIKIPEDIA_SUFFIX = ".wikipedia.org"
ARTICLE_NAMESPACE = 0


@dataclass(frozen=True)
class ServerSentEvent:
    event_id: Optional[str]
    data: dict


def language_from_server(server_name: str) -> Optional[str]:
    """Return the language prefix of a Wikipedia host, e.g. en.wikipedia.org -> en."""

    if not server_name.endswith(WIKIPEDIA_SUFFIX):
        return None
    language = server_name[: -len(WIKIPEDIA_SUFFIX)]
    if not language or "." in language:
        return None
    return language


def build_edit_payload(
    event: dict,
    received_at_ms: int,
    languages: Optional[Collection[str]] = None,
) -> Optional[dict]:
    """Map a recentchange event to an edit payload, or None if it is filtered.

    Only human edits of existing articles on a Wikipedia edition are kept.
    Missing upstream values become None so record validation rejects them
    downstream instead of inventing defaults here.
    """

    if event.get("bot"):
        return None
    if event.get("type") != "edit":
        return None
    if event.get("namespace") != ARTICLE_NAMESPACE:
        return None

    language = language_from_server(event.get("server_name") or "")
    if language is None:
        return None
    if languages and language not in languages:
        return None

    length = event.get("length") or {}
    diff_size = None
    if length.get("new") is not None:
        diff_size = int(length["new"]) - int(length.get("old") or 0)

    revision = event.get("revision") or {}
    server_url = event.get("server_url")
    diff_url = None
    if server_url and revision.get("new") is not None and revision.get("old") is not None:
        diff_url = f"{server_url}/w/index.php?diff={revision['new']}&oldid={revision['old']}"

    meta = event.get("meta") or {}
    return {
        "language_code": language,
        # The TTL clock runs on local time, so edits are stamped on arrival.
        "timestamp": received_at_ms,
        "diff_url": diff_url,
        "diff_size": diff_size,
        "comment": event.get("comment"),
        "title": event.get("title"),
        "page_url": meta.get("uri"),
    }


def iter_sse_events(lines: Iterable[str]) -> Iterator[ServerSentEvent]:
    """Parse server-sent-event lines into JSON payloads.

    Comment lines and non-data fields other than ``id`` are ignored; a blank
    line dispatches the accumulated data. Payloads that are not valid JSON are
    logged and skipped.
    """

    data_lines: list[str] = []
    event_id: Optional[str] = None
    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            if data_lines:
                payload = "\n".join(data_lines)
                data_lines = []
                try:
                    data = json.loads(payload)
                except json.JSONDecodeError:
                    LOGGER.warning("Skipping malformed stream payload: %.80s", payload)
                    continue
                if isinstance(data, dict):
                    yield ServerSentEvent(event_id=event_id, data=data)
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)
        elif field == "id":
            event_id = value


class RecentChangesStream:
    """Blocking stream reader meant to run in a worker thread.

    Reconnects after ``reconnect_delay`` seconds when the connection drops and
    resumes from the last seen event id.
    """

    def __init__(
        self,
        url: str = STREAM_URL,
        user_agent: str = "wikiburst",
        reconnect_delay: float = 5.0,
        timeout: float = 60.0,
        opener: Callable[..., Any] = urllib.request.urlopen,
    ) -> None:
        self._url = url
        self._user_agent = user_agent
        self._reconnect_delay = reconnect_delay
        self._timeout = timeout
        self._opener = opener
        self._stopped = threading.Event()
        self.last_event_id: Optional[str] = None

    def _open(self):
        request = urllib.request.Request(self._url)
        request.add_header("Accept", "text/event-stream")
        request.add_header("User-Agent", self._user_agent)
        if self.last_event_id:
            request.add_header("Last-Event-ID", self.last_event_id)
        return self._opener(request, timeout=self._timeout)

    def read_forever(self, callback: Callable[[dict], None]) -> None:
        LOGGER.info("Listening to %s", self._url)
        while not self._stopped.is_set():
            try:
                with self._open() as response:
                    lines = (raw.decode("utf-8", errors="replace") for raw in response)
                    for message in iter_sse_events(lines):
                        if self._stopped.is_set():
                            return
                        if message.event_id:
                            self.last_event_id = message.event_id
                        callback(message.data)
            except (urllib.error.URLError, OSError, http.client.HTTPException) as e:
                LOGGER.warning("Recent changes stream dropped: %s", e)
            except Exception:
                LOGGER.exception("Unexpected error while reading recent changes")
            if self._stopped.wait(self._reconnect_delay):
                return
            LOGGER.info("Reconnecting to recent changes stream")

    def stop(self) -> None:
        self._stopped.set()
