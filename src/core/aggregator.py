"""Change aggregation and burst detection.

This module is integration-agnostic. The aggregator owns the window store,
the notifier and the periodic scan handles; adapters only call
``add_change`` and subscribe to interesting-change events.

Scan order for detection:
1) At least ``min_edit_count`` edits in the window
2) At least ``min_distinct_languages`` edited languages
3) No edit in the window looks minor (one minor edit vetoes the window)
4) Remove the entry, then publish it (a window fires at most once)
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from core.config import AggregatorConfig
from core.events import ChangeHandler, ChangeNotifier, InterestingChange
from core.models import EditRecord
from core.scheduler import PeriodicTask
from core.store import WindowEntry, WindowStore

LOGGER = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class ChangesAggregator:
    """Accumulates edits per entity and surfaces cross-language bursts."""

    def __init__(
        self,
        config: Optional[AggregatorConfig] = None,
        store: Optional[WindowStore] = None,
        notifier: Optional[ChangeNotifier] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.config = config or AggregatorConfig()
        self._store = store or WindowStore()
        self._notifier = notifier or ChangeNotifier()
        self._clock = clock
        self._tasks: List[PeriodicTask] = []

    @property
    def store(self) -> WindowStore:
        return self._store

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    # ------------------------------------------------------------------
    # Operations exposed to the feed
    # ------------------------------------------------------------------

    def add_change(
        self,
        entity_id: str,
        language_code: str,
        timestamp: int,
        diff_url: str,
        diff_size: int,
        comment: str,
        title: str,
        page_url: str,
    ) -> None:
        """Record one edit. Raises InvalidRecord before touching the store."""

        record = EditRecord(
            entity_id=entity_id,
            language_code=language_code,
            timestamp=timestamp,
            diff_url=diff_url,
            diff_size=diff_size,
            comment=comment,
            title=title,
            page_url=page_url,
        )
        self._store.insert(entity_id, record)

    def add_record(self, record: EditRecord) -> None:
        self._store.insert(record.entity_id, record)

    def remove_change(self, entity_id: str) -> None:
        self._store.remove(entity_id)

    def get_change_count(self) -> int:
        return self._store.count()

    def clear(self) -> None:
        self._store.clear()

    def on_interesting_change(self, handler: ChangeHandler) -> Callable[[], None]:
        return self._notifier.subscribe(handler)

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    def remove_old_changes(self, now: Optional[int] = None) -> int:
        """Drop every window older than the configured lifetime.

        Age is measured from the first edit of the entity. Aged-out windows
        are discarded silently; that is the expected fate of most entities.
        """

        current = self._clock() if now is None else now
        removed = 0
        with self._store.lock:
            for entry in self._store.snapshot():
                if current - entry.first_seen_at > self.config.lifetime_ms:
                    self._store.remove(entry.entity_id)
                    removed += 1
        LOGGER.info("Removed %s stale windows", removed)
        return removed

    def is_interesting(self, entry: WindowEntry) -> bool:
        window = entry.window
        if window.size() < self.config.min_edit_count:
            return False
        if len(window.distinct_languages()) < self.config.min_distinct_languages:
            return False
        return not window.contains_minor(self.config.minor_marker_words, self.config.minimal_diff_size)

    def check_for_interesting_changes(self) -> bool:
        """Publish and consume every window that qualifies as a burst."""

        fired: List[InterestingChange] = []
        with self._store.lock:
            for entry in self._store.snapshot():
                if not self.is_interesting(entry):
                    continue
                self._store.remove(entry.entity_id)
                fired.append(
                    InterestingChange(
                        entity_id=entry.entity_id,
                        first_seen_at=entry.first_seen_at,
                        window=entry.window,
                    )
                )
            # Inserts stay blocked until every fired window is published.
            for event in fired:
                LOGGER.info(
                    "Interesting change for %s: %s edits in %s",
                    event.entity_id,
                    event.window.size(),
                    ", ".join(event.window.distinct_languages()),
                )
                self._notifier.publish(event)
        return bool(fired)

    def log_status(self) -> None:
        LOGGER.info("Aggregator tracks %s windows", self.get_change_count())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the eviction, detection and status loops on the running loop."""

        if self._tasks:
            return
        self._tasks = [
            PeriodicTask("evict-stale-windows", self.config.eviction_interval_ms / 1000, self.remove_old_changes),
            PeriodicTask("detect-bursts", self.config.detection_interval_ms / 1000, self.check_for_interesting_changes),
            PeriodicTask("log-window-count", self.config.status_interval_ms / 1000, self.log_status),
        ]
        for task in self._tasks:
            task.start()
        LOGGER.info(
            "Aggregator started (lifetime=%ss, eviction every %ss, detection every %ss)",
            self.config.lifetime_ms // 1000,
            self.config.eviction_interval_ms // 1000,
            self.config.detection_interval_ms // 1000,
        )

    async def stop(self) -> None:
        for task in self._tasks:
            await task.stop()
        self._tasks = []
        LOGGER.info("Aggregator stopped")

    @property
    def running(self) -> bool:
        return any(task.running for task in self._tasks)
