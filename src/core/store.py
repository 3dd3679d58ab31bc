"""In-memory window store keyed by entity id.

The store is the only mutable state of the core. Every mutation and snapshot
goes through one re-entrant lock so the feed thread and the scans running on
the event loop never interleave on the same entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import RLock
from typing import Dict, List, Optional

from core.models import EditRecord, EditWindow


@dataclass
class WindowEntry:
    """A window plus the timestamp that anchors its TTL."""

    entity_id: str
    first_seen_at: int
    window: EditWindow


class WindowStore:
    """Mapping of entity id to its accumulated edit window."""

    def __init__(self) -> None:
        self._entries: Dict[str, WindowEntry] = {}
        self._lock = RLock()

    def insert(self, entity_id: str, record: EditRecord) -> None:
        """Append ``record`` to the entity's window, creating it if needed.

        ``first_seen_at`` is set once from the first record and never moves,
        so the TTL is a fixed window rather than a sliding one.
        """

        with self._lock:
            entry = self._entries.get(entity_id)
            if entry is None:
                entry = WindowEntry(
                    entity_id=entity_id,
                    first_seen_at=record.timestamp,
                    window=EditWindow(),
                )
                self._entries[entity_id] = entry
            entry.window.append(record)

    def remove(self, entity_id: str) -> bool:
        with self._lock:
            return self._entries.pop(entity_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, entity_id: str) -> Optional[WindowEntry]:
        with self._lock:
            return self._entries.get(entity_id)

    def snapshot(self) -> List[WindowEntry]:
        """Return the current entries; the list itself is safe to iterate."""

        with self._lock:
            return list(self._entries.values())

    @property
    def lock(self) -> RLock:
        return self._lock
