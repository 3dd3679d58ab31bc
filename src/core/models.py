"""Core domain models.

EditRecord and EditWindow are shared across the core and adapters so that
the aggregation logic never depends on the shape of the upstream feed.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence


class InvalidRecord(ValueError):
    """Raised when an edit is missing one of its required fields."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Undefined property {field} in edit record")
        self.field = field


@dataclass(frozen=True)
class EditRecord:
    """One normalized edit of one language edition of an entity."""

    entity_id: str
    language_code: str
    timestamp: int
    diff_url: str
    diff_size: int
    comment: str
    title: str
    page_url: str

    def __post_init__(self) -> None:
        for item in fields(self):
            if getattr(self, item.name) is None:
                raise InvalidRecord(item.name)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> "EditRecord":
        """Build a record from a dict, treating absent keys like None."""

        values = {}
        for item in fields(cls):
            if payload.get(item.name) is None:
                raise InvalidRecord(item.name)
            values[item.name] = payload[item.name]
        return cls(**values)

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    def is_minor(self, marker_words: Iterable[str], minimal_diff_size: int) -> bool:
        """Return True for edits that look like cleanup rather than news.

        A comment containing any marker word (case-insensitive) or a diff no
        larger than ``minimal_diff_size`` marks the edit as minor.
        """

        lowered = self.comment.lower()
        if any(word.lower() in lowered for word in marker_words):
            return True
        return self.diff_size <= minimal_diff_size


class EditWindow:
    """Append-only, insertion-ordered edits accumulated for one entity."""

    def __init__(self, records: Iterable[EditRecord] = ()) -> None:
        self._records: List[EditRecord] = list(records)

    def append(self, record: EditRecord) -> None:
        self._records.append(record)

    def size(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EditRecord]:
        return iter(tuple(self._records))

    def __getitem__(self, index: int) -> EditRecord:
        return self._records[index]

    def __repr__(self) -> str:
        return f"EditWindow({self._records!r})"

    def records(self) -> tuple[EditRecord, ...]:
        """Return a snapshot of the records in insertion order."""

        return tuple(self._records)

    def distinct_languages(self) -> List[str]:
        """Return edited languages in the order they were first seen."""

        # dict keys keep first-insertion order
        return list(dict.fromkeys(record.language_code for record in self._records))

    def most_accessible_record(self, preference_order: Sequence[str]) -> Optional[EditRecord]:
        """Return the record best suited for display.

        Walks ``preference_order`` and returns the first-inserted record of the
        first language that has any edit. "First" is insertion order, not the
        smallest timestamp. Falls back to the first record overall.
        """

        if not self._records:
            return None
        for language in preference_order:
            for record in self._records:
                if record.language_code == language:
                    return record
        return self._records[0]

    def contains_minor(self, marker_words: Iterable[str], minimal_diff_size: int) -> bool:
        markers = list(marker_words)
        return any(record.is_minor(markers, minimal_diff_size) for record in self._records)
