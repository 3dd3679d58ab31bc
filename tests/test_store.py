from __future__ import annotations

from core.models import EditRecord
from core.store import WindowStore


def _record(entity_id: str, language: str, timestamp: int) -> EditRecord:
    return EditRecord(entity_id, language, timestamp, "d", 10, "c", "t", "p")


def test_first_seen_at_is_anchored_to_first_insert() -> None:
    store = WindowStore()
    store.insert("Q1", _record("Q1", "en", 1_000))
    store.insert("Q1", _record("Q1", "fr", 5_000))

    entry = store.get("Q1")
    assert entry is not None
    assert entry.first_seen_at == 1_000
    assert entry.window.distinct_languages() == ["en", "fr"]


def test_count_tracks_distinct_entities() -> None:
    store = WindowStore()
    for entity_id in ["Q1", "Q2", "Q1", "Q3", "Q2"]:
        store.insert(entity_id, _record(entity_id, "en", 1))
    assert store.count() == 3
    assert store.get("Q1").window.size() == 2


def test_remove_and_clear() -> None:
    store = WindowStore()
    store.insert("Q1", _record("Q1", "en", 1))
    store.insert("Q2", _record("Q2", "en", 1))

    assert store.remove("Q1") is True
    assert store.remove("Q1") is False
    assert store.count() == 1

    store.clear()
    assert store.count() == 0
    assert store.snapshot() == []


def test_reinsert_after_remove_starts_new_window() -> None:
    store = WindowStore()
    store.insert("Q1", _record("Q1", "en", 1))
    store.remove("Q1")
    store.insert("Q1", _record("Q1", "fr", 9))

    entry = store.get("Q1")
    assert entry.first_seen_at == 9
    assert entry.window.size() == 1
