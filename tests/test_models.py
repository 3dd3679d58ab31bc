from __future__ import annotations

import pytest

from core.config import DEFAULT_MINOR_MARKER_WORDS
from core.models import EditRecord, EditWindow, InvalidRecord


def _record(language: str, *, timestamp: int = 1_000, comment: str = "hi guys", diff_size: int = 5) -> EditRecord:
    return EditRecord(
        entity_id="Q42",
        language_code=language,
        timestamp=timestamp,
        diff_url="http://foo.bar/diff",
        diff_size=diff_size,
        comment=comment,
        title="FooBar",
        page_url="http://foo.bar",
    )


@pytest.mark.parametrize(
    "field",
    ["entity_id", "language_code", "timestamp", "diff_url", "diff_size", "comment", "title", "page_url"],
)
def test_record_rejects_none_fields(field: str) -> None:
    values = dict(
        entity_id="Q42",
        language_code="en",
        timestamp=1,
        diff_url="d",
        diff_size=10,
        comment="c",
        title="t",
        page_url="p",
    )
    values[field] = None
    with pytest.raises(InvalidRecord) as excinfo:
        EditRecord(**values)
    assert excinfo.value.field == field


def test_record_allows_empty_comment_and_zero_values() -> None:
    record = EditRecord("Q1", "en", 0, "d", 0, "", "t", "p")
    assert record.comment == ""
    assert record.diff_size == 0


def test_from_mapping_rejects_missing_key() -> None:
    payload = {
        "entity_id": "Q42",
        "language_code": "en",
        "timestamp": 1,
        "diff_url": "d",
        "diff_size": 10,
        "comment": "c",
        "title": "t",
    }
    with pytest.raises(InvalidRecord) as excinfo:
        EditRecord.from_mapping(payload)
    assert excinfo.value.field == "page_url"

    record = EditRecord.from_mapping({**payload, "page_url": "p", "extra": "ignored"})
    assert record.page_url == "p"


def test_record_is_immutable() -> None:
    record = _record("en")
    with pytest.raises(AttributeError):
        record.comment = "changed"  # type: ignore[misc]


def test_occurred_at_is_utc() -> None:
    record = _record("en", timestamp=86_400_000)
    assert record.occurred_at.isoformat() == "1970-01-02T00:00:00+00:00"


def test_is_minor_by_marker_word_case_insensitive() -> None:
    record = _record("en", comment="Fixed TYPO in lead")
    assert record.is_minor(["typo"], 3)
    assert not _record("en", comment="Election results").is_minor(["typo"], 3)


def test_is_minor_by_small_diff() -> None:
    assert _record("en", diff_size=3).is_minor([], 3)
    assert _record("en", diff_size=-40).is_minor([], 3)
    assert not _record("en", diff_size=4).is_minor([], 3)


def test_distinct_languages_keep_first_occurrence_order() -> None:
    window = EditWindow([_record("en"), _record("fr"), _record("en"), _record("es")])
    assert window.distinct_languages() == ["en", "fr", "es"]


def test_most_accessible_record_uses_preference_order() -> None:
    first_fr = _record("fr", timestamp=10)
    window = EditWindow([_record("de", timestamp=5), first_fr, _record("fr", timestamp=1)])
    assert window.most_accessible_record(["en", "fr", "de"]) is first_fr


def test_most_accessible_record_prefers_first_inserted_over_earliest_timestamp() -> None:
    later = _record("en", timestamp=2_000)
    earlier = _record("en", timestamp=1_000)
    window = EditWindow([later, earlier])
    assert window.most_accessible_record(["en"]) is later


def test_most_accessible_record_falls_back_to_first_record() -> None:
    first = _record("pt")
    window = EditWindow([first, _record("ru")])
    assert window.most_accessible_record(["en", "fr"]) is first
    assert EditWindow().most_accessible_record(["en"]) is None


def test_contains_minor_is_any() -> None:
    window = EditWindow([_record("en"), _record("fr", comment="clean up refs")])
    assert window.contains_minor(DEFAULT_MINOR_MARKER_WORDS, 3)
    assert not EditWindow([_record("en"), _record("fr")]).contains_minor(DEFAULT_MINOR_MARKER_WORDS, 3)


def test_window_iteration_is_a_snapshot() -> None:
    window = EditWindow([_record("en")])
    seen = []
    for record in window:
        seen.append(record)
        window.append(_record("fr"))
    assert len(seen) == 1
    assert window.size() == 2
    assert len(window.records()) == 2
