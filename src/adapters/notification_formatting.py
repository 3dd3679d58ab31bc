"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from typing import Sequence

from core.events import InterestingChange
from core.models import EditRecord

DIVIDER = "──────────────"


def clip(text: str, limit: int) -> str:
    """Clip ``text`` to ``limit`` characters, marking the cut with an ellipsis."""

    text = " ".join(text.split())
    if limit <= 0 or len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)].rstrip() + "…"


def format_status(record: EditRecord, snippet_chars: int) -> str:
    """Return the one-line status used for public posts."""

    comment = clip(record.comment, snippet_chars)
    return f"{record.title}: {comment} {record.page_url}. Diff: {record.diff_url}"


def _burst_minutes(event: InterestingChange) -> int:
    records = event.window.records()
    span_ms = max(record.timestamp for record in records) - event.first_seen_at
    return max(span_ms // 60000, 0)


def _pick_record(event: InterestingChange, preference_order: Sequence[str]) -> EditRecord:
    record = event.window.most_accessible_record(preference_order)
    if record is None:
        raise ValueError(f"Interesting change {event.entity_id} has an empty window")
    return record


def _format_plain(event: InterestingChange, record: EditRecord, snippet_chars: int) -> str:
    languages = event.window.distinct_languages()
    header = (
        f"Edited in {len(languages)} languages ({', '.join(languages)}) "
        f"within {_burst_minutes(event)} min, {event.window.size()} edits"
    )
    return "\n".join([header, format_status(record, snippet_chars)])


def _format_markdown(event: InterestingChange, record: EditRecord, snippet_chars: int) -> str:
    """Create the Markdown notification body used by Telethon."""

    def escape_md(value: str) -> str:
        for ch in r"*[`_":
            value = value.replace(ch, f"\\{ch}")
        return value

    languages = event.window.distinct_languages()
    lines = [
        f"[{record.occurred_at.astimezone().strftime('%H:%M:%S %d-%m-%Y')}]",
        f"**Entity:**    {escape_md(event.entity_id)}",
        f"**Title:**     {escape_md(record.title)}",
        f"**Languages:** {escape_md(', '.join(languages))}",
        f"**Edits:**     {event.window.size()} in {_burst_minutes(event)} min",
        DIVIDER,
        "",
        escape_md(clip(record.comment, snippet_chars)),
        "",
        "**Link:**",
        record.page_url,
        "",
        "**Diff:**",
        record.diff_url,
        DIVIDER,
    ]
    return "\n".join(lines)


def _format_html(event: InterestingChange, record: EditRecord, snippet_chars: int) -> str:
    """Create the HTML notification body used by the Bot API adapter."""

    languages = html.escape(", ".join(event.window.distinct_languages()))
    safe_page = html.escape(record.page_url)
    safe_diff = html.escape(record.diff_url)
    parts = [
        f"[{html.escape(record.occurred_at.astimezone().strftime('%H:%M:%S %d-%m-%Y'))}]",
        f"<b>Entity:</b> {html.escape(event.entity_id)}",
        f"<b>Title:</b> {html.escape(record.title)}",
        f"<b>Languages:</b> {languages}",
        f"<b>Edits:</b> {event.window.size()} in {_burst_minutes(event)} min",
        DIVIDER,
        "",
        html.escape(clip(record.comment, snippet_chars)),
        "",
        "<b>Link:</b>",
        f"<a href=\"{safe_page}\">{safe_page}</a>",
        "",
        "<b>Diff:</b>",
        f"<a href=\"{safe_diff}\">{safe_diff}</a>",
        DIVIDER,
    ]
    return "\n".join(parts)


def format_notification(
    event: InterestingChange,
    preference_order: Sequence[str],
    snippet_chars: int,
    mode: str,
) -> str:
    """Return the notification formatted for the requested mode."""

    if mode not in {"plain", "markdown", "html"}:
        raise ValueError(f"Unsupported notification format: {mode}")
    record = _pick_record(event, preference_order)
    if mode == "markdown":
        return _format_markdown(event, record, snippet_chars)
    if mode == "html":
        return _format_html(event, record, snippet_chars)
    return _format_plain(event, record, snippet_chars)
