from __future__ import annotations

import asyncio
from typing import Optional

from core.aggregator import ChangesAggregator
from core.config import AggregatorConfig
from pipeline import EditIngestor

NOW = 1_700_000_000_000


class FakeResolver:
    def __init__(self, entities: dict[tuple[str, str], str]) -> None:
        self._entities = entities
        self.calls: list[tuple[str, str]] = []

    async def resolve(self, language_code: str, title: str) -> Optional[str]:
        self.calls.append((language_code, title))
        return self._entities.get((language_code, title))


def _event(language: str, title: str, **overrides) -> dict:
    event = {
        "type": "edit",
        "namespace": 0,
        "bot": False,
        "title": title,
        "comment": "update",
        "server_name": f"{language}.wikipedia.org",
        "server_url": f"https://{language}.wikipedia.org",
        "length": {"old": 100, "new": 200},
        "revision": {"old": 1, "new": 2},
        "meta": {"uri": f"https://{language}.wikipedia.org/wiki/{title}"},
    }
    event.update(overrides)
    return event


def _ingestor(resolver: FakeResolver) -> tuple[EditIngestor, ChangesAggregator]:
    aggregator = ChangesAggregator(AggregatorConfig(), clock=lambda: NOW)
    return EditIngestor(aggregator, resolver, clock=lambda: NOW), aggregator


def test_edits_of_same_entity_share_a_window() -> None:
    resolver = FakeResolver({("en", "Paris"): "Q90", ("fr", "Paris"): "Q90", ("de", "Paris"): "Q90"})
    ingestor, aggregator = _ingestor(resolver)

    async def scenario() -> None:
        for language in ["en", "fr", "de"]:
            assert await ingestor.handle(_event(language, "Paris")) is True

    asyncio.run(scenario())

    entry = aggregator.store.get("Q90")
    assert aggregator.get_change_count() == 1
    assert entry.window.distinct_languages() == ["en", "fr", "de"]
    assert entry.first_seen_at == NOW
    assert ingestor.accepted == 3
    assert aggregator.check_for_interesting_changes() is True


def test_filtered_events_skip_resolution() -> None:
    resolver = FakeResolver({})
    ingestor, aggregator = _ingestor(resolver)

    assert asyncio.run(ingestor.handle(_event("en", "Paris", bot=True))) is False
    assert resolver.calls == []
    assert aggregator.get_change_count() == 0


def test_unresolved_and_invalid_events_are_dropped() -> None:
    resolver = FakeResolver({("en", "Paris"): "Q90"})
    ingestor, aggregator = _ingestor(resolver)

    async def scenario() -> None:
        assert await ingestor.handle(_event("en", "Lyon")) is False
        assert await ingestor.handle(_event("en", "Paris", comment=None)) is False

    asyncio.run(scenario())

    assert ingestor.unresolved == 1
    assert ingestor.rejected == 1
    assert aggregator.get_change_count() == 0


def test_consume_survives_errors() -> None:
    class BrokenResolver(FakeResolver):
        async def resolve(self, language_code: str, title: str) -> Optional[str]:
            if title == "Boom":
                raise RuntimeError("boom")
            return await super().resolve(language_code, title)

    resolver = BrokenResolver({("en", "Paris"): "Q90"})
    ingestor, aggregator = _ingestor(resolver)

    async def scenario() -> None:
        queue: asyncio.Queue = asyncio.Queue()
        worker = asyncio.create_task(ingestor.consume(queue))
        queue.put_nowait(_event("en", "Boom"))
        queue.put_nowait(_event("en", "Paris"))
        await queue.join()
        worker.cancel()

    asyncio.run(scenario())
    assert aggregator.get_change_count() == 1
