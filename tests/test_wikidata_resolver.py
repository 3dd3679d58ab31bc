from __future__ import annotations

import asyncio
import urllib.error
from urllib.parse import parse_qs, urlparse

from adapters.wikidata_resolver import WikidataResolver, entity_from_response


class FakeResolver(WikidataResolver):
    def __init__(self, responses: dict, **kwargs) -> None:
        super().__init__(**kwargs)
        self.responses = responses
        self.calls: list[str] = []

    def _fetch_json(self, url: str) -> dict:
        self.calls.append(url)
        title = parse_qs(urlparse(url).query)["titles"][0]
        response = self.responses[title]
        if isinstance(response, Exception):
            raise response
        return response


def test_entity_from_response_skips_missing() -> None:
    assert entity_from_response({"entities": {"Q42": {"id": "Q42"}}}) == "Q42"
    assert entity_from_response({"entities": {"-1": {"missing": ""}}}) is None
    assert entity_from_response({}) is None


def test_build_url_uses_site_and_underscored_title() -> None:
    resolver = WikidataResolver(api_url="https://wd.test/w/api.php")
    query = parse_qs(urlparse(resolver.build_url("fr", "Tour Eiffel")).query)
    assert query["sites"] == ["frwiki"]
    assert query["titles"] == ["Tour_Eiffel"]
    assert query["action"] == ["wbgetentities"]


def test_resolve_caches_hits_and_misses() -> None:
    resolver = FakeResolver(
        {
            "Douglas_Adams": {"entities": {"Q42": {}}},
            "Nope": {"entities": {"-1": {"missing": ""}}},
        }
    )

    async def scenario() -> list:
        return [
            await resolver.resolve("en", "Douglas Adams"),
            await resolver.resolve("en", "Douglas Adams"),
            await resolver.resolve("en", "Nope"),
            await resolver.resolve("en", "Nope"),
        ]

    assert asyncio.run(scenario()) == ["Q42", "Q42", None, None]
    assert len(resolver.calls) == 2


def test_resolve_does_not_cache_failures() -> None:
    resolver = FakeResolver({"Flaky": urllib.error.URLError("down")})

    async def scenario() -> None:
        assert await resolver.resolve("en", "Flaky") is None
        resolver.responses["Flaky"] = {"entities": {"Q1": {}}}
        assert await resolver.resolve("en", "Flaky") == "Q1"

    asyncio.run(scenario())
    assert len(resolver.calls) == 2


def test_cache_is_bounded() -> None:
    resolver = FakeResolver({"A": {"entities": {"Q1": {}}}, "B": {"entities": {"Q2": {}}}}, cache_size=1)

    async def scenario() -> None:
        await resolver.resolve("en", "A")
        await resolver.resolve("en", "B")
        await resolver.resolve("en", "A")

    asyncio.run(scenario())
    assert len(resolver.calls) == 3
