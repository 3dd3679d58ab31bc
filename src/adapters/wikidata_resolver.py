"""Wikidata entity resolution adapter.

Maps a (language, page title) pair to the Wikidata item id shared by every
language edition of the article.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from collections import OrderedDict
from typing import Optional, Tuple

LOGGER = logging.getLogger(__name__)

WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
MISSING_ENTITY_KEY = "-1"


def entity_from_response(payload: dict) -> Optional[str]:
    """Return the first real entity id of a wbgetentities response."""

    entities = payload.get("entities") or {}
    for key, entity in entities.items():
        if key == MISSING_ENTITY_KEY:
            continue
        if isinstance(entity, dict) and "missing" in entity:
            continue
        return key
    return None


class WikidataResolver:
    """Resolve page titles through wbgetentities, with an LRU cache.

    Misses are cached too; network failures are not, so the next edit of the
    same page retries.
    """

    def __init__(
        self,
        api_url: str = WIKIDATA_API_URL,
        user_agent: str = "wikiburst",
        timeout: float = 10.0,
        cache_size: int = 10000,
    ) -> None:
        self._api_url = api_url
        self._user_agent = user_agent
        self._timeout = timeout
        self._cache_size = cache_size
        self._cache: "OrderedDict[Tuple[str, str], Optional[str]]" = OrderedDict()

    def build_url(self, language_code: str, title: str) -> str:
        params = {
            "action": "wbgetentities",
            "sites": f"{language_code}wiki",
            "titles": title.replace(" ", "_"),
            "props": "info",
            "format": "json",
        }
        return f"{self._api_url}?{urllib.parse.urlencode(params)}"

    def _fetch_json(self, url: str) -> dict:
        request = urllib.request.Request(url)
        request.add_header("User-Agent", self._user_agent)
        with urllib.request.urlopen(request, timeout=self._timeout) as response:
            if response.status != 200:
                raise urllib.error.URLError(f"Wikidata request failed with status {response.status}")
            return json.loads(response.read().decode("utf-8"))

    def _remember(self, key: Tuple[str, str], entity_id: Optional[str]) -> None:
        self._cache[key] = entity_id
        self._cache.move_to_end(key)
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)

    async def resolve(self, language_code: str, title: str) -> Optional[str]:
        key = (language_code, title)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        url = self.build_url(language_code, title)
        try:
            payload = await asyncio.to_thread(self._fetch_json, url)
        except (urllib.error.URLError, OSError, ValueError) as e:
            LOGGER.warning("Wikidata lookup failed for %s:%s (%s)", language_code, title, e)
            return None

        entity_id = entity_from_response(payload)
        self._remember(key, entity_id)
        return entity_id
