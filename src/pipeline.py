"""Ingestion pipeline for recent-change events.

The pipeline enforces a strict order:
1) Map the raw stream event to an edit payload (drop bots, non-articles)
2) Resolve the page to its cross-language entity id
3) Validate into an EditRecord
4) Add it to the aggregator

Events that fail validation are logged and dropped; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Collection, Optional

from adapters.recent_changes import build_edit_payload
from core.aggregator import ChangesAggregator, now_ms
from core.models import EditRecord, InvalidRecord
from core.ports import EntityResolverPort

LOGGER = logging.getLogger(__name__)


class EditIngestor:
    """Feeds normalized edits into the aggregator."""

    def __init__(
        self,
        aggregator: ChangesAggregator,
        resolver: EntityResolverPort,
        languages: Optional[Collection[str]] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._aggregator = aggregator
        self._resolver = resolver
        self._languages = set(languages or ())
        self._clock = clock
        self.accepted = 0
        self.rejected = 0
        self.unresolved = 0

    async def handle(self, event: dict) -> bool:
        """Process one stream event. Returns True if an edit was recorded."""

        payload = build_edit_payload(event, self._clock(), self._languages)
        if payload is None:
            return False

        title = payload.get("title")
        if not title:
            self.rejected += 1
            LOGGER.warning("Dropping edit without title from %s", payload.get("language_code"))
            return False

        entity_id = await self._resolver.resolve(payload["language_code"], title)
        if entity_id is None:
            self.unresolved += 1
            LOGGER.debug("No entity for %s:%s", payload["language_code"], title)
            return False

        try:
            record = EditRecord.from_mapping({**payload, "entity_id": entity_id})
        except InvalidRecord as e:
            self.rejected += 1
            LOGGER.warning("Dropping invalid edit of %s:%s (%s)", payload["language_code"], title, e)
            return False

        self._aggregator.add_record(record)
        self.accepted += 1
        return True

    async def consume(self, queue: "asyncio.Queue[dict]") -> None:
        """Handle events from ``queue`` until cancelled."""

        while True:
            event = await queue.get()
            try:
                await self.handle(event)
            except Exception:
                LOGGER.exception("Error while processing recent change")
            finally:
                queue.task_done()
