"""Bridge from synchronous change events to an async notifier.

Detection publishes from inside its scan; delivery may take seconds over the
network. The dispatcher queues events and sends them one at a time so the
sink sees them in emission order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from core.events import ChangeNotifier, InterestingChange
from core.ports import NotifierPort

LOGGER = logging.getLogger(__name__)


class NotificationDispatcher:
    """Queue interesting changes and deliver them through a NotifierPort."""

    def __init__(self, notifier: NotifierPort) -> None:
        self._notifier = notifier
        self._queue: "asyncio.Queue[InterestingChange]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.sent = 0
        self.failed = 0

    def attach(self, change_notifier: ChangeNotifier) -> None:
        self._unsubscribe = change_notifier.subscribe(self.enqueue)

    def enqueue(self, event: InterestingChange) -> None:
        self._queue.put_nowait(event)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run(), name="notification-dispatcher")

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""

        await self._queue.join()

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._notifier.send(event)
                self.sent += 1
            except Exception:
                self.failed += 1
                LOGGER.exception("Failed to deliver notification for %s", event.entity_id)
            finally:
                self._queue.task_done()
