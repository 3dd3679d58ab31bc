"""Periodic asyncio tasks used by the aggregator."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


class PeriodicTask:
    """Run a synchronous callback every ``interval_seconds`` until stopped."""

    def __init__(self, name: str, interval_seconds: float, callback: Callable[[], object]) -> None:
        self.name = name
        self._interval = interval_seconds
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""

        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._callback()
            except Exception:
                LOGGER.exception("Periodic task %s failed", self.name)
