"""Dispatch coffee creation events to the processor as background tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from models.coffee_record import CoffeeCreatedEvent, RecordStatus
from services.coffee_processor import CoffeeProcessor

LOGGER = logging.getLogger(__name__)


class RecordTrigger:
    """Run one handler task per creation event, at most `max_instances` at a time.

    Tasks are independent: no ordering across records and no mutual
    exclusion for the same record.
    """

    def __init__(self, processor: CoffeeProcessor, max_instances: int = 10) -> None:
        if max_instances < 1:
            raise ValueError("max_instances must be at least 1")
        self.processor = processor
        self.max_instances = max_instances
        self._slots = asyncio.Semaphore(max_instances)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def fire(self, event: CoffeeCreatedEvent) -> asyncio.Task:
        """Schedule the handler for `event` and return its task."""
        task = asyncio.create_task(self._run(event), name=f"coffee-{event.record_id}")
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        # Failures were already logged by _run; mark them as retrieved.
        if not task.cancelled():
            task.exception()

    async def _run(self, event: CoffeeCreatedEvent) -> Optional[RecordStatus]:
        async with self._slots:
            try:
                return await self.processor.handle(event)
            except Exception:
                LOGGER.exception("Handler for coffee document %s failed", event.record_id)
                raise

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for running handlers; cancel whatever is left after `timeout` seconds."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(list(self._tasks), timeout=timeout)
        for task in still_running:
            LOGGER.warning("Cancelling unfinished handler %s", task.get_name())
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
