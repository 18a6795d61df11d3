"""
Tests for dispatching creation events
"""
import asyncio

import pytest

from models.coffee_record import CoffeeCreatedEvent, CoffeeRecord, RecordStatus
from services.record_trigger import RecordTrigger


class SlowProcessor:
    """Processor stand-in that records how many handlers run at once."""

    def __init__(self):
        self.running = 0
        self.peak = 0
        self.handled = []

    async def handle(self, event):
        self.running += 1
        self.peak = max(self.peak, self.running)
        await asyncio.sleep(0.01)
        self.running -= 1
        self.handled.append(event.record_id)
        return RecordStatus.COMPLETED


def make_event(record_id):
    return CoffeeCreatedEvent(record_id=record_id, data=CoffeeRecord(id=record_id))


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    processor = SlowProcessor()
    trigger = RecordTrigger(processor, max_instances=2)

    tasks = [trigger.fire(make_event(f"r{i}")) for i in range(6)]
    results = await asyncio.gather(*tasks)

    assert results == [RecordStatus.COMPLETED] * 6
    assert processor.peak == 2
    assert sorted(processor.handled) == [f"r{i}" for i in range(6)]
    assert trigger.pending == 0


@pytest.mark.asyncio
async def test_drain_waits_for_running_handlers():
    processor = SlowProcessor()
    trigger = RecordTrigger(processor, max_instances=3)

    for i in range(3):
        trigger.fire(make_event(f"r{i}"))
    await trigger.drain(timeout=5)

    assert len(processor.handled) == 3
    assert trigger.pending == 0


@pytest.mark.asyncio
async def test_handler_failure_does_not_affect_other_tasks():
    class FlakyProcessor(SlowProcessor):
        async def handle(self, event):
            if event.record_id == "bad":
                raise RuntimeError("database is locked")
            return await super().handle(event)

    processor = FlakyProcessor()
    trigger = RecordTrigger(processor, max_instances=2)

    bad = trigger.fire(make_event("bad"))
    good = trigger.fire(make_event("good"))

    assert await good is RecordStatus.COMPLETED
    with pytest.raises(RuntimeError):
        await bad


def test_rejects_invalid_limit():
    with pytest.raises(ValueError):
        RecordTrigger(SlowProcessor(), max_instances=0)
