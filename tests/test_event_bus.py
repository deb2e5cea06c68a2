import asyncio

import pytest

from fedi_delete.core.event_bus import QUOTE_REVOKED, STATUS_REMOVED, EventBus


@pytest.mark.asyncio
async def test_publish_reaches_sync_and_async_listeners():
    bus = EventBus()
    seen = []
    done = asyncio.Event()

    async def on_removed(data):
        seen.append(("async", data))
        done.set()

    bus.subscribe(STATUS_REMOVED, lambda data: seen.append(("sync", data)))
    bus.subscribe(STATUS_REMOVED, on_removed)

    assert await bus.publish(STATUS_REMOVED, 42) == 2
    await asyncio.wait_for(done.wait(), timeout=1)

    assert sorted(seen) == [("async", 42), ("sync", 42)]


@pytest.mark.asyncio
async def test_failing_listener_does_not_stop_others():
    bus = EventBus()
    seen = []

    def broken(data):
        raise RuntimeError("boom")

    bus.subscribe(QUOTE_REVOKED, broken)
    bus.subscribe(QUOTE_REVOKED, seen.append)

    await bus.publish(QUOTE_REVOKED, 7)

    assert seen == [7]


@pytest.mark.asyncio
async def test_unsubscribe():
    bus = EventBus()
    seen = []
    bus.subscribe(STATUS_REMOVED, seen.append)
    bus.unsubscribe(STATUS_REMOVED, seen.append)

    assert await bus.publish(STATUS_REMOVED, 1) == 0
    assert seen == []
