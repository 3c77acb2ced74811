from __future__ import annotations

import asyncio

import pytest

from photo_capture.core.errors import SessionCancelled
from photo_capture.services.countdown import CountdownController, countdown_text


def test_emits_n_ticks_then_completes():
    ticks = []

    async def go():
        await CountdownController(interval=0.01).run(3, on_tick=ticks.append)
        ticks.append("done")

    asyncio.run(go())
    assert ticks == [3, 2, 1, "done"]


def test_zero_seconds_completes_without_ticks():
    ticks = []
    asyncio.run(CountdownController(interval=0.01).run(0, on_tick=ticks.append))
    assert ticks == []


def test_cancel_at_tick_stops_further_ticks():
    ticks = []

    async def go():
        c = CountdownController(interval=0.05)

        def on_tick(t):
            ticks.append(t)
            if t == 3:
                c.cancel()

        with pytest.raises(SessionCancelled):
            await c.run(5, on_tick=on_tick)
        assert c.cancelled

    asyncio.run(go())
    assert ticks == [5, 4, 3]


def test_shared_cancel_event():
    async def go():
        event = asyncio.Event()
        c = CountdownController(interval=10.0, cancel_event=event)
        task = asyncio.create_task(c.run(2))
        await asyncio.sleep(0.01)
        event.set()
        with pytest.raises(SessionCancelled):
            await asyncio.wait_for(task, timeout=1.0)

    asyncio.run(go())


def test_countdown_text():
    assert countdown_text(2) == "2"
    assert countdown_text(1) == "1"
    assert countdown_text(0) == ""
    assert countdown_text(-1) == ""
