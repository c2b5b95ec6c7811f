import asyncio
import logging
import threading

import pytest

from smsoutbox.infrastructure.scheduling.loop_timer import LoopWakeTimer
from tests.fakes import ManualClock


async def _settle(seconds: float = 0.05) -> None:
    await asyncio.sleep(seconds)


@pytest.mark.asyncio
async def test_fires_once_at_requested_time():
    clock = ManualClock()
    timer = LoopWakeTimer(asyncio.get_running_loop(), clock=clock)
    fired = []

    timer.schedule("k", clock.now + 0.01, lambda: fired.append("k"))
    await asyncio.sleep(0)
    assert timer.pending() == ["k"]
    await _settle()

    assert fired == ["k"]
    assert timer.pending() == []


@pytest.mark.asyncio
async def test_past_time_fires_immediately():
    clock = ManualClock()
    timer = LoopWakeTimer(asyncio.get_running_loop(), clock=clock)
    fired = []

    timer.schedule("k", clock.now - 100, lambda: fired.append(1))
    await _settle(0.01)

    assert fired == [1]


@pytest.mark.asyncio
async def test_rescheduling_a_key_replaces_pending_callback():
    clock = ManualClock()
    timer = LoopWakeTimer(asyncio.get_running_loop(), clock=clock)
    fired = []

    timer.schedule("dequeue", clock.now + 0.01, lambda: fired.append("first"))
    timer.schedule("dequeue", clock.now + 0.02, lambda: fired.append("second"))
    timer.schedule("other", clock.now + 0.01, lambda: fired.append("other"))
    await _settle()

    assert sorted(fired) == ["other", "second"]


@pytest.mark.asyncio
async def test_cancel_drops_callback():
    clock = ManualClock()
    timer = LoopWakeTimer(asyncio.get_running_loop(), clock=clock)
    fired = []

    timer.schedule("retry:a", clock.now + 0.01, lambda: fired.append(1))
    timer.cancel("retry:a")
    timer.cancel("never-scheduled")
    await _settle()

    assert fired == []


@pytest.mark.asyncio
async def test_schedule_from_another_thread():
    clock = ManualClock()
    timer = LoopWakeTimer(asyncio.get_running_loop(), clock=clock)
    fired = asyncio.Event()

    t = threading.Thread(target=timer.schedule, args=("k", clock.now, fired.set))
    t.start()
    t.join()

    await asyncio.wait_for(fired.wait(), timeout=1)


@pytest.mark.asyncio
async def test_failing_callback_is_logged(caplog):
    timer = LoopWakeTimer(asyncio.get_running_loop())

    def boom():
        raise RuntimeError("kaboom")

    with caplog.at_level(logging.ERROR):
        timer.schedule("k", 0, boom)
        await _settle(0.01)

    assert "deferred callback failed" in caplog.text


@pytest.mark.asyncio
async def test_close_cancels_everything():
    clock = ManualClock()
    timer = LoopWakeTimer(asyncio.get_running_loop(), clock=clock)
    fired = []
    timer.schedule("a", clock.now + 0.01, lambda: fired.append("a"))
    timer.schedule("b", clock.now + 0.01, lambda: fired.append("b"))
    await asyncio.sleep(0)

    timer.close()
    await _settle()

    assert fired == []
