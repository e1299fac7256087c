import asyncio

from game.logic.scheduler import AsyncioScheduler


class TestAsyncioScheduler:
    async def test_monotonic_advances(self):
        scheduler = AsyncioScheduler()
        before = scheduler.monotonic()
        await scheduler.sleep(0.01)
        assert scheduler.monotonic() > before

    async def test_every_runs_immediately_and_repeats(self):
        scheduler = AsyncioScheduler()
        calls = 0
        twice = asyncio.Event()

        async def tick():
            nonlocal calls
            calls += 1
            if calls >= 2:
                twice.set()

        handle = scheduler.every(0.01, tick)
        await asyncio.wait_for(twice.wait(), timeout=1.0)
        handle.cancel()
        await asyncio.sleep(0.01)

        assert handle.active is False

    async def test_cancel_stops_in_flight_ticks(self):
        scheduler = AsyncioScheduler()
        started = asyncio.Event()
        finished = False

        async def slow():
            nonlocal finished
            started.set()
            await asyncio.sleep(10)
            finished = True

        handle = scheduler.every(10, slow)
        await asyncio.wait_for(started.wait(), timeout=1.0)
        handle.cancel()
        await asyncio.sleep(0.01)

        assert finished is False
        assert handle.active is False

    async def test_failing_callback_keeps_interval_alive(self, caplog):
        scheduler = AsyncioScheduler()
        calls = 0
        twice = asyncio.Event()

        async def boom():
            nonlocal calls
            calls += 1
            if calls >= 2:
                twice.set()
            raise RuntimeError("tick failed")

        handle = scheduler.every(0.01, boom)
        await asyncio.wait_for(twice.wait(), timeout=1.0)
        handle.cancel()

        assert "periodic callback failed" in caplog.text
