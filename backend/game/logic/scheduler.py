"""
Time primitives injected into the play state machine and pollers.

The game never calls ``asyncio.sleep`` or ``time.monotonic`` directly; it goes
through a Scheduler so tests can substitute an instantaneous clock.
"""

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

logger = structlog.get_logger()

PeriodicCallback = Callable[[], Awaitable[None]]


class PeriodicHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Clock, suspension and fixed-interval repetition."""

    def monotonic(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...

    def every(self, interval: float, callback: PeriodicCallback) -> PeriodicHandle: ...


class _IntervalTask:
    """Run a callback now and then every ``interval`` seconds until cancelled.

    Each tick is spawned as its own task, so a slow callback does not delay the
    next tick. Cancelling also cancels ticks that are still in flight.
    """

    def __init__(self, interval: float, callback: PeriodicCallback) -> None:
        self._interval = interval
        self._callback = callback
        self._in_flight: set[asyncio.Task[None]] = set()
        self._loop_task: asyncio.Task[None] = asyncio.create_task(self._run())

    @property
    def active(self) -> bool:
        return not self._loop_task.done()

    def cancel(self) -> None:
        self._loop_task.cancel()
        for task in list(self._in_flight):
            task.cancel()
        self._in_flight.clear()

    async def _run(self) -> None:
        while True:
            tick = asyncio.create_task(self._tick())
            self._in_flight.add(tick)
            tick.add_done_callback(self._in_flight.discard)
            await asyncio.sleep(self._interval)

    async def _tick(self) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            try:
                await self._callback()
            except Exception:
                logger.exception("periodic callback failed")


class AsyncioScheduler:
    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def every(self, interval: float, callback: PeriodicCallback) -> PeriodicHandle:
        return _IntervalTask(interval, callback)
