"""
Presentation hooks the state machine suspends on.

A presenter performs the visual part of a reveal or a round intro. The state
machine awaits it and rejects new activations until it returns; it never
inspects what the presenter draws.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from game.logic.rounds import RoundConfig
    from game.logic.scheduler import Scheduler
    from game.logic.settings import GameSettings
    from roster.models import RoundEntry


class Presenter(Protocol):
    async def reveal(self, index: int, entry: RoundEntry) -> None: ...

    async def intro(self, config: RoundConfig) -> None: ...


class TimedPresenter:
    """Headless presenter that only reproduces the animations' durations.

    A reveal steps through the reading one character at a time; an intro holds
    and then fades out.
    """

    def __init__(self, scheduler: Scheduler, settings: GameSettings) -> None:
        self._scheduler = scheduler
        self._settings = settings

    async def reveal(self, index: int, entry: RoundEntry) -> None:  # noqa: ARG002
        for _ in entry.kana:
            await self._scheduler.sleep(self._settings.match_step_seconds)

    async def intro(self, config: RoundConfig) -> None:  # noqa: ARG002
        await self._scheduler.sleep(self._settings.intro_hold_seconds)
        await self._scheduler.sleep(self._settings.intro_fade_seconds)
