"""
Per-round play state and the row activation protocol.

Phases: IDLE (no round) -> PLAYING -> CLEARED. A row can be activated at most
once, only while PLAYING and only when no reveal or intro suspension is in
flight. Activating the target row clears the round; CLEARED is terminal until
the next start_round. Calls that break the protocol are ignored, not errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from game.logic.enums import MatchStatus, PlayPhase
from game.logic.types import ActivationOutcome, RowView

if TYPE_CHECKING:
    from collections.abc import Sequence

    from game.logic.presenter import Presenter
    from game.logic.rounds import RoundConfig
    from game.logic.scheduler import Scheduler
    from roster.models import RoundEntry

logger = structlog.get_logger()


@dataclass
class PlayState:
    """Mutable state of one round instance.

    Invariant: cleared implies cleared_at is set and the target row is revealed.
    """

    revealed: list[bool] = field(default_factory=list)
    visited: list[bool] = field(default_factory=list)
    statuses: list[MatchStatus | None] = field(default_factory=list)
    search_count: int = 0
    started_at: float | None = None  # scheduler.monotonic() seconds
    cleared_at: float | None = None
    cleared: bool = False

    @classmethod
    def fresh(cls, size: int) -> PlayState:
        return cls(revealed=[False] * size, visited=[False] * size, statuses=[None] * size)


class RoundStateMachine:
    def __init__(self, scheduler: Scheduler, presenter: Presenter) -> None:
        self._scheduler = scheduler
        self._presenter = presenter
        self._entries: tuple[RoundEntry, ...] = ()
        self._state = PlayState()
        self._phase = PlayPhase.IDLE
        self._revealing = False
        self._intro_active = False
        self._generation = 0

    @property
    def phase(self) -> PlayPhase:
        return self._phase

    @property
    def entries(self) -> tuple[RoundEntry, ...]:
        return self._entries

    @property
    def state(self) -> PlayState:
        return self._state

    @property
    def busy(self) -> bool:
        """True while a reveal or intro suspension is in flight."""
        return self._revealing or self._intro_active

    @property
    def elapsed_ms(self) -> int | None:
        """Elapsed play time: frozen at clear, live while playing, None before the first activation."""
        if self._state.started_at is None:
            return None
        end = self._state.cleared_at if self._state.cleared_at is not None else self._scheduler.monotonic()
        return max(0, round((end - self._state.started_at) * 1000))

    def start_round(self, entries: Sequence[RoundEntry]) -> None:
        """Reset play state for a freshly built roster; an empty roster leaves the machine idle."""
        self._generation += 1
        self._entries = tuple(entries)
        self._state = PlayState.fresh(len(self._entries))
        self._revealing = False
        self._intro_active = False
        self._phase = PlayPhase.PLAYING if self._entries else PlayPhase.IDLE

    def reset(self) -> None:
        """Discard the round and return to IDLE."""
        self.start_round(())

    async def play_intro(self, config: RoundConfig) -> None:
        """Hold the round intro; activations are rejected until it finishes."""
        generation = self._generation
        self._intro_active = True
        try:
            await self._presenter.intro(config)
        finally:
            if generation == self._generation:
                self._intro_active = False

    async def activate(self, index: int) -> ActivationOutcome | None:
        """Reveal one row. Returns None when the call is ignored by the protocol."""
        if self._phase is not PlayPhase.PLAYING or self.busy:
            return None
        if not 0 <= index < len(self._entries) or self._state.revealed[index]:
            return None

        generation = self._generation
        entry = self._entries[index]
        state = self._state
        self._revealing = True
        state.search_count += 1
        if state.started_at is None:
            state.started_at = self._scheduler.monotonic()

        try:
            await self._presenter.reveal(index, entry)
        finally:
            if generation == self._generation:
                self._revealing = False

        if generation != self._generation:
            # a new round started while this reveal was suspended
            return None

        status = MatchStatus.MATCHED if entry.is_target else MatchStatus.UNMATCHED
        state.revealed[index] = True
        state.visited[index] = True
        state.statuses[index] = status

        if not entry.is_target:
            return ActivationOutcome(index=index, status=status, search_count=state.search_count)

        clear_time_ms = self._enter_cleared()
        return ActivationOutcome(
            index=index,
            status=status,
            search_count=state.search_count,
            cleared=True,
            clear_time_ms=clear_time_ms,
        )

    def _enter_cleared(self) -> int:
        state = self._state
        state.cleared_at = self._scheduler.monotonic()
        state.cleared = True
        self._phase = PlayPhase.CLEARED
        state.revealed = [True] * len(self._entries)
        clear_time_ms = self.elapsed_ms or 0
        logger.info("round cleared", search_count=state.search_count, clear_time_ms=clear_time_ms)
        return clear_time_ms

    def rows(self, *, index_column: bool = False) -> list[RowView]:
        """Row views for display; unrevealed rows expose nothing but their position."""
        views: list[RowView] = []
        for i, entry in enumerate(self._entries):
            marker = (entry.index or "") if index_column else ""
            if not self._state.revealed[i]:
                views.append(RowView(position=i + 1, revealed=False, index=marker))
                continue
            views.append(
                RowView(
                    position=i + 1,
                    revealed=True,
                    unvisited=self._state.cleared and not self._state.visited[i],
                    status=self._state.statuses[i],
                    index=marker,
                    year=entry.year,
                    class_name=entry.class_name,
                    no=entry.no,
                    name=entry.name,
                    kana=entry.kana,
                ),
            )
        return views
