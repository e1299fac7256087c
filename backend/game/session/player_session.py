"""
One player's path through the four rounds.

PlayerSession wires the roster builder, the play state machine, progression
and the ranking pollers together and owns every piece of mutable state for a
single identity. All transitions go through its methods; pollers only write
back through callbacks that check they still belong to the current round.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from game.logic.enums import Notice, PlayPhase, Screen
from game.logic.rounds import ROUND_CONFIG, format_clear_time
from game.logic.settings import ROUND_MAX
from game.session.identity import resolve_notice
from game.session.views import SessionView, ranking_rows
from roster.models import BuiltRound

if TYPE_CHECKING:
    from game.logic.progression import ProgressionController
    from game.logic.state_machine import RoundStateMachine
    from game.logic.types import ActivationOutcome
    from game.ranking.poller import RankingPoller
    from game.ranking.types import RankingPage
    from roster.builder import RoundRosterBuilder
    from roster.models import RosterRecord
    from roster.repository import RosterRepository

logger = structlog.get_logger()


class PlayerSession:
    def __init__(
        self,
        repository: RosterRepository,
        builder: RoundRosterBuilder,
        machine: RoundStateMachine,
        progression: ProgressionController,
        ranking_poller: RankingPoller,
        result_poller: RankingPoller,
        user_id: str = "",
    ) -> None:
        self._repository = repository
        self._builder = builder
        self._machine = machine
        self._progression = progression
        self._ranking_poller = ranking_poller
        self._result_poller = result_poller

        self.user_id = user_id.strip()
        self.user: RosterRecord | None = None
        self.notice = Notice.NONE
        self.screen = Screen.TITLE
        self.current_round = 1
        self.built = BuiltRound()
        self.ranking: dict[int, RankingPage] = {}
        self.results: dict[int, RankingPage] = {}
        self.all_complete = False
        self._resolving = False
        self.last_active = 0.0
        self._sync_user()

    @property
    def machine(self) -> RoundStateMachine:
        return self._machine

    @property
    def progression(self) -> ProgressionController:
        return self._progression

    @property
    def ready(self) -> bool:
        return self._current_notice() is Notice.NONE

    def touch(self, now: float) -> None:
        self.last_active = now

    def idle_for(self, now: float) -> float:
        return now - self.last_active

    def ensure_ready(self) -> bool:
        """Refresh the notice and report whether a round may be played."""
        self.notice = self._current_notice()
        return self.notice is Notice.NONE

    def change_identity(self, user_id: str) -> None:
        """Switch to another player id: stop every poll, drop the round, return to the title screen."""
        self._stop_polling()
        self._machine.reset()
        self.built = BuiltRound()
        self.ranking.clear()
        self.results.clear()
        self.all_complete = False
        self.screen = Screen.TITLE
        self.user_id = user_id.strip()
        self._sync_user()
        if self.user_id and self.notice is Notice.NONE:
            self.notice = Notice.IDENTITY_CHANGED
        logger.info("player identity changed", user_id=self.user_id)

    async def start(self) -> int | None:
        """Resume at the first uncleared round, or open the results view when all are cleared.

        Returns the round started, or None when nothing was started.
        """
        if self._resolving or not self.ensure_ready():
            return None

        user_id = self.user_id
        self._resolving = True
        try:
            next_round = await self._progression.resume_round(user_id)
        finally:
            self._resolving = False
        if user_id != self.user_id:
            return None

        if next_round is None:
            self.all_complete = True
            self.current_round = ROUND_MAX
            self._progression.reset_for_round(ROUND_MAX)
            self._apply_roster()
            self.show_results()
            return None

        await self.start_round(next_round, show_intro=True)
        return next_round

    async def start_round(self, round_no: int, *, show_intro: bool = True) -> bool:
        config = ROUND_CONFIG.get(round_no)
        if config is None or not self.ensure_ready():
            return False

        self.current_round = round_no
        self._progression.reset_for_round(round_no)
        self._result_poller.stop()
        self.screen = Screen.GAME
        self._apply_roster()
        logger.info("round started", user_id=self.user_id, round_no=round_no, rows=len(self.built.entries))

        if show_intro and self._machine.phase is PlayPhase.PLAYING:
            await self._machine.play_intro(config)
        return True

    async def enter_round(self, round_no: int) -> bool:
        """Navigate to the next round; only allowed once the ranking unlocked it."""
        if not self._progression.can_enter(round_no):
            return False
        return await self.start_round(round_no, show_intro=True)

    async def activate(self, index: int) -> ActivationOutcome | None:
        if self.screen is not Screen.GAME or not self.ensure_ready():
            return None

        user_id = self.user_id
        round_no = self.current_round
        outcome = await self._machine.activate(index)
        if outcome is None or not outcome.cleared:
            return outcome

        await self._progression.submit_result(user_id, round_no, outcome.search_count, outcome.clear_time_ms or 0)
        if user_id == self.user_id and round_no == self.current_round:
            self._ranking_poller.start(user_id, [round_no], self._on_ranking_page)
        return outcome

    @property
    def can_show_results(self) -> bool:
        if not self.user_id:
            return False
        final_cleared = self.current_round == ROUND_MAX and self._machine.phase is PlayPhase.CLEARED
        return final_cleared or self.all_complete

    def show_results(self) -> bool:
        """Switch to the all-rounds results view and poll every round's ranking."""
        if not self.can_show_results:
            return False
        self.screen = Screen.RESULT
        self._ranking_poller.stop()
        self._result_poller.start(self.user_id, range(1, ROUND_MAX + 1), self._on_result_page)
        return True

    def close(self) -> None:
        self._stop_polling()
        self._machine.reset()

    def view(self) -> SessionView:
        meta = self.built.meta
        index_column = bool(meta and meta.index_column)
        elapsed_ms = self._machine.elapsed_ms
        current = self.ranking.get(self.current_round)
        return SessionView(
            user_id=self.user_id,
            notice=self.notice.value,
            screen=self.screen,
            round=ROUND_CONFIG.get(self.current_round) if self.screen is not Screen.TITLE else None,
            phase=self._machine.phase,
            busy=self._machine.busy,
            index_column=index_column,
            kana_sorted=bool(meta and meta.kana_sorted),
            search_count=self._machine.state.search_count,
            elapsed=format_clear_time(elapsed_ms),
            clear_time_ms=elapsed_ms if self._machine.phase is PlayPhase.CLEARED else None,
            rows=self._machine.rows(index_column=index_column),
            nav=self._progression.nav_state(),
            next_unlocked=self._progression.next_unlocked,
            ranking=ranking_rows(current.ranking, self.user_id) if current else [],
            results={no: ranking_rows(page.ranking, self.user_id) for no, page in sorted(self.results.items())},
            show_result_link=self.current_round == ROUND_MAX and self._machine.phase is PlayPhase.CLEARED,
        )

    def _current_notice(self) -> Notice:
        return resolve_notice(
            self.user_id,
            roster_ready=self._repository.ready,
            roster_empty=not self._repository.records,
            user=self.user,
        )

    def _sync_user(self) -> None:
        self.user = self._repository.get_user_by_id(self.user_id) if self._repository.ready else None
        self.notice = self._current_notice()

    def _apply_roster(self) -> None:
        self._ranking_poller.stop()
        self.ranking.pop(self.current_round, None)
        self.built = self._builder.build(self.current_round, self.user)
        self._machine.start_round(self.built.entries)
        if self.built.playable:
            self._ranking_poller.start(self.user_id, [self.current_round], self._on_ranking_page)

    def _on_ranking_page(self, round_no: int, page: RankingPage) -> None:
        if round_no != self.current_round or self.screen is not Screen.GAME:
            return
        self.ranking[round_no] = page
        self._progression.unlock_next(round_no, page.participant_count)

    def _on_result_page(self, round_no: int, page: RankingPage) -> None:
        if self.screen is not Screen.RESULT:
            return
        self.results[round_no] = page

    def _stop_polling(self) -> None:
        self._ranking_poller.stop()
        self._result_poller.stop()
