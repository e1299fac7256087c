"""
Round progression: where a returning player resumes, result submission, and
the ranking-gated unlock of the next round.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel

from game.logic.exceptions import RankingUnavailableError
from game.logic.settings import ROUND_MAX, UNLOCK_THRESHOLD

if TYPE_CHECKING:
    from game.ranking.client import RankingClient

logger = structlog.get_logger()


class RoundNavItem(BaseModel, frozen=True):
    """Navigation state of one round button relative to the current round."""

    round_no: int
    current: bool
    previous: bool
    next: bool
    future: bool
    enabled: bool

    @property
    def disabled(self) -> bool:
        return not self.current and not self.enabled


class ProgressionController:
    def __init__(
        self,
        client: RankingClient,
        *,
        unlock_threshold: int = UNLOCK_THRESHOLD,
        round_max: int = ROUND_MAX,
    ) -> None:
        self._client = client
        self._unlock_threshold = unlock_threshold
        self._round_max = round_max
        self._current_round = 1
        self._next_unlocked = False

    @property
    def current_round(self) -> int:
        return self._current_round

    @property
    def next_unlocked(self) -> bool:
        return self._next_unlocked

    async def resume_round(self, user_id: str) -> int | None:
        """Return the first round the player has not cleared, or None when every round is cleared."""
        rounds = range(1, self._round_max + 1)
        cleared = await asyncio.gather(*(self._round_cleared(user_id, round_no) for round_no in rounds))
        for round_no, is_cleared in zip(rounds, cleared, strict=True):
            if not is_cleared:
                return round_no
        return None

    async def _round_cleared(self, user_id: str, round_no: int) -> bool:
        try:
            page = await self._client.fetch_ranking(user_id, round_no)
        except RankingUnavailableError as e:
            logger.info("clear status unknown, treating round as not cleared", round_no=round_no, error=str(e))
            return False
        return any(entry.belongs_to(user_id) and entry.has_clear_time for entry in page.ranking)

    async def submit_result(self, user_id: str, round_no: int, search_count: int, clear_time_ms: int) -> bool:
        """Deliver a cleared round once; failures are logged and never retried."""
        delivered = await self._client.submit_result(user_id, round_no, search_count, clear_time_ms)
        if delivered:
            logger.info("result submitted", round_no=round_no, search_count=search_count, clear_time_ms=clear_time_ms)
        else:
            logger.warning("result not acknowledged, not retrying", round_no=round_no)
        return delivered

    def reset_for_round(self, round_no: int) -> None:
        """A new round started: the next-round affordance is disabled until the threshold is met again."""
        self._current_round = round_no
        self._next_unlocked = False

    def unlock_next(self, round_no: int, ranking_count: int) -> bool:
        """Record a ranking participant count and return whether the next round is open."""
        if round_no != self._current_round or self._current_round >= self._round_max:
            return self._next_unlocked
        if not self._next_unlocked and ranking_count >= self._unlock_threshold:
            self._next_unlocked = True
            logger.info("next round unlocked", round_no=round_no, participants=ranking_count)
        return self._next_unlocked

    def can_enter(self, round_no: int) -> bool:
        """Navigation may only move to the immediately following round once it is unlocked."""
        return self._next_unlocked and round_no == self._current_round + 1

    def nav_state(self) -> list[RoundNavItem]:
        current = self._current_round
        return [
            RoundNavItem(
                round_no=round_no,
                current=round_no == current,
                previous=round_no < current,
                next=round_no == current + 1,
                future=round_no > current + 1,
                enabled=round_no == current + 1 and self._next_unlocked,
            )
            for round_no in range(1, self._round_max + 1)
        ]
