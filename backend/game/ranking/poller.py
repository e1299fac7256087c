"""
Periodic ranking refresh for the game and results views.

A poll is keyed by (user id, rounds). Starting a poll under a new key stops
the previous one first. Ticks may overlap, so every response is stamped with a
per-round sequence number and dropped if a newer one was already applied, or
if the poll it belongs to has since been stopped.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from game.logic.exceptions import RankingUnavailableError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from game.logic.scheduler import PeriodicHandle, Scheduler
    from game.ranking.client import RankingClient
    from game.ranking.types import RankingPage

logger = structlog.get_logger()

# (round_no, page) -> None
PageCallback = Callable[[int, "RankingPage"], None]


class RankingPoller:
    def __init__(self, client: RankingClient, scheduler: Scheduler, interval: float) -> None:
        self._client = client
        self._scheduler = scheduler
        self._interval = interval
        self._handle: PeriodicHandle | None = None
        self._key: tuple[str, tuple[int, ...]] | None = None
        self._generation = 0
        self._issued: dict[int, int] = {}
        self._applied: dict[int, int] = {}

    @property
    def key(self) -> tuple[str, tuple[int, ...]] | None:
        return self._key

    @property
    def active(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self, user_id: str, round_nos: Sequence[int], on_page: PageCallback) -> None:
        """Poll the given rounds now and then every interval; a no-op if already polling the same key."""
        if not user_id:
            return
        key = (user_id, tuple(round_nos))
        if key == self._key and self.active:
            return

        self.stop()
        self._key = key
        generation = self._generation
        self._issued = dict.fromkeys(key[1], 0)
        self._applied = dict.fromkeys(key[1], 0)

        async def poll() -> None:
            for round_no in key[1]:
                await self._poll_round(generation, user_id, round_no, on_page)

        self._handle = self._scheduler.every(self._interval, poll)
        logger.debug("ranking polling started", user_id=user_id, rounds=list(key[1]))

    def stop(self) -> None:
        """Cancel the poll; responses still in flight are discarded."""
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._key = None

    async def _poll_round(self, generation: int, user_id: str, round_no: int, on_page: PageCallback) -> None:
        if generation != self._generation:
            return
        self._issued[round_no] += 1
        sequence = self._issued[round_no]
        try:
            page = await self._client.fetch_ranking(user_id, round_no)
        except RankingUnavailableError as e:
            logger.debug("ranking refresh failed", round_no=round_no, error=str(e))
            return

        if generation != self._generation or sequence <= self._applied[round_no]:
            return
        self._applied[round_no] = sequence
        on_page(round_no, page)
