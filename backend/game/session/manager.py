"""Registry of player sessions sharing one roster, builder and ranking client."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from game.logic.exceptions import DataUnavailableError, IdentityUnresolvedError
from game.logic.presenter import TimedPresenter
from game.logic.progression import ProgressionController
from game.logic.scheduler import AsyncioScheduler
from game.logic.settings import GameSettings
from game.logic.state_machine import RoundStateMachine
from game.ranking.poller import RankingPoller
from game.session.player_session import PlayerSession
from roster.builder import RoundRosterBuilder

if TYPE_CHECKING:
    from game.logic.presenter import Presenter
    from game.logic.scheduler import PeriodicHandle, Scheduler
    from game.ranking.client import RankingClient
    from roster.repository import RosterRepository

logger = structlog.get_logger()

_SESSION_REAPER_INTERVAL = 60  # seconds between idle session checks


class SessionManager:
    def __init__(
        self,
        repository: RosterRepository,
        client: RankingClient,
        settings: GameSettings | None = None,
        scheduler: Scheduler | None = None,
        presenter: Presenter | None = None,
        builder: RoundRosterBuilder | None = None,
    ) -> None:
        self._repository = repository
        self._client = client
        self._settings = settings or GameSettings()
        self._scheduler = scheduler or AsyncioScheduler()
        self._presenter = presenter or TimedPresenter(self._scheduler, self._settings)
        self._builder = builder or RoundRosterBuilder(repository)
        self._sessions: dict[str, PlayerSession] = {}
        self._reaper: PeriodicHandle | None = None

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def get_session(self, user_id: str) -> PlayerSession | None:
        return self._sessions.get(user_id.strip())

    def get_or_create(self, user_id: str) -> PlayerSession:
        """Return the session for a roster member, creating it on first use.

        Every lookup counts as activity for the idle reaper. Raises
        DataUnavailableError when the roster is not usable, and
        IdentityUnresolvedError for a missing or unknown id.
        """
        key = self._require_member(user_id)
        session = self._sessions.get(key)
        if session is None:
            session = self._create_session(key)
            self._sessions[key] = session
            logger.info("player session created", user_id=key)
        session.touch(self._scheduler.monotonic())
        return session

    def switch_identity(self, user_id: str, new_user_id: str) -> PlayerSession:
        """Move the caller's session to another roster member.

        The session stops its polls and returns to the title screen under the
        new id. A session the new id already had is closed and replaced.
        """
        session = self.get_or_create(user_id)
        new_key = self._require_member(new_user_id)
        if new_key == session.user_id:
            return session

        replaced = self._sessions.pop(new_key, None)
        if replaced is not None:
            replaced.close()
        del self._sessions[session.user_id]
        session.change_identity(new_key)
        self._sessions[new_key] = session
        return session

    def start_session_reaper(self) -> None:
        """Start closing sessions idle for longer than the configured timeout. Idempotent."""
        if self._settings.session_idle_seconds <= 0:
            return
        if self._reaper is not None and self._reaper.active:
            return
        self._reaper = self._scheduler.every(_SESSION_REAPER_INTERVAL, self._reap_tick)

    def stop_session_reaper(self) -> None:
        if self._reaper is not None:
            self._reaper.cancel()
            self._reaper = None

    def reap_idle_sessions(self) -> int:
        """Close and forget every session idle past the timeout; returns how many went."""
        now = self._scheduler.monotonic()
        ttl = self._settings.session_idle_seconds
        if ttl <= 0:
            return 0
        expired = [key for key, session in self._sessions.items() if session.idle_for(now) > ttl]
        for key in expired:
            session = self._sessions.pop(key)
            session.close()
            logger.info("idle player session closed", user_id=key, idle_seconds=round(session.idle_for(now)))
        return len(expired)

    def close_all(self) -> None:
        self.stop_session_reaper()
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    async def _reap_tick(self) -> None:
        self.reap_idle_sessions()

    def _require_member(self, user_id: str) -> str:
        if not self._repository.records:
            raise DataUnavailableError("roster is not loaded or has no rows")
        key = user_id.strip()
        if not key or self._repository.get_user_by_id(key) is None:
            raise IdentityUnresolvedError(key)
        return key

    def _create_session(self, user_id: str) -> PlayerSession:
        return PlayerSession(
            repository=self._repository,
            builder=self._builder,
            machine=RoundStateMachine(self._scheduler, self._presenter),
            progression=ProgressionController(self._client, unlock_threshold=self._settings.unlock_threshold),
            ranking_poller=RankingPoller(self._client, self._scheduler, self._settings.ranking_poll_seconds),
            result_poller=RankingPoller(self._client, self._scheduler, self._settings.result_poll_seconds),
            user_id=user_id,
        )
