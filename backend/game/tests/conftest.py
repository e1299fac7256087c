import pytest

from game.logic.progression import ProgressionController
from game.logic.state_machine import RoundStateMachine
from game.ranking.poller import RankingPoller
from game.session.player_session import PlayerSession
from game.tests.mocks import FakeRankingClient, FakeScheduler, InstantPresenter, loaded_repository
from roster.builder import RoundRosterBuilder


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def presenter():
    return InstantPresenter()


@pytest.fixture
def ranking_client():
    return FakeRankingClient()


@pytest.fixture
def repository():
    return loaded_repository()


@pytest.fixture
def make_session(repository, ranking_client, scheduler, presenter):
    """Factory for a PlayerSession wired to in-memory doubles."""

    def _make(user_id="s001", *, unlock_threshold=10):
        return PlayerSession(
            repository=repository,
            builder=RoundRosterBuilder(repository),
            machine=RoundStateMachine(scheduler, presenter),
            progression=ProgressionController(ranking_client, unlock_threshold=unlock_threshold),
            ranking_poller=RankingPoller(ranking_client, scheduler, 2.0),
            result_poller=RankingPoller(ranking_client, scheduler, 1.0),
            user_id=user_id,
        )

    return _make
