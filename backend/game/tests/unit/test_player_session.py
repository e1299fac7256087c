from game.logic.enums import MatchStatus, Notice, PlayPhase, Screen
from game.tests.mocks import make_record


def _polls(scheduler, interval):
    return [h for h in scheduler.active_handles if h.interval == interval]


def _miss_index(session):
    return next(i for i, e in enumerate(session.built.entries) if not e.is_target)


class TestIdentity:
    def test_known_player_is_ready(self, make_session):
        session = make_session("s001")
        assert session.ready is True
        assert session.user.name == "青木　花子"
        assert session.notice is Notice.NONE

    def test_missing_and_unknown_ids(self, make_session):
        assert make_session("").notice is Notice.MISSING_ID
        assert make_session("nobody").notice is Notice.UNKNOWN_ID

    async def test_loading_then_data_unavailable(self, make_session, repository):
        repository._records = None
        session = make_session("s001")
        assert session.notice is Notice.LOADING

        repository._records = ()

        assert await session.start() is None
        assert session.notice is Notice.DATA_UNAVAILABLE

    async def test_change_identity_resets_to_title(self, make_session, scheduler):
        session = make_session("s001")
        await session.start()

        session.change_identity(" s004 ")

        assert session.user_id == "s004"
        assert session.user.class_name == "B"
        assert session.screen is Screen.TITLE
        assert session.notice is Notice.IDENTITY_CHANGED
        assert session.machine.phase is PlayPhase.IDLE
        assert scheduler.active_handles == []

    async def test_change_to_unknown_identity_blocks_play(self, make_session):
        session = make_session("s001")
        session.change_identity("ghost")
        assert session.notice is Notice.UNKNOWN_ID
        assert await session.start() is None


class TestStart:
    async def test_new_player_starts_round_one_with_intro(self, make_session, presenter, scheduler):
        session = make_session("s001")

        assert await session.start() == 1

        assert session.screen is Screen.GAME
        assert session.current_round == 1
        assert presenter.intros == [1]
        assert sorted(e.id for e in session.built.entries) == ["s001", "s002", "s003", "target-round1"]
        assert session.machine.phase is PlayPhase.PLAYING
        assert len(_polls(scheduler, 2.0)) == 1

    async def test_resumes_at_first_uncleared_round(self, make_session, ranking_client):
        ranking_client.set_cleared("s001", 1, 2)
        session = make_session("s001")

        assert await session.start() == 3
        assert session.built.entries[session.built.target_index].id == "target-round3"

    async def test_all_cleared_opens_results(self, make_session, ranking_client, scheduler):
        ranking_client.set_cleared("s001", 1, 2, 3, 4)
        session = make_session("s001")

        assert await session.start() is None

        assert session.all_complete is True
        assert session.current_round == 4
        assert session.screen is Screen.RESULT
        assert _polls(scheduler, 2.0) == []
        assert len(_polls(scheduler, 1.0)) == 1

    async def test_start_while_resolving_is_ignored(self, make_session, ranking_client):
        session = make_session("s001")
        session._resolving = True
        assert await session.start() is None
        assert ranking_client.fetches == []


class TestPlay:
    async def test_miss_then_clear_submits_once(self, make_session, ranking_client, scheduler):
        session = make_session("s001")
        await session.start()

        miss = await session.activate(_miss_index(session))
        scheduler.advance(3.0)
        hit = await session.activate(session.built.target_index)

        assert miss.status is MatchStatus.UNMATCHED
        assert hit.cleared is True
        assert hit.search_count == 2
        assert ranking_client.submissions == [("s001", 1, 2, 3000)]
        assert session.machine.phase is PlayPhase.CLEARED
        assert len(_polls(scheduler, 2.0)) == 1

        assert await session.activate(_miss_index(session)) is None
        assert len(ranking_client.submissions) == 1

    async def test_activate_on_title_screen_is_ignored(self, make_session):
        session = make_session("s001")
        assert await session.activate(0) is None

    async def test_view_reflects_play(self, make_session, scheduler):
        session = make_session("s001")
        assert session.view().round is None

        await session.start()
        before = session.view()
        assert before.elapsed == "--:--.---"
        assert before.screen is Screen.GAME
        assert before.round.round_no == 1
        assert len(before.rows) == 4
        assert not any(row.revealed for row in before.rows)

        index = _miss_index(session)
        await session.activate(index)
        scheduler.advance(1.5)
        after = session.view()
        assert after.search_count == 1
        assert after.elapsed == "00:01.500"
        assert after.rows[index].revealed is True
        assert after.clear_time_ms is None


class TestProgression:
    async def test_ranking_poll_unlocks_next_round(self, make_session, ranking_client, scheduler, presenter):
        session = make_session("s001")
        await session.start()
        assert await session.enter_round(2) is False

        ranking_client.set_participants(1, 10)
        await _polls(scheduler, 2.0)[0].fire()

        assert session.progression.next_unlocked is True
        assert session.view().ranking == []
        assert session.view().nav[1].enabled is True

        assert await session.enter_round(2) is True
        assert session.current_round == 2
        assert session.progression.next_unlocked is False
        assert presenter.intros == [1, 2]
        assert session.built.meta.index_column is True

    async def test_nine_participants_stay_locked(self, make_session, ranking_client, scheduler):
        session = make_session("s001")
        await session.start()

        ranking_client.set_participants(1, 9)
        await _polls(scheduler, 2.0)[0].fire()

        assert session.progression.next_unlocked is False
        assert await session.enter_round(2) is False

    async def test_stale_round_page_is_ignored(self, make_session, ranking_client):
        ranking_client.set_participants(2, 50)
        session = make_session("s001")
        await session.start()

        session._on_ranking_page(2, ranking_client.pages[2])

        assert session.ranking == {}
        assert session.progression.next_unlocked is False

    async def test_ranking_rows_shown_for_current_round(self, make_session, ranking_client, scheduler):
        ranking_client.set_cleared("s002", 1, count=4)
        session = make_session("s001")
        await session.start()
        await _polls(scheduler, 2.0)[0].fire()

        (row,) = session.view().ranking
        assert row.name == "s002"
        assert row.me is False


class TestResults:
    async def test_results_only_after_final_clear(self, make_session, scheduler):
        session = make_session("s001")
        await session.start()
        assert session.show_results() is False

        await session.start_round(4, show_intro=False)
        assert session.show_results() is False
        await session.activate(session.built.target_index)

        assert session.view().show_result_link is True
        assert session.show_results() is True
        assert session.screen is Screen.RESULT
        assert _polls(scheduler, 2.0) == []

        await _polls(scheduler, 1.0)[0].fire()
        assert sorted(session.view().results) == [1, 2, 3, 4]

    async def test_round_four_targets_the_player(self, make_session):
        session = make_session("s102")
        await session.start_round(4, show_intro=False)
        target = session.built.entries[session.built.target_index]
        assert target.id == "s102"

    async def test_close_stops_everything(self, make_session, scheduler):
        session = make_session("s001")
        await session.start()
        session.close()
        assert scheduler.active_handles == []
        assert session.machine.phase is PlayPhase.IDLE


class TestRoundStart:
    async def test_invalid_round_is_refused(self, make_session):
        session = make_session("s001")
        assert await session.start_round(9) is False
        assert session.screen is Screen.TITLE

    async def test_player_outside_roster_is_appended_in_final_round(self, make_session):
        session = make_session("s001")
        session.user = make_record("zz9", kana="ああ")
        await session.start_round(4, show_intro=False)
        assert session.built.entries[-1].id == "zz9"
