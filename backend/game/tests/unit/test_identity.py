import pytest

from game.logic.enums import Notice
from game.ranking.types import RankingEntry
from game.session.identity import parse_user_id_from_hash, resolve_notice
from game.session.views import ranking_rows
from game.tests.mocks import make_record


class TestParseUserIdFromHash:
    @pytest.mark.parametrize(
        ("fragment", "user_id"),
        [
            ("#id=s001", "s001"),
            ("id=s001", "s001"),
            ("#foo=1&id=s002&bar=2", "s002"),
            ("#ID=s003", "s003"),
            ("#id=%E3%81%82%20", "あ"),
            ("#id= s004 ", "s004"),
            ("#userid=s005", ""),
            ("#id=", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_parse(self, fragment, user_id):
        assert parse_user_id_from_hash(fragment) == user_id


class TestResolveNotice:
    def test_missing_id_first(self):
        assert resolve_notice("", roster_ready=False, roster_empty=True, user=None) is Notice.MISSING_ID

    def test_loading(self):
        assert resolve_notice("s001", roster_ready=False, roster_empty=True, user=None) is Notice.LOADING

    def test_data_unavailable(self):
        notice = resolve_notice("s001", roster_ready=True, roster_empty=True, user=None)
        assert notice is Notice.DATA_UNAVAILABLE

    def test_unknown_id(self):
        assert resolve_notice("s999", roster_ready=True, roster_empty=False, user=None) is Notice.UNKNOWN_ID

    def test_resolved(self):
        user = make_record("s001")
        assert resolve_notice("s001", roster_ready=True, roster_empty=False, user=user) is Notice.NONE


class TestRankingRows:
    def test_display_fallbacks(self):
        entries = [
            RankingEntry(user_id="s001", display_name="1 青木　花子", search_count=3, clear_time_ms=5120, rank=1),
            RankingEntry(user_id="s002", display_name="加藤", search_count=4.5, clear_time_ms=None),
            RankingEntry(user_id="s003"),
            RankingEntry(),
        ]

        rows = ranking_rows(entries, " s001 ")

        assert [r.rank for r in rows] == ["1", "2", "3", "4"]
        assert [r.no for r in rows] == ["1", "-", "-", "-"]
        assert [r.name for r in rows] == ["青木　花子", "加藤", "s003", "（未設定）"]
        assert [r.time for r in rows] == ["00:05.120", "-", "-", "-"]
        assert [r.search_count for r in rows] == ["3", "4.5", "-", "-"]
        assert [r.me for r in rows] == [True, False, False, False]
