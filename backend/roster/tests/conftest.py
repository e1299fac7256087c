import pytest

from roster.models import RosterRecord
from roster.repository import RosterRepository


def record(record_id, year, class_name, no, name, kana, sex=1):
    return RosterRecord(id=record_id, year=year, class_name=class_name, no=no, name=name, kana=kana, sex=sex)


ROSTER = (
    record("s001", 1, "A", 1, "渡辺　楓", "わたなべ　かえで", 2),
    record("s002", 1, "A", 2, "加藤　健", "かとう　けん"),
    record("s003", 1, "A", 3, "青木　花子", "あおき　はなこ", 2),
    record("s004", 1, "A", 4, "後藤　誠", "ごとう　まこと"),
    record("s005", 1, "B", 1, "佐藤　優", "さとう　ゆう"),
    record("s006", 1, "B", 2, "井上　翼", "いのうえ　つばさ"),
    record("s007", 1, "B", 3, "森　陽菜", "もり　ひな", 2),
    record("s101", 2, "A", 1, "伊藤　陽", "いとう　はる"),
    record("s102", 2, "A", 2, "中村　結", "なかむら　ゆい", 2),
)


@pytest.fixture
def roster():
    return ROSTER


@pytest.fixture
def repository(roster):
    repo = RosterRepository([])
    repo._records = tuple(roster)
    return repo
