"""Test doubles for the scheduler, presenter, ranking client and roster."""

import asyncio

from game.logic.exceptions import RankingUnavailableError
from game.ranking.types import RankingEntry, RankingPage
from roster.models import RosterRecord
from roster.repository import RosterRepository


class ManualHandle:
    """Periodic handle whose ticks are fired by the test."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    @property
    def active(self):
        return not self.cancelled

    def cancel(self):
        self.cancelled = True

    async def fire(self):
        await self.callback()


class FakeScheduler:
    """Instant scheduler: sleep advances a virtual clock and returns immediately."""

    def __init__(self, now=100.0):
        self.now = now
        self.sleeps: list[float] = []
        self.handles: list[ManualHandle] = []

    def monotonic(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)

    def every(self, interval, callback):
        handle = ManualHandle(interval, callback)
        self.handles.append(handle)
        return handle

    @property
    def active_handles(self):
        return [h for h in self.handles if h.active]


class GatedPresenter:
    """Presenter whose reveal and intro block until the test opens the gate."""

    def __init__(self):
        self.gate = asyncio.Event()
        self.reveals: list[int] = []
        self.intros: list[int] = []

    async def reveal(self, index, entry):  # noqa: ARG002
        self.reveals.append(index)
        await self.gate.wait()

    async def intro(self, config):
        self.intros.append(config.round_no)
        await self.gate.wait()


class InstantPresenter:
    def __init__(self):
        self.reveals: list[int] = []
        self.intros: list[int] = []

    async def reveal(self, index, entry):  # noqa: ARG002
        self.reveals.append(index)

    async def intro(self, config):
        self.intros.append(config.round_no)


class FakeRankingClient:
    """In-memory ranking service keyed by round number."""

    def __init__(self):
        self.pages: dict[int, RankingPage] = {}
        self.failing_rounds: set[int] = set()
        self.fetches: list[tuple[str, int]] = []
        self.submissions: list[tuple[str, int, int, int]] = []
        self.accept_results = True

    def set_cleared(self, user_id, *round_nos, count=None):
        for round_no in round_nos:
            entry = RankingEntry(user_id=user_id, display_name=f"1 {user_id}", search_count=3, clear_time_ms=1234)
            self.pages[round_no] = RankingPage(ranking=[entry], count=count)

    def set_participants(self, round_no, count):
        self.pages[round_no] = RankingPage(ranking=[], count=count)

    async def fetch_ranking(self, user_id, round_no):
        self.fetches.append((user_id, round_no))
        if round_no in self.failing_rounds:
            raise RankingUnavailableError(f"round {round_no} unavailable")
        return self.pages.get(round_no, RankingPage())

    async def submit_result(self, user_id, round_no, search_count, clear_time_ms):
        self.submissions.append((user_id, round_no, search_count, clear_time_ms))
        return self.accept_results


def make_record(record_id, *, year=1, class_name="A", no=1, name="名前", kana="なまえ", sex=1):
    return RosterRecord(id=record_id, year=year, class_name=class_name, no=no, name=name, kana=kana, sex=sex)


SAMPLE_RECORDS = (
    make_record("s001", class_name="A", no=1, name="青木　花子", kana="あおき　はなこ", sex=2),
    make_record("s002", class_name="A", no=2, name="加藤　健", kana="かとう　けん"),
    make_record("s003", class_name="A", no=3, name="佐藤　優", kana="さとう　ゆう"),
    make_record("s004", class_name="B", no=1, name="田中　翔", kana="たなか　しょう"),
    make_record("s005", class_name="B", no=2, name="山田　葵", kana="やまだ　あおい", sex=2),
    make_record("s006", class_name="B", no=3, name="和田　蓮", kana="わだ　れん"),
    make_record("s101", year=2, class_name="A", no=1, name="伊藤　陽", kana="いとう　はる"),
    make_record("s102", year=2, class_name="A", no=2, name="中村　結", kana="なかむら　ゆい", sex=2),
)


def loaded_repository(records=SAMPLE_RECORDS):
    """Repository that behaves as if its load already finished with the given rows."""
    repository = RosterRepository([])
    repository._records = tuple(records)
    return repository
