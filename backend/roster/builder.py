"""
Build the ordered, annotated roster each round exposes to the player.

Round 1 models a plain linear scan over a shuffled class list. Round 2 sorts the
whole year by reading and prints a kana-row marker at the start of each block
(indexed linear scan). Rounds 3 and 4 present reading order without markers so
the player can bisect; round 4 asks the player to find themselves in the full
roster.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

import structlog

from roster.kana import classify, collation_key
from roster.models import BuiltRound, RosterRecord, RoundEntry, RoundMeta

if TYPE_CHECKING:
    from roster.repository import RosterRepository

logger = structlog.get_logger()

# Synthetic target records; their ids never collide with roster ids.
TARGET_KOBAYASHI = RosterRecord(
    id="target",
    year=1,
    class_name="G",
    no=0,
    name="小林　裕司",
    kana="こばやし　ゆうじ",
    sex=1,
)

TARGET_OIE = RosterRecord(
    id="target",
    year=1,
    class_name="X",
    no=99,
    name="御家　雄一",
    kana="おいえ　ゆういち",
    sex=1,
)


def _entry(record: RosterRecord, *, is_target: bool = False) -> RoundEntry:
    return RoundEntry.model_validate({**record.model_dump(), "is_target": is_target})


def _target_entry(base: RosterRecord, target_id: str) -> RoundEntry:
    return RoundEntry.model_validate({**base.model_dump(), "id": target_id, "is_target": True})


def sort_by_kana(entries: list[RoundEntry]) -> list[RoundEntry]:
    """Stable sort by reading; entries with equal readings keep their relative order."""
    return sorted(entries, key=lambda entry: collation_key(entry.kana))


def annotate_index(entries: list[RoundEntry]) -> list[RoundEntry]:
    """Mark the first row of every contiguous kana-row block with its label."""
    annotated: list[RoundEntry] = []
    last_label = ""
    for entry in entries:
        label = classify(entry.kana)
        if label and label != last_label:
            annotated.append(entry.model_copy(update={"index": label}))
            last_label = label
        else:
            annotated.append(entry)
    return annotated


class RoundRosterBuilder:
    def __init__(self, repository: RosterRepository, rng: random.Random | None = None) -> None:
        self._repository = repository
        self._rng = rng or random.Random()  # noqa: S311

    def build(self, round_no: int, player: RosterRecord | None) -> BuiltRound:
        """Return the round's entries and metadata, or an empty BuiltRound if unplayable."""
        records = self._repository.records
        if not records or player is None:
            return BuiltRound()

        if round_no == 1:
            entries = [_entry(r) for r in records if r.year == player.year and r.class_name == player.class_name]
            entries.append(_target_entry(TARGET_KOBAYASHI, "target-round1"))
            self._rng.shuffle(entries)
            return BuiltRound(entries=tuple(entries), meta=RoundMeta())

        if round_no == 2:  # noqa: PLR2004
            entries = [_entry(r) for r in records if r.year == player.year]
            entries.append(_target_entry(TARGET_KOBAYASHI, "target-round2"))
            entries = annotate_index(sort_by_kana(entries))
            return BuiltRound(entries=tuple(entries), meta=RoundMeta(index_column=True, kana_sorted=True))

        if round_no == 3:  # noqa: PLR2004
            entries = [_entry(r) for r in records if r.year == player.year]
            entries.append(_target_entry(TARGET_OIE, "target-round3"))
            return BuiltRound(entries=tuple(sort_by_kana(entries)), meta=RoundMeta(kana_sorted=True))

        if round_no == 4:  # noqa: PLR2004
            return BuiltRound(entries=tuple(self._self_search(records, player)), meta=RoundMeta(kana_sorted=True))

        logger.warning("unknown round requested", round_no=round_no)
        return BuiltRound()

    @staticmethod
    def _self_search(records: tuple[RosterRecord, ...], player: RosterRecord) -> list[RoundEntry]:
        entries = sort_by_kana([_entry(r) for r in records])
        for i, entry in enumerate(entries):
            if entry.id == player.id:
                entries[i] = entry.model_copy(update={"is_target": True})
                return entries
        # player missing from the loaded roster: append after the sorted block
        entries.append(_entry(player, is_target=True))
        return entries
