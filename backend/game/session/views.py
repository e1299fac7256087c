"""Serializable snapshots of a player session for the HTTP layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from game.logic.enums import PlayPhase, Screen
from game.logic.progression import RoundNavItem
from game.logic.rounds import RoundConfig, format_clear_time, split_display_name
from game.logic.types import RowView

if TYPE_CHECKING:
    from collections.abc import Sequence

    from game.ranking.types import RankingEntry


class RankingRowView(BaseModel, frozen=True):
    rank: str
    no: str
    name: str
    time: str
    search_count: str
    me: bool = False


def _number_text(value: float | None) -> str:
    if value is None:
        return "-"
    return str(int(value)) if value.is_integer() else str(value)


def ranking_rows(entries: Sequence[RankingEntry], user_id: str) -> list[RankingRowView]:
    """Render ranking entries: rank falls back to position, names to the raw display name or user id."""
    me = str(user_id or "").strip()
    rows: list[RankingRowView] = []
    for position, entry in enumerate(entries, start=1):
        no, name = split_display_name(entry.display_name)
        rows.append(
            RankingRowView(
                rank=_number_text(entry.rank) if entry.rank is not None else str(position),
                no=no or "-",
                name=name or entry.display_name or entry.user_id or "（未設定）",
                time="-" if entry.clear_time_ms is None else format_clear_time(entry.clear_time_ms),
                search_count=_number_text(entry.search_count),
                me=bool(entry.user_id) and entry.user_id.strip() == me,
            ),
        )
    return rows


class SessionView(BaseModel):
    user_id: str
    notice: str
    screen: Screen
    round: RoundConfig | None = None
    phase: PlayPhase = PlayPhase.IDLE
    busy: bool = False
    index_column: bool = False
    kana_sorted: bool = False
    search_count: int = 0
    elapsed: str = "--:--.---"
    clear_time_ms: int | None = None
    rows: list[RowView] = Field(default_factory=list)
    nav: list[RoundNavItem] = Field(default_factory=list)
    next_unlocked: bool = False
    ranking: list[RankingRowView] = Field(default_factory=list)
    results: dict[int, list[RankingRowView]] = Field(default_factory=dict)
    show_result_link: bool = False
