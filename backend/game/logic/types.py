"""Pydantic models that cross the state machine / session / HTTP boundaries."""

from pydantic import BaseModel

from game.logic.enums import MatchStatus


class ActivationOutcome(BaseModel, frozen=True):
    """Result of an accepted row activation."""

    index: int
    status: MatchStatus
    search_count: int
    cleared: bool = False
    clear_time_ms: int | None = None  # set only on the activation that cleared the round


class RowView(BaseModel, frozen=True):
    """What the player can see of one row."""

    position: int
    revealed: bool
    unvisited: bool = False  # shown after clear for rows the player never opened
    status: MatchStatus | None = None
    index: str = ""
    year: int | float | None = None
    class_name: str | None = None
    no: int | float | None = None
    name: str | None = None
    kana: str | None = None
