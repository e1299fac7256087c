import math
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field


def _lenient_number(value: Any) -> float | None:  # noqa: ANN401
    """Coerce ranking numbers; anything non-numeric or non-finite reads as missing."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _lenient_text(value: Any) -> str:  # noqa: ANN401
    return "" if value is None else str(value)


LenientNumber = Annotated[float | None, BeforeValidator(_lenient_number)]
LenientText = Annotated[str, BeforeValidator(_lenient_text)]


class RankingEntry(BaseModel, frozen=True):
    user_id: LenientText = ""
    display_name: LenientText = ""  # "<no> <name>"
    search_count: LenientNumber = None
    clear_time_ms: LenientNumber = None
    rank: LenientNumber = None

    def belongs_to(self, user_id: str) -> bool:
        return bool(self.user_id.strip()) and self.user_id.strip() == str(user_id).strip()

    @property
    def has_clear_time(self) -> bool:
        return self.clear_time_ms is not None and self.clear_time_ms >= 0


class RankingPage(BaseModel, frozen=True):
    """One successful ranking response for a round."""

    ranking: list[RankingEntry] = Field(default_factory=list)
    count: LenientNumber = None

    @property
    def participant_count(self) -> int:
        return int(self.count) if self.count is not None else len(self.ranking)
