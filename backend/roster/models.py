"""Roster records and the per-round entries built from them."""

from pydantic import BaseModel, ConfigDict, Field

# Numeric roster cells are kept as numbers; unparsable cells become float("nan").
RosterNumber = int | float


class RosterRecord(BaseModel):
    """One student row from the roster source. Identity is ``id``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    year: RosterNumber
    class_name: str = Field(alias="class")
    no: RosterNumber
    name: str
    kana: str
    sex: RosterNumber


class RoundEntry(RosterRecord):
    """A roster record as it appears in one built round."""

    is_target: bool = False
    index: str | None = None  # kana-row section marker, only on the first row of each block


class RoundMeta(BaseModel, frozen=True):
    index_column: bool = False
    kana_sorted: bool = False


class BuiltRound(BaseModel, frozen=True):
    """Ordered entries for one round plus the round's presentation metadata.

    An empty instance (no entries, no meta) means there is no playable round.
    """

    entries: tuple[RoundEntry, ...] = ()
    meta: RoundMeta | None = None

    @property
    def playable(self) -> bool:
        return bool(self.entries)

    @property
    def target_index(self) -> int | None:
        for i, entry in enumerate(self.entries):
            if entry.is_target:
                return i
        return None
