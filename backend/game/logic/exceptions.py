"""Typed errors for the search game.

Protocol violations (activating a row mid-animation, after a clear, or twice)
are not represented here: they are UI races, and the state machine ignores them
silently instead of raising.
"""


class SearchGameError(Exception):
    """Base class for search game errors."""


class DataUnavailableError(SearchGameError):
    """The roster failed to load or loaded empty; no round can start."""


class IdentityUnresolvedError(SearchGameError):
    """No player id was supplied, or the id is not in the roster.

    Attributes:
        user_id: The id that failed to resolve ("" when none was supplied).

    """

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"unresolved player id: {user_id!r}" if user_id else "no player id supplied")


class RankingUnavailableError(SearchGameError):
    """A ranking query failed (transport error, bad status or malformed body)."""
