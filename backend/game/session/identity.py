"""Player identity token handling and the notices shown while it is unresolved."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import unquote

from game.logic.enums import Notice

if TYPE_CHECKING:
    from roster.models import RosterRecord

_HASH_ID = re.compile(r"(?:^|#|&)id=([^&]+)", re.IGNORECASE)


def parse_user_id_from_hash(fragment: str | None) -> str:
    """Extract the player id from a URL fragment such as ``#id=s001&x=1``."""
    match = _HASH_ID.search(str(fragment or ""))
    if not match:
        return ""
    return unquote(match.group(1)).strip()


def resolve_notice(user_id: str, *, roster_ready: bool, roster_empty: bool, user: RosterRecord | None) -> Notice:
    """Pick the notice for the current identity; Notice.NONE means play may start."""
    if not user_id:
        return Notice.MISSING_ID
    if not roster_ready:
        return Notice.LOADING
    if roster_empty:
        return Notice.DATA_UNAVAILABLE
    if user is None:
        return Notice.UNKNOWN_ID
    return Notice.NONE
