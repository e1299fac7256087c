"""Gameplay constants carried from server configuration into the core."""

from pydantic import BaseModel, Field

ROUND_MAX = 4
UNLOCK_THRESHOLD = 10  # ranking participants required before the next round opens


class GameSettings(BaseModel, frozen=True):
    """Timing and progression values for one game host."""

    match_step_seconds: float = Field(default=0.3, ge=0)  # per character of the reading
    intro_hold_seconds: float = Field(default=2.4, ge=0)
    intro_fade_seconds: float = Field(default=0.7, ge=0)
    ranking_poll_seconds: float = Field(default=2.0, gt=0)
    result_poll_seconds: float = Field(default=1.0, gt=0)
    unlock_threshold: int = Field(default=UNLOCK_THRESHOLD, ge=1)
    session_idle_seconds: float = Field(default=1800.0, ge=0)  # 0 keeps idle sessions forever
