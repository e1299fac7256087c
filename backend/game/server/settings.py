"""Game server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from game.logic.settings import UNLOCK_THRESHOLD, GameSettings
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "GAME_"}

    log_dir: str = Field(default="backend/logs/game", min_length=1)
    cors_origins: list[str] = ["http://localhost:3000"]
    roster_sources: list[str] = ["data/student.csv", "student.csv"]

    ranking_base_url: str = Field(default="http://localhost:8080", min_length=1)
    ranking_path: str = "/get_ranking.pl"
    result_path: str = "/log_result.pl"
    request_timeout: float = Field(default=5.0, gt=0)

    match_step_seconds: float = Field(default=0.3, ge=0)
    intro_hold_seconds: float = Field(default=2.4, ge=0)
    intro_fade_seconds: float = Field(default=0.7, ge=0)
    ranking_poll_seconds: float = Field(default=2.0, gt=0)
    result_poll_seconds: float = Field(default=1.0, gt=0)
    unlock_threshold: int = Field(default=UNLOCK_THRESHOLD, ge=1)
    session_idle_seconds: float = Field(default=1800.0, ge=0)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @field_validator("roster_sources", mode="before")
    @classmethod
    def validate_roster_sources(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    def game_settings(self) -> GameSettings:
        """Gameplay subset handed to the session layer."""
        return GameSettings(
            match_step_seconds=self.match_step_seconds,
            intro_hold_seconds=self.intro_hold_seconds,
            intro_fade_seconds=self.intro_fade_seconds,
            ranking_poll_seconds=self.ranking_poll_seconds,
            result_poll_seconds=self.result_poll_seconds,
            unlock_threshold=self.unlock_threshold,
            session_idle_seconds=self.session_idle_seconds,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
