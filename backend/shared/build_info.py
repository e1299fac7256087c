"""
Build and process metadata for the game server's /health route.

Deploys inject APP_VERSION and GIT_COMMIT; a local checkout asks git for the
short commit instead. The snapshot is taken once at import, so started_at is
the moment the server process loaded it.
"""

import os
import subprocess
from datetime import UTC, datetime

from pydantic import BaseModel


def _git_short_sha() -> str:
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            text=True,
            stderr=subprocess.DEVNULL,
        ).strip()
    except (FileNotFoundError, subprocess.CalledProcessError):
        return "dev"


class BuildInfo(BaseModel, frozen=True):
    version: str
    commit: str
    started_at: datetime

    def uptime_seconds(self, now: datetime | None = None) -> int:
        now = now or datetime.now(tz=UTC)
        return max(0, int((now - self.started_at).total_seconds()))


def current_build() -> BuildInfo:
    return BuildInfo(
        version=os.environ.get("APP_VERSION", "dev"),
        commit=os.environ.get("GIT_COMMIT") or _git_short_sha(),
        started_at=datetime.now(tz=UTC),
    )


BUILD = current_build()
