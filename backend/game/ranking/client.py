"""HTTP client for the external ranking and result-logging endpoints."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from game.logic.exceptions import RankingUnavailableError
from game.ranking.types import RankingPage

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 5.0
_NO_STORE = {"Cache-Control": "no-store"}


def _acknowledged(data: Any) -> bool:  # noqa: ANN401
    return isinstance(data, dict) and data.get("ok") == 1


class RankingClient:
    def __init__(
        self,
        base_url: str,
        ranking_path: str = "/get_ranking.pl",
        result_path: str = "/log_result.pl",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._ranking_url = f"{base_url.rstrip('/')}{ranking_path}"
        self._result_url = f"{base_url.rstrip('/')}{result_path}"
        self._timeout = timeout

    async def fetch_ranking(self, user_id: str, round_no: int) -> RankingPage:
        """Fetch the ranking for one round.

        Raises RankingUnavailableError on transport errors, non-success status,
        non-JSON bodies, or bodies that are not ``{"ok": 1, "ranking": [...]}``.
        """
        params = {"user_id": user_id, "round_no": str(round_no)}
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.get(self._ranking_url, params=params, headers=_NO_STORE)
            except httpx.RequestError as e:
                raise RankingUnavailableError(f"ranking request failed: {e}") from e

        if not response.is_success:
            raise RankingUnavailableError(f"ranking request returned {response.status_code}")
        try:
            data = response.json()
        except ValueError as e:
            raise RankingUnavailableError("ranking response is not JSON") from e
        if not _acknowledged(data) or not isinstance(data.get("ranking"), list):
            raise RankingUnavailableError("ranking response not acknowledged")

        try:
            return RankingPage.model_validate({"ranking": data["ranking"], "count": data.get("count")})
        except ValidationError as e:
            raise RankingUnavailableError("ranking entries malformed") from e

    async def submit_result(self, user_id: str, round_no: int, search_count: int, clear_time_ms: int) -> bool:
        """Post a cleared round once. Returns True only when the server acknowledges it."""
        form = {
            "user_id": user_id,
            "round_no": str(round_no),
            "search_count": str(search_count),
            "clear_time_ms": str(clear_time_ms),
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.post(self._result_url, data=form, headers=_NO_STORE)
            except httpx.RequestError as e:
                logger.warning("result submission failed", round_no=round_no, error=str(e))
                return False

        if not response.is_success:
            logger.warning("result submission rejected", round_no=round_no, status=response.status_code)
            return False
        try:
            data = response.json()
        except ValueError:
            logger.warning("result acknowledgement is not JSON", round_no=round_no)
            return False
        return _acknowledged(data)
