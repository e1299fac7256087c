"""Load the student roster once and answer lookups against it."""

from __future__ import annotations

import asyncio
import math
import re
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import structlog

from roster.models import RosterRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = structlog.get_logger()

ROSTER_COLUMNS = ("id", "year", "class", "no", "name", "kana", "sex")

_FETCH_TIMEOUT = 10.0

_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _parse_number(value: str) -> int | float:
    """Parse a numeric cell; blank cells read as 0, garbage as NaN.

    Only plain ASCII decimal notation counts as a number: digit separators
    such as 1_000 and full-width digits read as NaN.
    """
    text = value.strip()
    if not text:
        return 0
    if not _DECIMAL.fullmatch(text):
        return math.nan
    number = float(text)
    if math.isfinite(number) and number.is_integer():
        return int(number)
    return number


def parse_roster_csv(text: str) -> list[RosterRecord]:
    """
    Parse comma-separated roster text with a header row.

    Columns are resolved by name in any order. A header missing any of the
    required columns yields no records at all. Rows shorter than the header
    and rows without an id are skipped.
    """
    lines = [line for line in text.replace("\r", "").split("\n") if line.strip()]
    if len(lines) < 2:  # noqa: PLR2004
        return []

    header = [col.strip() for col in lines[0].removeprefix("\ufeff").split(",")]
    if any(col not in header for col in ROSTER_COLUMNS):
        return []
    col = {name: header.index(name) for name in ROSTER_COLUMNS}

    records: list[RosterRecord] = []
    for line in lines[1:]:
        cells = line.split(",")
        if len(cells) < len(header):
            continue
        record_id = cells[col["id"]].strip()
        if not record_id:
            continue
        records.append(
            RosterRecord(
                id=record_id,
                year=_parse_number(cells[col["year"]]),
                class_name=cells[col["class"]].strip(),
                no=_parse_number(cells[col["no"]]),
                name=cells[col["name"]].strip(),
                kana=cells[col["kana"]].strip(),
                sex=_parse_number(cells[col["sex"]]),
            ),
        )
    return records


class RosterRepository:
    """Owns the loaded roster for the lifetime of the process.

    Sources are tried in order (filesystem paths or http(s) URLs); the first
    one that parses to a non-empty roster wins. The load runs at most once.
    """

    def __init__(self, sources: Sequence[str | Path]) -> None:
        self._sources = list(sources)
        self._records: tuple[RosterRecord, ...] | None = None
        self._load_task: asyncio.Task[tuple[RosterRecord, ...]] | None = None
        self._source: str | None = None

    @property
    def ready(self) -> bool:
        """True once a load has finished, whether or not it found any rows."""
        return self._records is not None

    @property
    def source(self) -> str | None:
        """The source the roster was read from; None until a load finds rows."""
        return self._source

    @property
    def records(self) -> tuple[RosterRecord, ...]:
        return self._records or ()

    async def load(self) -> tuple[RosterRecord, ...]:
        if self._records is not None:
            return self._records
        if self._load_task is None:
            self._load_task = asyncio.create_task(self._load_from_sources())
        return await asyncio.shield(self._load_task)

    def get_user_by_id(self, user_id: str | None) -> RosterRecord | None:
        if not self._records or not user_id:
            return None
        key = str(user_id).strip()
        return next((record for record in self._records if record.id == key), None)

    async def _load_from_sources(self) -> tuple[RosterRecord, ...]:
        for source in self._sources:
            try:
                text = await self._read_source(source)
            except (OSError, UnicodeDecodeError, httpx.HTTPError) as e:
                logger.warning("roster source unavailable", source=str(source), error=str(e))
                continue
            parsed = parse_roster_csv(text)
            if parsed:
                logger.info("roster loaded", source=str(source), count=len(parsed))
                self._source = str(source)
                self._records = tuple(parsed)
                return self._records
            logger.warning("roster source has no usable rows", source=str(source))

        logger.error("roster data unavailable", sources=[str(s) for s in self._sources])
        self._records = ()
        return self._records

    async def _read_source(self, source: str | Path) -> str:
        location = str(source)
        if location.startswith(("http://", "https://")):
            async with httpx.AsyncClient(timeout=_FETCH_TIMEOUT) as client:
                response = await client.get(location, headers={"Cache-Control": "no-store"})
                response.raise_for_status()
                return response.text
        return await asyncio.to_thread(Path(location).read_text, encoding="utf-8-sig")
