"""Local SQLite history sink."""

from __future__ import annotations

import logging

import aiosqlite

from solar_optimizer.db.repository import Repository
from solar_optimizer.hardware.reading import Reading
from solar_optimizer.history.base import HistoryReadError, HistoryWriteError

logger = logging.getLogger(__name__)


class SqliteHistorySink:
    """HistorySink backed by the ``readings`` table."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    async def append(self, reading: Reading) -> str:
        try:
            row_id = await self._repo.store_reading(reading)
        except aiosqlite.Error as e:
            raise HistoryWriteError(f"SQLite append failed: {e}") from e
        return str(row_id)

    async def recent(self, limit: int) -> list[Reading]:
        try:
            rows = await self._repo.get_recent_readings(limit)
        except aiosqlite.Error as e:
            raise HistoryReadError(f"SQLite query failed: {e}") from e
        return [Reading.from_dict(r) for r in rows]

    async def close(self) -> None:
        # The connection belongs to db.engine and is closed by close_db().
        return None
