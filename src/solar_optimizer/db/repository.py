"""Data access layer for the readings table."""

from __future__ import annotations

import logging
from typing import Any

import aiosqlite

from solar_optimizer.hardware.reading import Reading

logger = logging.getLogger(__name__)


class Repository:
    """Centralised data access for all tables."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self.db = db

    # ── Readings ────────────────────────────────────────────

    async def store_reading(self, reading: Reading) -> int:
        async with self.db.execute(
            """INSERT INTO readings
               (timestamp, voltage, current, power, angle_h, angle_v,
                light, dust_alert, dust_raw)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                reading.timestamp, reading.voltage, reading.current, reading.power,
                reading.angle_h, reading.angle_v, reading.light,
                1 if reading.dust_alert else 0, reading.dust_raw,
            ),
        ) as cursor:
            row_id = cursor.lastrowid
        await self.db.commit()
        return row_id  # type: ignore[return-value]

    async def get_recent_readings(self, limit: int) -> list[dict[str, Any]]:
        """Newest ``limit`` readings in wire format, oldest first."""
        async with self.db.execute(
            """SELECT * FROM (
                   SELECT * FROM readings ORDER BY timestamp DESC, id DESC LIMIT ?
               ) ORDER BY timestamp ASC, id ASC""",
            (limit,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_wire(r) for r in rows]


def _row_to_wire(row: aiosqlite.Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "timestamp": row["timestamp"],
        "voltage": row["voltage"],
        "current": row["current"],
        "power": row["power"],
        "angleH": row["angle_h"],
        "angleV": row["angle_v"],
        "light": row["light"],
        "dustAlert": bool(row["dust_alert"]),
        "dustRaw": row["dust_raw"],
    }
