"""History sink protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from solar_optimizer.hardware.reading import Reading


class HistoryError(Exception):
    """Base class for history store failures."""


class HistoryWriteError(HistoryError):
    """Appending a reading failed."""


class HistoryReadError(HistoryError):
    """Querying recent readings failed."""


@runtime_checkable
class HistorySink(Protocol):
    """Append-only, time-ordered store of readings."""

    async def append(self, reading: Reading) -> str:
        """Store a reading and return its store-assigned key."""
        ...

    async def recent(self, limit: int) -> list[Reading]:
        """Return the newest ``limit`` readings, oldest first."""
        ...

    async def close(self) -> None:
        ...
