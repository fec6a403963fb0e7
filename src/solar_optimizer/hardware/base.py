"""Device link protocol for the tracker's line-oriented byte stream."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class DeviceConnectionError(ConnectionError):
    """Opening the device link failed or the link dropped mid-stream."""


@runtime_checkable
class DeviceLink(Protocol):
    """Protocol for byte-stream links to the tracker to implement."""

    async def connect(self) -> None:
        """Open the link. Raises DeviceConnectionError on failure."""
        ...

    async def disconnect(self) -> None:
        """Close the link; a pending readline() returns EOF."""
        ...

    async def readline(self) -> str:
        """Return the next decoded line, or "" once the stream has ended.

        Raises DeviceConnectionError if the link fails while reading and
        MalformedLineError for a line that cannot be framed.
        """
        ...

    async def is_connected(self) -> bool:
        ...
