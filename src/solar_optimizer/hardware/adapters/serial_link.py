"""USB serial link to the tracker via pyserial-asyncio.

``port`` accepts anything ``serial.serial_for_url`` understands, so besides
``/dev/ttyUSB0`` or ``COM3`` a ``socket://host:port`` bridge works too.
"""

from __future__ import annotations

import asyncio
import logging

import serial
import serial_asyncio

from solar_optimizer.config.schema import DeviceConfig
from solar_optimizer.hardware.base import DeviceConnectionError
from solar_optimizer.hardware.parser import MalformedLineError

logger = logging.getLogger(__name__)


class SerialLink:
    """Newline-delimited text stream over a serial port."""

    def __init__(self, config: DeviceConfig) -> None:
        self._config = config
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    async def connect(self) -> None:
        """Open the serial port. Closes any previous connection first."""
        await self.disconnect()
        try:
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=self._config.port,
                baudrate=self._config.baud_rate,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            # ValueError: unknown URL scheme or bad port settings
            raise DeviceConnectionError(
                f"Failed to open {self._config.port} at {self._config.baud_rate} baud: {e}"
            ) from e
        logger.info(
            "Device connected on %s (%d baud)", self._config.port, self._config.baud_rate,
        )

    async def disconnect(self) -> None:
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is not None:
            writer.close()
            logger.info("Device link on %s closed", self._config.port)

    async def is_connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    async def readline(self) -> str:
        reader = self._reader
        if reader is None:
            return ""
        try:
            raw = await reader.readline()
        except ValueError as e:
            # StreamReader limit overrun; the oversized chunk is discarded.
            raise MalformedLineError(f"line exceeds buffer limit: {e}") from e
        except (serial.SerialException, OSError) as e:
            raise DeviceConnectionError(f"Read from {self._config.port} failed: {e}") from e
        return raw.decode("utf-8", errors="replace")
