"""Device ingestion loop: byte stream -> parser -> state + history.

Lines are applied to state strictly in arrival order. History appends are
submitted as detached tasks so a slow or failing store never stalls the
stream; persistence is best-effort and at-most-once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from solar_optimizer.hardware.base import DeviceConnectionError, DeviceLink
from solar_optimizer.hardware.parser import (
    DeviceMessage,
    MalformedLineError,
    MissingFieldError,
    NotJsonError,
    ParseError,
    parse,
)
from solar_optimizer.hardware.reading import Reading
from solar_optimizer.history.base import HistorySink, HistoryWriteError
from solar_optimizer.logging.context import bind_context
from solar_optimizer.mirror.publisher import StatePublisher
from solar_optimizer.resilience.health_check import HealthChecker
from solar_optimizer.state import TelemetryState

logger = logging.getLogger(__name__)


@dataclass
class IngestionStats:
    """Counters describing the ingestion loop."""

    lines_received: int = 0
    readings_accepted: int = 0
    not_json: int = 0
    malformed: int = 0
    missing_field: int = 0
    device_messages: int = 0
    history_failures: int = 0
    history_dropped: int = 0
    connect_failures: int = 0
    connected: bool = False
    last_reading_at: int | None = None


class IngestionLoop:
    """Owns the device link and feeds accepted readings into state and history."""

    DEVICE = "device"
    HISTORY = "history"

    def __init__(
        self,
        link: DeviceLink,
        state: TelemetryState,
        history: HistorySink | None = None,
        health: HealthChecker | None = None,
        publisher: StatePublisher | None = None,
        reconnect_delay_seconds: float = 2.0,
        max_reconnect_delay_seconds: float = 60.0,
        max_pending_appends: int = 1000,
        parse_fn: Callable[[str], Reading] = parse,
    ) -> None:
        self._link = link
        self._state = state
        self._history = history
        self._health = health
        self._publisher = publisher
        self._base_delay = reconnect_delay_seconds
        self._max_delay = max(max_reconnect_delay_seconds, reconnect_delay_seconds)
        self._max_pending = max_pending_appends
        self._parse = parse_fn
        self._stop_event = asyncio.Event()
        self._pending: set[asyncio.Task] = set()
        self.stats = IngestionStats()

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()

    # ── Per-line handling ─────────────────────────────────

    def process_line(self, line: str) -> Reading | None:
        """Parse one line and apply it. Returns the accepted reading, if any."""
        self.stats.lines_received += 1
        try:
            reading = self._parse(line)
        except ParseError as e:
            self._log_parse_error(e, line)
            return None
        except Exception:
            self.stats.malformed += 1
            logger.exception("Unexpected error parsing line: %r", line.strip()[:80])
            return None

        self._state.replace_reading(reading)
        self.stats.readings_accepted += 1
        self.stats.last_reading_at = reading.timestamp
        logger.debug(
            "Reading: power=%.3fW angle=%d/%d dust=%s",
            reading.power, reading.angle_h, reading.angle_v, reading.dust_alert,
        )

        if self._history is not None:
            self._submit_history(reading)
        if self._publisher is not None:
            self._publisher.submit_reading(reading)
        return reading

    def _log_parse_error(self, error: ParseError, line: str) -> None:
        if isinstance(error, NotJsonError):
            self.stats.not_json += 1
            logger.debug("Skipping non-JSON line: %r", line.strip()[:80])
        elif isinstance(error, DeviceMessage):
            self.stats.device_messages += 1
            if error.kind == "error":
                logger.warning("Device reported error: %s", error.text)
            else:
                logger.info("Device status: %s", error.text)
        elif isinstance(error, MissingFieldError):
            self.stats.missing_field += 1
            logger.warning("Rejected reading, field %s", error)
        else:
            self.stats.malformed += 1
            logger.warning("Malformed line skipped: %s", error)

    # ── History (fire-and-forget) ─────────────────────────

    def _submit_history(self, reading: Reading) -> None:
        if len(self._pending) >= self._max_pending:
            self.stats.history_dropped += 1
            logger.warning(
                "History backlog at %d appends, dropping reading %d",
                len(self._pending), reading.timestamp,
            )
            return
        task = asyncio.create_task(
            self._append_history(self._history, reading),  # type: ignore[arg-type]
            name="history_append",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _append_history(self, history: HistorySink, reading: Reading) -> None:
        try:
            await history.append(reading)
        except HistoryWriteError as e:
            self._record_history_failure(str(e))
            logger.warning("History append failed: %s", e)
        except Exception as e:
            self._record_history_failure(repr(e))
            logger.exception("Unexpected history append failure")
        else:
            if self._health is not None:
                self._health.record_success(self.HISTORY)

    def _record_history_failure(self, error: str) -> None:
        self.stats.history_failures += 1
        if self._health is not None:
            self._health.record_failure(self.HISTORY, error)

    async def drain(self) -> None:
        """Wait for all submitted history appends to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ── Stream loop ───────────────────────────────────────

    async def run(self) -> None:
        """Consume the device stream until stop(), reconnecting on failure."""
        bind_context(task="ingestion")
        delay = self._base_delay
        logger.info("Ingestion loop starting")

        while not self._stop_event.is_set():
            connected = False
            try:
                await self._link.connect()
            except DeviceConnectionError as e:
                self._connect_failed(str(e))
                logger.warning("Device open failed, retrying in %.1fs: %s", delay, e)
            except Exception as e:
                self._connect_failed(repr(e))
                logger.exception("Unexpected error opening device, retrying in %.1fs", delay)
            else:
                connected = True

            if not connected:
                await self._sleep(delay)
                delay = min(delay * 2, self._max_delay)
                continue

            delay = self._base_delay
            self.stats.connected = True
            if self._health is not None:
                self._health.record_success(self.DEVICE)

            try:
                await self._consume()
            except DeviceConnectionError as e:
                self._record_device_failure(str(e))
                logger.warning("Device link lost: %s", e)
            except Exception as e:
                self._record_device_failure(repr(e))
                logger.exception("Unexpected error reading device stream")
            finally:
                self.stats.connected = False
                await self._link.disconnect()

            if self._stop_event.is_set():
                break
            logger.warning("Device stream ended, reconnecting in %.1fs", delay)
            await self._sleep(delay)
            delay = min(delay * 2, self._max_delay)

        logger.info("Ingestion loop stopped")

    async def _consume(self) -> None:
        while not self._stop_event.is_set():
            try:
                line = await self._link.readline()
            except MalformedLineError as e:
                self.stats.lines_received += 1
                self._log_parse_error(e, "")
                continue
            if line == "":
                return
            self.process_line(line)

    async def stop(self) -> None:
        """Stop reading and close the device link."""
        self._stop_event.set()
        await self._link.disconnect()

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def _connect_failed(self, error: str) -> None:
        self.stats.connect_failures += 1
        self._record_device_failure(error)

    def _record_device_failure(self, error: str) -> None:
        if self._health is not None:
            self._health.record_failure(self.DEVICE, error)
