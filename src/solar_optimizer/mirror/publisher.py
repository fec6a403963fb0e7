"""Mirrors the latest state slots to an external key/value store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

from solar_optimizer.forecast.base import Forecast, WeatherSnapshot
from solar_optimizer.hardware.reading import Reading

logger = logging.getLogger(__name__)

# Type for async set function: (path, payload) -> None
SetFn = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class StatePublisher:
    """Publishes live reading, weather and prediction nodes.

    ``submit_*`` methods are fire-and-forget: the write runs as its own
    task and a failure is logged, never raised to the caller. At most
    ``max_pending`` writes are in flight; further submits are dropped.
    """

    def __init__(self, set_fn: SetFn, max_pending: int = 100) -> None:
        self._set = set_fn
        self._max_pending = max_pending
        self._pending: set[asyncio.Task] = set()
        self.dropped_count = 0

    async def publish_reading(self, reading: Reading) -> None:
        await self._set("live", reading.to_dict())

    async def publish_weather(self, weather: WeatherSnapshot) -> None:
        await self._set("weather", weather.to_dict())

    async def publish_forecast(self, forecast: Forecast) -> None:
        await self._set("prediction", forecast.to_dict())

    def submit_reading(self, reading: Reading) -> None:
        self._submit("live", self.publish_reading(reading))

    def submit_weather(self, weather: WeatherSnapshot) -> None:
        self._submit("weather", self.publish_weather(weather))

    def submit_forecast(self, forecast: Forecast) -> None:
        self._submit("prediction", self.publish_forecast(forecast))

    async def drain(self) -> None:
        """Wait for in-flight publishes (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _submit(self, node: str, coro: Coroutine[Any, Any, None]) -> None:
        if len(self._pending) >= self._max_pending:
            coro.close()
            self.dropped_count += 1
            logger.warning(
                "Mirror backlog at %d writes, dropping %s update", len(self._pending), node,
            )
            return
        task = asyncio.create_task(self._guarded(node, coro), name=f"mirror_{node}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _guarded(node: str, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        except Exception as e:
            logger.warning("Mirror publish of %s failed: %s", node, e)
