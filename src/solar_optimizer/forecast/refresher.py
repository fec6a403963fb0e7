"""Weather refresh job: fetch, then replace the weather slot on success."""

from __future__ import annotations

import logging
from typing import Callable

from solar_optimizer.forecast.base import ExternalFetchError, WeatherProvider, WeatherSnapshot
from solar_optimizer.resilience.health_check import HealthChecker
from solar_optimizer.state import TelemetryState

logger = logging.getLogger(__name__)


class WeatherRefresher:
    """Keeps the weather slot current; stale data beats no data.

    A failed fetch leaves the previous snapshot in place and is only
    logged and counted against the ``weather`` component.
    """

    COMPONENT = "weather"

    def __init__(
        self,
        provider: WeatherProvider,
        state: TelemetryState,
        health: HealthChecker | None = None,
        on_weather: Callable[[WeatherSnapshot], None] | None = None,
    ) -> None:
        self._provider = provider
        self._state = state
        self._health = health
        self._on_weather = on_weather

    async def refresh(self) -> bool:
        """Run one fetch. Returns True if the weather slot was replaced."""
        try:
            snapshot = await self._provider.fetch_current()
        except ExternalFetchError as e:
            logger.warning("Weather fetch failed, keeping previous snapshot: %s", e)
            if self._health is not None:
                self._health.record_failure(self.COMPONENT, str(e))
            return False

        self._state.replace_weather(snapshot)
        if self._health is not None:
            self._health.record_success(self.COMPONENT)
        if self._on_weather is not None:
            self._on_weather(snapshot)
        return True
