"""Read-only accessors over telemetry state and history."""

from __future__ import annotations

import time
from typing import Any

from solar_optimizer.config.schema import HistoryConfig
from solar_optimizer.forecast.base import Forecast, WeatherSnapshot
from solar_optimizer.hardware.reading import Reading
from solar_optimizer.history.base import HistorySink
from solar_optimizer.resilience.health_check import HealthChecker
from solar_optimizer.state import TelemetryState


class QuerySurface:
    """Everything a dashboard may read. Never mutates state or history."""

    def __init__(
        self,
        state: TelemetryState,
        history: HistorySink | None = None,
        health: HealthChecker | None = None,
        history_config: HistoryConfig | None = None,
        started_at: float | None = None,
    ) -> None:
        self._state = state
        self._history = history
        self._health = health
        self._history_config = history_config or HistoryConfig()
        self._started_at = time.monotonic() if started_at is None else started_at

    def get_live(self) -> Reading | None:
        return self._state.latest_reading

    def get_weather(self) -> WeatherSnapshot | None:
        return self._state.latest_weather

    def get_forecast(self) -> Forecast | None:
        return self._state.latest_forecast

    def resolve_limit(self, limit: int | None) -> int:
        """Apply the default and clamp to the configured maximum.

        Raises ValueError for anything that is not a positive integer.
        """
        if limit is None:
            limit = self._history_config.default_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        return min(limit, self._history_config.max_limit)

    async def get_history(self, limit: int | None = None) -> list[Reading]:
        """Newest ``limit`` readings in ascending timestamp order."""
        limit = self.resolve_limit(limit)
        if self._history is None:
            return []
        readings = await self._history.recent(limit)
        return sorted(readings, key=lambda r: r.timestamp)[-limit:]

    def get_dashboard(self) -> dict[str, Any]:
        """Composite of all three slots from a single snapshot."""
        snap = self._state.snapshot()
        return {
            "live": snap.reading.to_dict() if snap.reading else None,
            "weather": snap.weather.to_dict() if snap.weather else None,
            "prediction": snap.forecast.to_dict() if snap.forecast else None,
        }

    def health(self) -> dict[str, Any]:
        """Process liveness. Component status is informational only."""
        return {
            "status": "ok",
            "uptime": round(time.monotonic() - self._started_at, 3),
            "degraded": self._health.get_unhealthy() if self._health else [],
            "components": self._health.summary() if self._health else {},
        }
