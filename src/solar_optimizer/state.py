"""Authoritative in-process view of the latest reading, weather and forecast.

Three independent slots, each replaced wholesale. Values are frozen
dataclasses, so handing out the stored instance is handing out a copy:
nobody can mutate what another reader sees. A ``threading.Lock`` guards
the slot references so the aggregate is safe from worker threads as well
as from tasks on the event loop; critical sections are a single
assignment or a three-field read.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from solar_optimizer.forecast.base import Forecast, WeatherSnapshot
from solar_optimizer.hardware.reading import Reading


@dataclass(frozen=True)
class StateSnapshot:
    """Point-in-time view of all three slots."""

    reading: Reading | None = None
    weather: WeatherSnapshot | None = None
    forecast: Forecast | None = None


class TelemetryState:
    """Concurrency-safe holder of the three state slots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reading: Reading | None = None
        self._weather: WeatherSnapshot | None = None
        self._forecast: Forecast | None = None

    def replace_reading(self, reading: Reading) -> None:
        with self._lock:
            self._reading = reading

    def replace_weather(self, weather: WeatherSnapshot) -> None:
        with self._lock:
            self._weather = weather

    def replace_forecast(self, forecast: Forecast) -> None:
        with self._lock:
            self._forecast = forecast

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return StateSnapshot(
                reading=self._reading,
                weather=self._weather,
                forecast=self._forecast,
            )

    @property
    def latest_reading(self) -> Reading | None:
        with self._lock:
            return self._reading

    @property
    def latest_weather(self) -> WeatherSnapshot | None:
        with self._lock:
            return self._weather

    @property
    def latest_forecast(self) -> Forecast | None:
        with self._lock:
            return self._forecast
