"""Short-horizon power forecast from the latest reading and weather.

Deterministic formula, not a trained model: the latest measured power is
scaled by a diurnal irradiance shape and a cloud attenuation factor.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable

from solar_optimizer.forecast.base import Forecast, ForecastEntry, WeatherSnapshot
from solar_optimizer.hardware.parser import now_ms
from solar_optimizer.hardware.reading import Reading
from solar_optimizer.state import TelemetryState
from solar_optimizer.timezone_utils import resolve_timezone

logger = logging.getLogger(__name__)

# Relative solar availability by hour of day, peaking at noon.
HOURLY_FACTOR: tuple[float, ...] = (
    0.0, 0.0, 0.0, 0.0, 0.0, 0.05,      # 00-05
    0.1, 0.2, 0.35, 0.55, 0.75, 0.9,    # 06-11
    1.0, 0.95, 0.85, 0.7, 0.5, 0.3,     # 12-17
    0.1, 0.05, 0.0, 0.0, 0.0, 0.0,      # 18-23
)

HORIZON_HOURS = 6
CLOUD_ATTENUATION = 0.7  # full overcast removes 70%
TRACKING_BOOST = 1.1  # gain credited to the tracker over a fixed panel
MAX_CONFIDENCE = 90
PEAK_HOUR = 12


def cloud_factor(weather: WeatherSnapshot | None) -> float:
    clouds = weather.cloud_cover_pct if weather is not None else 0.0
    clouds = min(100.0, max(0.0, clouds))
    return 1 - (clouds / 100) * CLOUD_ATTENUATION


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_forecast(
    reading: Reading | None,
    weather: WeatherSnapshot | None,
    current_hour: int,
    timestamp: int = 0,
) -> Forecast:
    """Compute the next-six-hours forecast.

    Args:
        reading: Latest reading; no reading means a base power of 0.
        weather: Latest weather; no snapshot means clear sky.
        current_hour: Local hour of day, 0-23.
        timestamp: Stamp for the result, ms since epoch.
    """
    factor = cloud_factor(weather)
    base_power = reading.power if reading is not None else 0.0

    entries = []
    for offset in range(1, HORIZON_HOURS + 1):
        hour = (current_hour + offset) % 24
        predicted = base_power * HOURLY_FACTOR[hour] * factor * TRACKING_BOOST
        entries.append(
            ForecastEntry(
                hour=hour,
                label=f"{hour}:00",
                predicted_power=max(0.0, round(predicted, 3)),
            )
        )

    next_hour = (current_hour + 1) % 24
    next_power = base_power * HOURLY_FACTOR[next_hour] * factor

    return Forecast(
        predicted_power=max(0.0, round(next_power, 3)),
        confidence=_round_half_up(factor * MAX_CONFIDENCE),
        peak_hour=PEAK_HOUR,
        entries=tuple(entries),
        timestamp=timestamp,
    )


class ForecastEngine:
    """Recomputes the forecast from state and writes it back."""

    def __init__(
        self,
        state: TelemetryState,
        timezone_name: str = "",
        clock: Callable[[], int] = now_ms,
        on_forecast: Callable[[Forecast], None] | None = None,
    ) -> None:
        self._state = state
        self._tz = resolve_timezone(timezone_name) if timezone_name else None
        self._clock = clock
        self._on_forecast = on_forecast

    def current_hour(self) -> int:
        moment = datetime.fromtimestamp(self._clock() / 1000, tz=self._tz)
        if self._tz is None:
            moment = moment.astimezone()
        return moment.hour

    async def recompute(self) -> Forecast:
        snapshot = self._state.snapshot()
        forecast = compute_forecast(
            snapshot.reading,
            snapshot.weather,
            self.current_hour(),
            timestamp=self._clock(),
        )
        self._state.replace_forecast(forecast)
        logger.info(
            "Prediction updated: next hour %.3fW (confidence %d%%)",
            forecast.predicted_power, forecast.confidence,
        )
        if self._on_forecast is not None:
            self._on_forecast(forecast)
        return forecast
