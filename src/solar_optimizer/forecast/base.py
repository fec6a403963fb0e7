"""Weather and forecast models plus the weather provider base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ExternalFetchError(Exception):
    """Weather fetch failed: network error, bad status or malformed payload."""


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions at the configured location."""

    temperature_c: float
    humidity_pct: float
    cloud_cover_pct: float  # 0-100
    description: str
    wind_speed_ms: float
    timestamp: int  # fetch time, ms since epoch

    def to_dict(self) -> dict[str, Any]:
        return {
            "temp": self.temperature_c,
            "humidity": self.humidity_pct,
            "clouds": self.cloud_cover_pct,
            "description": self.description,
            "windSpeed": self.wind_speed_ms,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ForecastEntry:
    """Predicted output for one upcoming hour."""

    hour: int  # 0-23
    label: str  # "13:00"
    predicted_power: float  # watts

    def to_dict(self) -> dict[str, Any]:
        return {"hour": self.hour, "label": self.label, "predicted": self.predicted_power}


@dataclass(frozen=True)
class Forecast:
    """Short-horizon power forecast."""

    predicted_power: float  # next-hour headline, watts
    confidence: int  # percent
    peak_hour: int
    entries: tuple[ForecastEntry, ...] = field(default_factory=tuple)
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "predicted_power": self.predicted_power,
            "confidence": self.confidence,
            "peak_hour": self.peak_hour,
            "forecast": [e.to_dict() for e in self.entries],
            "timestamp": self.timestamp,
        }


class WeatherProvider(ABC):
    """Abstract base for current-weather providers."""

    @abstractmethod
    async def fetch_current(self) -> WeatherSnapshot:
        """Fetch current conditions. Raises ExternalFetchError on failure."""
        ...

    async def close(self) -> None:
        """Release any held HTTP resources."""
        return None
