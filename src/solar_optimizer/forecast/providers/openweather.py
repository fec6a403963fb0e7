"""OpenWeatherMap current-weather provider.

Requires an API key.
API docs: https://openweathermap.org/current
"""

from __future__ import annotations

import logging
from typing import Callable

import httpx

from solar_optimizer.config.schema import WeatherConfig
from solar_optimizer.forecast.base import ExternalFetchError, WeatherProvider, WeatherSnapshot
from solar_optimizer.hardware.parser import now_ms

logger = logging.getLogger(__name__)


class OpenWeatherProvider(WeatherProvider):
    """OpenWeatherMap REST API weather provider."""

    def __init__(
        self,
        config: WeatherConfig,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._clock = clock

    async def fetch_current(self) -> WeatherSnapshot:
        """Fetch current conditions for the configured city."""
        params = {
            "q": self._config.city,
            "appid": self._config.api_key,
            "units": self._config.units,
        }
        try:
            resp = await self._client.get(self._config.base_url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ExternalFetchError(
                f"OpenWeather returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalFetchError(f"OpenWeather request failed: {e!r}") from e
        except ValueError as e:
            raise ExternalFetchError("OpenWeather returned invalid JSON") from e

        snapshot = self._parse(data, self._clock())
        logger.info(
            "Weather updated: %.1f°C, %.0f%% clouds (%s)",
            snapshot.temperature_c, snapshot.cloud_cover_pct, snapshot.description,
        )
        return snapshot

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _parse(data: object, timestamp: int) -> WeatherSnapshot:
        """Parse an OpenWeather current-weather payload."""
        try:
            main = data["main"]  # type: ignore[index]
            conditions = data.get("weather") or [{}]  # type: ignore[union-attr]
            return WeatherSnapshot(
                temperature_c=float(main["temp"]),
                humidity_pct=float(main["humidity"]),
                cloud_cover_pct=float(data["clouds"]["all"]),  # type: ignore[index]
                description=str(conditions[0].get("description", "")),
                wind_speed_ms=float(data.get("wind", {}).get("speed", 0.0)),  # type: ignore[union-attr]
                timestamp=timestamp,
            )
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise ExternalFetchError(f"Malformed OpenWeather payload: {e!r}") from e
