"""Tests for the state mirror publisher."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from solar_optimizer.forecast.base import Forecast, ForecastEntry, WeatherSnapshot
from solar_optimizer.hardware.reading import Reading
from solar_optimizer.mirror.publisher import StatePublisher


class RecordingStore:
    def __init__(self, fail: bool = False) -> None:
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.fail = fail

    async def set(self, path: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("offline")
        self.writes.append((path, payload))


READING = Reading(
    voltage=5.4, current=900.0, power=4.86, angle_h=100, angle_v=80,
    light=70, dust_alert=False, dust_raw=710, timestamp=5,
)


@pytest.mark.asyncio
class TestStatePublisher:
    async def test_publish_reading_to_live(self) -> None:
        store = RecordingStore()
        await StatePublisher(store.set).publish_reading(READING)
        assert store.writes == [("live", READING.to_dict())]

    async def test_publish_weather_and_prediction(self) -> None:
        store = RecordingStore()
        pub = StatePublisher(store.set)
        weather = WeatherSnapshot(30.0, 60, 20, "haze", 2.0, 9)
        forecast = Forecast(1.5, 77, 12, (ForecastEntry(13, "13:00", 1.2),), 9)
        await pub.publish_weather(weather)
        await pub.publish_forecast(forecast)
        assert [path for path, _ in store.writes] == ["weather", "prediction"]
        assert store.writes[1][1]["forecast"] == [{"hour": 13, "label": "13:00", "predicted": 1.2}]

    async def test_submit_is_fire_and_forget(self) -> None:
        store = RecordingStore()
        pub = StatePublisher(store.set)
        pub.submit_reading(READING)
        assert store.writes == []
        await pub.drain()
        assert store.writes == [("live", READING.to_dict())]

    async def test_submit_failure_is_logged_not_raised(self, caplog) -> None:
        pub = StatePublisher(RecordingStore(fail=True).set)
        pub.submit_reading(READING)
        await pub.drain()
        assert "Mirror publish of live failed" in caplog.text

    async def test_stalled_store_backlog_capped(self) -> None:
        release = asyncio.Event()
        writes: list[str] = []

        async def stalled_set(path: str, payload: dict[str, Any]) -> None:
            await release.wait()
            writes.append(path)

        pub = StatePublisher(stalled_set, max_pending=3)
        for _ in range(10):
            pub.submit_reading(READING)
        assert pub.dropped_count == 7

        release.set()
        await pub.drain()
        assert writes == ["live"] * 3

        pub.submit_reading(READING)
        await pub.drain()
        assert len(writes) == 4
