"""End-to-end scenarios: device lines in, API responses out."""

from __future__ import annotations

import itertools
import json

import pytest
from httpx import ASGITransport, AsyncClient

from solar_optimizer.config.schema import AppConfig
from solar_optimizer.dashboard.app import create_app
from solar_optimizer.forecast.base import WeatherSnapshot
from solar_optimizer.forecast.engine import ForecastEngine
from solar_optimizer.hardware.parser import parse
from solar_optimizer.history.sqlite import SqliteHistorySink
from solar_optimizer.ingestion.loop import IngestionLoop
from solar_optimizer.query import QuerySurface
from solar_optimizer.state import TelemetryState


def _device_line(power: float) -> str:
    return json.dumps({
        "voltage": 5.5, "current": 1090.0, "power": power,
        "angleH": 88, "angleV": 72, "light": 77,
        "dustAlert": False, "dustRaw": 720,
    }) + "\n"


class _Idle:
    async def connect(self) -> None: ...
    async def disconnect(self) -> None: ...
    async def readline(self) -> str:
        return ""
    async def is_connected(self) -> bool:
        return False


@pytest.fixture
def clock():
    ticks = itertools.count(1717236000000, 1000)
    return lambda: next(ticks)


@pytest.mark.asyncio
class TestIngestToQuery:
    async def test_mixed_stream(self, state: TelemetryState, sqlite_sink: SqliteHistorySink, clock) -> None:
        loop = IngestionLoop(
            _Idle(), state, history=sqlite_sink,
            parse_fn=lambda line: parse(line, clock=clock),
        )
        for line in [_device_line(4.0), "garbage\n", '{"status":"ready"}\n', _device_line(6.0)]:
            loop.process_line(line)
        await loop.drain()

        query = QuerySurface(state, history=sqlite_sink)
        assert query.get_live().power == 6.0
        history = await query.get_history(10)
        assert [r.power for r in history] == [4.0, 6.0]
        assert history[0].timestamp < history[1].timestamp

        app = create_app(AppConfig(), query)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            live = (await ac.get("/api/live")).json()
            hist = (await ac.get("/api/history", params={"limit": 10})).json()
        assert live["data"]["power"] == 6.0
        assert [r["power"] for r in hist["data"]] == [4.0, 6.0]

    async def test_forecast_follows_latest_reading(self, state: TelemetryState, clock) -> None:
        loop = IngestionLoop(_Idle(), state, parse_fn=lambda line: parse(line, clock=clock))
        loop.process_line(_device_line(10.0))
        state.replace_weather(WeatherSnapshot(30.0, 60, 0, "clear sky", 1.0, 0))

        # 11:00 UTC
        engine = ForecastEngine(state, timezone_name="UTC", clock=lambda: 1717239600000)
        forecast = await engine.recompute()
        assert forecast.predicted_power == 10.0
        assert forecast.confidence == 90

        app = create_app(AppConfig(), QuerySurface(state))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            dash = (await ac.get("/api/dashboard")).json()["data"]
        assert dash["live"]["power"] == 10.0
        assert dash["weather"]["description"] == "clear sky"
        assert dash["prediction"]["predicted_power"] == 10.0
