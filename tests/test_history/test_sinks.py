"""Tests for the SQLite and Firebase history sinks."""

from __future__ import annotations

import json

import httpx
import pytest

from solar_optimizer.config.schema import FirebaseConfig
from solar_optimizer.db.repository import Repository
from solar_optimizer.hardware.reading import Reading
from solar_optimizer.history.base import HistoryReadError, HistorySink, HistoryWriteError
from solar_optimizer.history.firebase import FirebaseClient, FirebaseHistorySink
from solar_optimizer.history.sqlite import SqliteHistorySink


def _reading(power: float, ts: int) -> Reading:
    return Reading(
        voltage=5.2, current=800.0, power=power, angle_h=90, angle_v=75,
        light=55, dust_alert=ts % 2 == 0, dust_raw=700, timestamp=ts,
    )


# ── SQLite ────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestSqliteHistorySink:
    async def test_is_history_sink(self, sqlite_sink: SqliteHistorySink) -> None:
        assert isinstance(sqlite_sink, HistorySink)

    async def test_append_returns_distinct_keys(self, sqlite_sink: SqliteHistorySink) -> None:
        k1 = await sqlite_sink.append(_reading(1.0, 100))
        k2 = await sqlite_sink.append(_reading(2.0, 200))
        assert k1 != k2

    async def test_recent_oldest_first(self, sqlite_sink: SqliteHistorySink) -> None:
        for i in range(5):
            await sqlite_sink.append(_reading(float(i), 100 + i))
        readings = await sqlite_sink.recent(3)
        assert [r.power for r in readings] == [2.0, 3.0, 4.0]

    async def test_round_trip_preserves_fields(self, sqlite_sink: SqliteHistorySink) -> None:
        original = _reading(4.321, 1717236000000)
        await sqlite_sink.append(original)
        assert await sqlite_sink.recent(1) == [original]

    async def test_empty(self, sqlite_sink: SqliteHistorySink) -> None:
        assert await sqlite_sink.recent(10) == []

    async def test_database_errors_become_history_errors(self, repo: Repository) -> None:
        sink = SqliteHistorySink(repo)
        await repo.db.execute("DROP TABLE readings")
        with pytest.raises(HistoryWriteError):
            await sink.append(_reading(1.0, 1))
        with pytest.raises(HistoryReadError):
            await sink.recent(5)


# ── Firebase ──────────────────────────────────────────────────


class FakeRealtimeDatabase:
    """In-memory stand-in for the Realtime Database REST API."""

    def __init__(self) -> None:
        self.nodes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None
        self._next_id = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"error": "denied"})
        path = request.url.path.removeprefix("/solarData/").removesuffix(".json")
        if request.method == "PUT":
            self.nodes[path] = json.loads(request.content)
            return httpx.Response(200, content=request.content)
        if request.method == "POST":
            self._next_id += 1
            key = f"-N{self._next_id:05d}"
            self.nodes.setdefault(path, {})[key] = json.loads(request.content)  # type: ignore[index]
            return httpx.Response(200, json={"name": key})
        node = self.nodes.get(path) or {}
        limit = int(request.url.params.get("limitToLast", len(node)))
        items = sorted(node.items(), key=lambda kv: kv[1]["timestamp"])[-limit:]  # type: ignore[union-attr]
        if not items:
            return httpx.Response(200, content=b"null")
        return httpx.Response(200, json=dict(items))


def _firebase(fake: FakeRealtimeDatabase, **config) -> FirebaseClient:
    cfg = FirebaseConfig(database_url="https://solar-demo.firebaseio.com/", **config)
    return FirebaseClient(cfg, client=httpx.AsyncClient(transport=httpx.MockTransport(fake)))


@pytest.mark.asyncio
class TestFirebaseClient:
    async def test_set_url_and_auth(self) -> None:
        fake = FakeRealtimeDatabase()
        client = _firebase(fake, auth_token="s3cret")
        await client.set("live", {"power": 1.0})
        req = fake.requests[0]
        assert req.method == "PUT"
        assert str(req.url).startswith("https://solar-demo.firebaseio.com/solarData/live.json")
        assert req.url.params["auth"] == "s3cret"
        assert fake.nodes["live"] == {"power": 1.0}
        await client.close()

    async def test_no_auth_param_without_token(self) -> None:
        fake = FakeRealtimeDatabase()
        await _firebase(fake).set("weather", {})
        assert "auth" not in fake.requests[0].url.params

    async def test_query_uses_ordered_limit(self) -> None:
        fake = FakeRealtimeDatabase()
        await _firebase(fake).query_last("history", "timestamp", 7)
        params = fake.requests[0].url.params
        assert params["orderBy"] == '"timestamp"'
        assert params["limitToLast"] == "7"


@pytest.mark.asyncio
class TestFirebaseHistorySink:
    async def test_append_returns_push_key(self) -> None:
        fake = FakeRealtimeDatabase()
        sink = FirebaseHistorySink(_firebase(fake))
        assert await sink.append(_reading(1.0, 100)) == "-N00001"
        assert fake.nodes["history"]["-N00001"]["power"] == 1.0  # type: ignore[index]

    async def test_recent_sorted_and_limited(self) -> None:
        fake = FakeRealtimeDatabase()
        sink = FirebaseHistorySink(_firebase(fake))
        for power, ts in [(3.0, 300), (1.0, 100), (2.0, 200), (4.0, 400)]:
            await sink.append(_reading(power, ts))
        readings = await sink.recent(3)
        assert [r.timestamp for r in readings] == [200, 300, 400]
        assert readings[-1] == _reading(4.0, 400)

    async def test_recent_empty_node(self) -> None:
        sink = FirebaseHistorySink(_firebase(FakeRealtimeDatabase()))
        assert await sink.recent(5) == []

    async def test_malformed_entries_skipped(self) -> None:
        fake = FakeRealtimeDatabase()
        fake.nodes["history"] = {
            "-a": _reading(1.0, 100).to_dict(),
            "-b": {"timestamp": 150, "power": "n/a"},
        }
        readings = await FirebaseHistorySink(_firebase(fake)).recent(10)
        assert [r.timestamp for r in readings] == [100]

    async def test_write_failure(self) -> None:
        fake = FakeRealtimeDatabase()
        fake.fail_status = 401
        sink = FirebaseHistorySink(_firebase(fake))
        with pytest.raises(HistoryWriteError):
            await sink.append(_reading(1.0, 1))

    async def test_read_failure(self) -> None:
        fake = FakeRealtimeDatabase()
        fake.fail_status = 503
        sink = FirebaseHistorySink(_firebase(fake))
        with pytest.raises(HistoryReadError):
            await sink.recent(10)
