"""Firebase Realtime Database access over its REST API.

Layout under ``root`` (default ``solarData``)::

    live        latest reading        (PUT)
    weather     latest weather        (PUT)
    prediction  latest forecast       (PUT)
    history     push-keyed readings   (POST / ordered GET)
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from solar_optimizer.config.schema import FirebaseConfig
from solar_optimizer.hardware.reading import Reading
from solar_optimizer.history.base import HistoryReadError, HistoryWriteError

logger = logging.getLogger(__name__)


class FirebaseClient:
    """Minimal async REST client for one Realtime Database."""

    def __init__(self, config: FirebaseConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    def _url(self, path: str) -> str:
        base = self._config.database_url.rstrip("/")
        root = self._config.root.strip("/")
        return f"{base}/{root}/{path}.json"

    def _params(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = dict(extra or {})
        if self._config.auth_token:
            params["auth"] = self._config.auth_token
        return params

    async def set(self, path: str, payload: dict[str, Any]) -> None:
        resp = await self._client.put(self._url(path), json=payload, params=self._params())
        resp.raise_for_status()

    async def push(self, path: str, payload: dict[str, Any]) -> str:
        resp = await self._client.post(self._url(path), json=payload, params=self._params())
        resp.raise_for_status()
        return str(resp.json().get("name", ""))

    async def query_last(self, path: str, order_by: str, limit: int) -> dict[str, Any]:
        params = self._params({
            "orderBy": json.dumps(order_by),
            "limitToLast": limit,
        })
        resp = await self._client.get(self._url(path), params=params)
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, dict) else {}

    async def close(self) -> None:
        await self._client.aclose()


class FirebaseHistorySink:
    """HistorySink storing readings under ``{root}/history``."""

    PATH = "history"

    def __init__(self, client: FirebaseClient) -> None:
        self._client = client

    async def append(self, reading: Reading) -> str:
        try:
            return await self._client.push(self.PATH, reading.to_dict())
        except (httpx.HTTPError, ValueError) as e:
            raise HistoryWriteError(f"Firebase push failed: {e!r}") from e

    async def recent(self, limit: int) -> list[Reading]:
        try:
            raw = await self._client.query_last(self.PATH, "timestamp", limit)
        except (httpx.HTTPError, ValueError) as e:
            raise HistoryReadError(f"Firebase query failed: {e!r}") from e

        readings = []
        for key, value in raw.items():
            try:
                readings.append(Reading.from_dict(value))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed history entry %s", key)
        readings.sort(key=lambda r: r.timestamp)
        return readings[-limit:]

    async def close(self) -> None:
        # The FirebaseClient is shared with the state mirror and closed by its owner.
        return None
