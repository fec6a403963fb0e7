"""Simulated tracker for running without hardware.

Emits the same JSON lines the firmware prints: a ready banner, then a
reading every ``interval_seconds`` shaped by a daylight curve, with servo
angles drifting toward the sun and a dust alert every 30th sample.
"""

from __future__ import annotations

import asyncio
import json
import math
import random
from datetime import datetime
from typing import Callable


def _local_hour() -> int:
    return datetime.now().hour


class SimulatedLink:
    """DeviceLink that fabricates plausible telemetry lines."""

    DUST_ALERT_EVERY = 30

    def __init__(
        self,
        interval_seconds: float = 2.0,
        hour_fn: Callable[[], int] = _local_hour,
        seed: int | None = None,
    ) -> None:
        self._interval = interval_seconds
        self._hour_fn = hour_fn
        self._rng = random.Random(seed)
        self._closed = asyncio.Event()
        self._connected = False
        self._banner_sent = False
        self._angle_h = 90.0
        self._angle_v = 75.0
        self._tick = 0

    async def connect(self) -> None:
        self._closed.clear()
        self._connected = True
        self._banner_sent = False

    async def disconnect(self) -> None:
        self._connected = False
        self._closed.set()

    async def is_connected(self) -> bool:
        return self._connected

    async def readline(self) -> str:
        if not self._connected:
            return ""
        if not self._banner_sent:
            self._banner_sent = True
            return json.dumps({"status": "ready"}) + "\n"
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=self._interval)
            return ""
        except asyncio.TimeoutError:
            pass
        return json.dumps(self.next_sample()) + "\n"

    def next_sample(self) -> dict:
        """Produce the next simulated reading as a wire-format dict."""
        hour = self._hour_fn()
        solar = max(0.0, math.sin((hour - 6) * math.pi / 12))

        def noise() -> float:
            return (self._rng.random() - 0.5) * 0.3

        self._angle_h = min(180.0, max(0.0, self._angle_h + (self._rng.random() - 0.45) * 2))
        self._angle_v = min(150.0, max(30.0, self._angle_v + (self._rng.random() - 0.45) * 2))

        voltage = round(5.5 + solar * 0.8 + noise(), 2)
        current = round(800 + solar * 900 + noise() * 100, 1)
        power = round(voltage * current / 1000 + noise(), 3)
        light = round(solar * 90 + self._rng.random() * 10)

        dust_alert = self._tick % self.DUST_ALERT_EVERY == 0
        dust_raw = 150 if dust_alert else 700 + round(self._rng.random() * 100)
        self._tick += 1

        return {
            "voltage": max(0.0, voltage),
            "current": max(0.0, current),
            "power": max(0.0, power),
            "angleH": round(self._angle_h),
            "angleV": round(self._angle_v),
            "light": max(0, light),
            "dustAlert": dust_alert,
            "dustRaw": dust_raw,
        }
