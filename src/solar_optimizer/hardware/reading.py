"""Telemetry data model for solar tracker readings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Reading:
    """One timestamped telemetry sample from the tracker.

    Field names follow Python convention; ``to_dict`` emits the device
    wire names (``angleH``, ``dustRaw``...) used by the HTTP surface and
    the history stores.
    """

    voltage: float  # volts
    current: float  # milliamps
    power: float  # watts, as transmitted (not recomputed)
    angle_h: int  # horizontal servo, 0-180 degrees
    angle_v: int  # vertical servo, 30-150 degrees
    light: int  # light intensity percent, 0-100
    dust_alert: bool
    dust_raw: int  # raw LDR value of the dust sensor
    timestamp: int  # ms since epoch, stamped on ingestion

    @property
    def computed_power(self) -> float:
        """Power derived from voltage and current, in watts."""
        return self.voltage * self.current / 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "voltage": self.voltage,
            "current": self.current,
            "power": self.power,
            "angleH": self.angle_h,
            "angleV": self.angle_v,
            "light": self.light,
            "dustAlert": self.dust_alert,
            "dustRaw": self.dust_raw,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reading:
        """Rebuild a stored reading (inverse of ``to_dict``)."""
        return cls(
            voltage=float(data["voltage"]),
            current=float(data["current"]),
            power=float(data["power"]),
            angle_h=int(data["angleH"]),
            angle_v=int(data["angleV"]),
            light=int(data["light"]),
            dust_alert=bool(data["dustAlert"]),
            dust_raw=int(data["dustRaw"]),
            timestamp=int(data["timestamp"]),
        )
