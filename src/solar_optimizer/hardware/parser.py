"""Line parser: one line of device output in, one Reading (or a ParseError) out.

The device interleaves telemetry JSON with boot banners, diagnostics and
``{"status": ...}`` / ``{"error": ...}`` objects, and serial corruption
produces truncated lines. Every non-telemetry outcome is a ``ParseError``
subclass so the ingestion loop can log and move on.
"""

from __future__ import annotations

import json
import math
import time
from typing import Any, Callable

from solar_optimizer.hardware.reading import Reading

# Wire name -> (attribute, kind)
TELEMETRY_FIELDS: dict[str, tuple[str, str]] = {
    "voltage": ("voltage", "float"),
    "current": ("current", "float"),
    "power": ("power", "float"),
    "angleH": ("angle_h", "int"),
    "angleV": ("angle_v", "int"),
    "light": ("light", "int"),
    "dustAlert": ("dust_alert", "bool"),
    "dustRaw": ("dust_raw", "int"),
}

MESSAGE_KEYS = ("status", "error")

# SQLite INTEGER bounds
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


class ParseError(Exception):
    """Base class for every line the parser refuses to turn into a Reading."""


class NotJsonError(ParseError):
    """Line does not start with ``{`` (banner, diagnostic, noise)."""


class MalformedLineError(ParseError):
    """Line starts like JSON but fails to decode into an object."""


class MissingFieldError(ParseError):
    """A required telemetry field is absent or has the wrong type."""

    def __init__(self, field: str, reason: str = "missing") -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class DeviceMessage(ParseError):
    """Out-of-band status or error object sent by the device."""

    def __init__(self, text: str, kind: str = "status") -> None:
        super().__init__(text)
        self.text = text
        self.kind = kind


def now_ms() -> int:
    return int(time.time() * 1000)


def parse(line: str, clock: Callable[[], int] = now_ms) -> Reading:
    """Parse one line of device output into a Reading.

    Raises a ``ParseError`` subclass for anything that is not a complete
    telemetry object. The timestamp comes from ``clock`` at call time; the
    device does not send one.
    """
    line = line.strip()
    if not line.startswith("{"):
        raise NotJsonError(line[:80])

    try:
        data = json.loads(line)
    except ValueError as e:
        raise MalformedLineError(str(e)) from e
    except RecursionError as e:
        raise MalformedLineError("nesting too deep") from e
    if not isinstance(data, dict):
        raise MalformedLineError("top-level value is not an object")

    if _is_device_message(data):
        kind = "error" if "error" in data else "status"
        raise DeviceMessage(str(data[kind]), kind=kind)

    values: dict[str, Any] = {}
    for wire_name, (attr, kind) in TELEMETRY_FIELDS.items():
        if wire_name not in data:
            raise MissingFieldError(wire_name)
        values[attr] = _coerce(wire_name, data[wire_name], kind)

    return Reading(timestamp=clock(), **values)


def _is_device_message(data: dict[str, Any]) -> bool:
    if not any(key in data for key in MESSAGE_KEYS):
        return False
    return not any(name in data for name in TELEMETRY_FIELDS)


def _coerce(name: str, value: Any, kind: str) -> Any:
    # bool is a subclass of int; keep it out of the numeric fields.
    if kind == "bool":
        if isinstance(value, bool):
            return value
        raise MissingFieldError(name, f"expected boolean, got {type(value).__name__}")

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MissingFieldError(name, f"expected number, got {type(value).__name__}")
    if isinstance(value, float) and not math.isfinite(value):
        raise MissingFieldError(name, f"expected finite number, got {value}")

    if kind == "int":
        if isinstance(value, float):
            if not value.is_integer():
                raise MissingFieldError(name, f"expected integer, got {value}")
            value = int(value)
        if not INT_MIN <= value <= INT_MAX:
            raise MissingFieldError(name, "integer out of range")
        return value

    try:
        return float(value)
    except OverflowError as e:
        raise MissingFieldError(name, "number out of range") from e
