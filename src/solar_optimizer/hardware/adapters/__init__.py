"""Concrete device links."""

from __future__ import annotations

from solar_optimizer.config.schema import DeviceConfig
from solar_optimizer.hardware.base import DeviceLink

SIMULATOR_PREFIX = "sim://"


def create_link(config: DeviceConfig) -> DeviceLink:
    """Build the link selected by ``config.port``."""
    if config.port.startswith(SIMULATOR_PREFIX):
        from solar_optimizer.hardware.adapters.simulator import SimulatedLink

        return SimulatedLink(interval_seconds=config.simulator_interval_seconds)

    from solar_optimizer.hardware.adapters.serial_link import SerialLink

    return SerialLink(config)
