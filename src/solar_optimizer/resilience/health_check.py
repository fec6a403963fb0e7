"""Component health monitoring."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ComponentHealth:
    """Health state of a single component."""

    name: str
    healthy: bool = True
    last_success: float = 0.0
    last_failure: float = 0.0
    consecutive_failures: int = 0
    total_failures: int = 0
    last_error: str = ""


class HealthChecker:
    """Tracks health of the device link, weather provider and history sink."""

    def __init__(self, max_consecutive_failures: int = 3) -> None:
        self._max_failures = max_consecutive_failures
        self._components: dict[str, ComponentHealth] = {}
        self._lock = threading.Lock()

    def register(self, name: str) -> None:
        """Register a component for health tracking."""
        with self._lock:
            self._components[name] = ComponentHealth(name=name, last_success=time.monotonic())

    def record_success(self, name: str) -> None:
        """Record a successful operation for a component."""
        with self._lock:
            c = self._get_or_create(name)
            if not c.healthy:
                logger.info("Component '%s' recovered", name)
            c.healthy = True
            c.last_success = time.monotonic()
            c.consecutive_failures = 0

    def record_failure(self, name: str, error: str = "") -> None:
        """Record a failed operation for a component."""
        with self._lock:
            c = self._get_or_create(name)
            c.last_failure = time.monotonic()
            c.consecutive_failures += 1
            c.total_failures += 1
            c.last_error = error

            if c.healthy and c.consecutive_failures >= self._max_failures:
                c.healthy = False
                logger.warning(
                    "Component '%s' marked unhealthy (%d consecutive failures): %s",
                    name, c.consecutive_failures, error,
                )

    def mark_unhealthy(self, name: str, error: str) -> None:
        """Flag a component unhealthy immediately, bypassing the threshold."""
        with self._lock:
            c = self._get_or_create(name)
            c.healthy = False
            c.last_failure = time.monotonic()
            c.total_failures += 1
            c.consecutive_failures += 1
            c.last_error = error
        logger.warning("Component '%s' marked unhealthy: %s", name, error)

    def get_unhealthy(self) -> list[str]:
        """Return list of unhealthy component names."""
        with self._lock:
            return [name for name, c in self._components.items() if not c.healthy]

    def summary(self) -> dict[str, dict]:
        """JSON-ready view for the health endpoint."""
        with self._lock:
            return {
                name: {
                    "healthy": c.healthy,
                    "consecutive_failures": c.consecutive_failures,
                    "total_failures": c.total_failures,
                    "last_error": c.last_error,
                }
                for name, c in self._components.items()
            }

    def _get_or_create(self, name: str) -> ComponentHealth:
        c = self._components.get(name)
        if c is None:
            c = ComponentHealth(name=name, last_success=time.monotonic())
            self._components[name] = c
        return c
