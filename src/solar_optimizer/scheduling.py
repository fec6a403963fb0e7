"""Fixed-interval background jobs with a single-flight guard."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from solar_optimizer.logging.context import bind_context

logger = logging.getLogger(__name__)

JobFn = Callable[[], Awaitable[Any]]


class PeriodicJob:
    """Runs ``func`` every ``interval_seconds`` until the stop event is set.

    At most one execution is in flight: a trigger that arrives while the
    previous run is still going is dropped, not queued. Exceptions from
    ``func`` are logged and never reach the caller.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        func: JobFn,
        run_immediately: bool = True,
    ) -> None:
        self.name = name
        self._interval = interval_seconds
        self._func = func
        self._run_immediately = run_immediately
        self._running = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        self.run_count = 0
        self.dropped_count = 0

    @property
    def in_flight(self) -> bool:
        return self._running.locked()

    async def trigger(self) -> bool:
        """Execute the job once. Returns False if dropped as overlapping."""
        if self._running.locked():
            self.dropped_count += 1
            logger.debug("Job %s still running, trigger dropped", self.name)
            return False
        async with self._running:
            try:
                await self._func()
            except Exception:
                logger.exception("Error in scheduled job %s", self.name)
            finally:
                self.run_count += 1
        return True

    async def run(self, stop_event: asyncio.Event) -> None:
        """Timer loop; returns once ``stop_event`` is set."""
        bind_context(task=self.name)
        logger.info("Job %s scheduled every %ss", self.name, self._interval)
        if self._run_immediately and not stop_event.is_set():
            await self.trigger()
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
                break
            except asyncio.TimeoutError:
                pass
            # Detached so a slow run cannot stretch the period.
            task = asyncio.create_task(self.trigger(), name=f"{self.name}_run")
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
