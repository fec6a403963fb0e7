"""Solar Optimizer application entry point and lifecycle orchestrator.

Startup sequence:
  config → history sink → state mirror → weather provider →
  weather job → forecast job → device ingestion → query API
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path

from solar_optimizer import __version__
from solar_optimizer.config.manager import ConfigManager
from solar_optimizer.config.schema import AppConfig
from solar_optimizer.db.engine import close_db, init_db
from solar_optimizer.db.repository import Repository
from solar_optimizer.forecast.base import WeatherProvider
from solar_optimizer.forecast.engine import ForecastEngine
from solar_optimizer.forecast.refresher import WeatherRefresher
from solar_optimizer.hardware.adapters import create_link
from solar_optimizer.history.base import HistorySink
from solar_optimizer.history.firebase import FirebaseClient, FirebaseHistorySink
from solar_optimizer.history.sqlite import SqliteHistorySink
from solar_optimizer.ingestion.loop import IngestionLoop
from solar_optimizer.logging.structured import setup_logging
from solar_optimizer.mirror.publisher import StatePublisher
from solar_optimizer.query import QuerySurface
from solar_optimizer.resilience.health_check import HealthChecker
from solar_optimizer.scheduling import PeriodicJob
from solar_optimizer.state import TelemetryState

logger = logging.getLogger(__name__)


class Application:
    """Main application lifecycle manager.

    Wires all modules together and manages startup/shutdown ordering.
    """

    def __init__(self, config: AppConfig, config_manager: ConfigManager | None = None) -> None:
        self.config = config
        self.config_manager = config_manager
        self.state = TelemetryState()
        self.health = HealthChecker(
            max_consecutive_failures=config.resilience.max_consecutive_failures,
        )
        self._running = False
        self._tasks: list[asyncio.Task] = []
        self._stop_event = asyncio.Event()

        # References held for cleanup
        self._ingestion: IngestionLoop | None = None
        self._weather_provider: WeatherProvider | None = None
        self._firebase: FirebaseClient | None = None
        self._publisher: StatePublisher | None = None
        self._uses_sqlite = False
        self._server = None

    async def start(self) -> None:
        """Start all application components in dependency order."""
        logger.info("Starting Solar Optimizer v%s", __version__)
        self._running = True
        self._stop_event.clear()

        # ── 1. History sink ──────────────────────────────────
        history = await self._create_history()
        self.health.register("history")

        # ── 2. State mirror ──────────────────────────────────
        self._publisher = self._create_publisher()

        # ── 3. Weather ───────────────────────────────────────
        self._weather_provider = self._create_weather_provider()
        weather_job = None
        if self._weather_provider is not None:
            self.health.register("weather")
            refresher = WeatherRefresher(
                self._weather_provider,
                self.state,
                health=self.health,
                on_weather=self._publisher.submit_weather if self._publisher else None,
            )
            weather_job = PeriodicJob(
                "weather_refresher",
                self.config.weather.update_interval_seconds,
                refresher.refresh,
            )

        # ── 4. Forecast ──────────────────────────────────────
        engine = ForecastEngine(
            self.state,
            timezone_name=self.config.forecast.timezone,
            on_forecast=self._publisher.submit_forecast if self._publisher else None,
        )
        forecast_job = PeriodicJob(
            "forecast_engine",
            self.config.forecast.update_interval_seconds,
            engine.recompute,
        )

        # ── 5. Device ingestion ──────────────────────────────
        self.health.register("device")
        device = self.config.device
        self._ingestion = IngestionLoop(
            create_link(device),
            self.state,
            history=history,
            health=self.health,
            publisher=self._publisher,
            reconnect_delay_seconds=device.reconnect_delay_seconds,
            max_reconnect_delay_seconds=device.max_reconnect_delay_seconds,
        )

        # ── 6. Background tasks ──────────────────────────────
        if weather_job is not None:
            self._spawn(weather_job.run(self._stop_event), "weather_refresher")
        self._spawn(forecast_job.run(self._stop_event), "forecast_engine")
        self._spawn(self._ingestion.run(), "ingestion")
        logger.info("Device ingestion on %s at %d baud", device.port, device.baud_rate)

        # ── 7. Query API server ──────────────────────────────
        from solar_optimizer.dashboard.app import create_app

        query = QuerySurface(
            self.state,
            history=history,
            health=self.health,
            history_config=self.config.history,
        )
        app = create_app(self.config, query)
        app.state.application = self

        import uvicorn

        uvi_config = uvicorn.Config(
            app,
            host=self.config.dashboard.host,
            port=self.config.dashboard.port,
            log_level="warning",
        )
        server = uvicorn.Server(uvi_config)
        # Keep process signal handling in main() so Ctrl+C behaviour is predictable.
        server.install_signal_handlers = lambda: None  # type: ignore[method-assign]
        self._server = server

        logger.info(
            "API available at http://%s:%d/api",
            self.config.dashboard.host,
            self.config.dashboard.port,
        )

        # Server.serve() blocks until shutdown
        await server.serve()

    async def stop(self) -> None:
        """Gracefully stop all components in reverse order."""
        if not self._running:
            return

        logger.info("Shutting down Solar Optimizer")
        self._running = False
        self._stop_event.set()

        if self._server is not None:
            self._server.should_exit = True

        if self._ingestion is not None:
            await self._ingestion.stop()
            await self._ingestion.drain()

        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._publisher is not None:
            await self._publisher.drain()

        if self._weather_provider is not None:
            try:
                await self._weather_provider.close()
            except Exception:
                logger.warning("Error closing weather provider", exc_info=True)

        if self._firebase is not None:
            await self._firebase.close()

        if self._uses_sqlite:
            await close_db()
        self._server = None
        logger.info("Shutdown complete")

    # ── Background tasks ──────────────────────────────────

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        task.add_done_callback(self._on_task_done)
        self._tasks.append(task)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        """Surface a background task that ended while the app is running."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s crashed", task.get_name(), exc_info=exc)
            self.health.mark_unhealthy(task.get_name(), repr(exc))
        elif self._running:
            logger.warning("Background task %s exited before shutdown", task.get_name())
            self.health.mark_unhealthy(task.get_name(), "exited")

    # ── Component factories ───────────────────────────────

    def _firebase_client(self) -> FirebaseClient:
        if self._firebase is None:
            self._firebase = FirebaseClient(self.config.firebase)
        return self._firebase

    async def _create_history(self) -> HistorySink:
        backend = self.config.history.backend
        if backend == "firebase":
            if not self.config.firebase.enabled:
                raise ValueError("history.backend is 'firebase' but firebase.database_url is empty")
            logger.info("History sink: Firebase (%s)", self.config.firebase.database_url)
            return FirebaseHistorySink(self._firebase_client())
        if backend != "sqlite":
            raise ValueError(f"Unknown history backend: {backend!r}")

        db = await init_db(self.config.db.path)
        self._uses_sqlite = True
        logger.info("History sink: SQLite (%s)", self.config.db.path)
        return SqliteHistorySink(Repository(db))

    def _create_publisher(self) -> StatePublisher | None:
        fb = self.config.firebase
        if not (fb.enabled and fb.mirror_state):
            return None
        logger.info("Mirroring live state to %s/%s", fb.database_url, fb.root)
        return StatePublisher(self._firebase_client().set)

    def _create_weather_provider(self) -> WeatherProvider | None:
        weather = self.config.weather
        if not weather.enabled:
            logger.info("Weather refresh disabled")
            return None
        if not weather.api_key:
            logger.warning("No OpenWeather API key configured; weather refresh disabled")
            return None

        from solar_optimizer.forecast.providers.openweather import OpenWeatherProvider

        return OpenWeatherProvider(weather)


def main() -> None:
    """Entry point for the application."""
    config_manager = ConfigManager(Path("config.defaults.yaml"), Path("config.yaml"))
    config = config_manager.load()

    setup_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_file=config.logging.file,
    )

    app = Application(config, config_manager)
    stop_requested = False
    signal_count = 0

    async def _run() -> None:
        try:
            await app.start()
        finally:
            if app._running:
                with contextlib.suppress(Exception):
                    await app.stop()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def _request_stop() -> None:
        nonlocal stop_requested, signal_count
        signal_count += 1
        if signal_count >= 2:
            os._exit(130)
        if stop_requested or loop.is_closed():
            return
        stop_requested = True
        loop.call_soon_threadsafe(lambda: asyncio.create_task(app.stop()))

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _request_stop)
    else:
        signal.signal(signal.SIGINT, lambda *_: _request_stop())
        if hasattr(signal, "SIGBREAK"):
            signal.signal(signal.SIGBREAK, lambda *_: _request_stop())

    try:
        loop.run_until_complete(_run())
    except KeyboardInterrupt:
        _request_stop()
        with contextlib.suppress(Exception):
            loop.run_until_complete(app.stop())
    finally:
        pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            with contextlib.suppress(Exception):
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()


if __name__ == "__main__":
    main()
