"""FastAPI application factory for the Solar Optimizer query API."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from solar_optimizer import __version__
from solar_optimizer.config.schema import AppConfig
from solar_optimizer.query import QuerySurface


def create_app(config: AppConfig, query: QuerySurface) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Solar Optimizer",
        description="Live solar tracker telemetry, weather and power forecast",
        version=__version__,
    )

    @app.middleware("http")
    async def disable_browser_cache(request: Request, call_next):
        response = await call_next(request)
        if request.method in {"GET", "HEAD"}:
            # Live values; dashboards must never see a cached reading.
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.dashboard.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.query = query

    from solar_optimizer.dashboard.routes.api import router as api_router

    app.include_router(api_router, prefix="/api")

    return app
