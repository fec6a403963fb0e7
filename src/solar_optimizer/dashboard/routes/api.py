"""REST API endpoints returning JSON data."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from solar_optimizer.history.base import HistoryError
from solar_optimizer.query import QuerySurface

router = APIRouter()
logger = logging.getLogger(__name__)


def _query(request: Request) -> QuerySurface:
    return request.app.state.query


@router.get("/live")
async def live(request: Request) -> dict:
    """Latest sensor reading, or null before the first one arrives."""
    reading = _query(request).get_live()
    return {"success": True, "data": reading.to_dict() if reading else None}


@router.get("/weather")
async def weather(request: Request) -> dict:
    snapshot = _query(request).get_weather()
    return {"success": True, "data": snapshot.to_dict() if snapshot else None}


@router.get("/prediction")
async def prediction(request: Request) -> dict:
    forecast = _query(request).get_forecast()
    return {"success": True, "data": forecast.to_dict() if forecast else None}


@router.get("/history")
async def history(request: Request, limit: int | None = Query(None, ge=1)):
    """Most recent readings, oldest first. Oversized limits are clamped."""
    try:
        readings = await _query(request).get_history(limit)
    except HistoryError as e:
        logger.warning("History query failed: %s", e)
        return JSONResponse(status_code=503, content={"success": False, "error": str(e)})
    return {"success": True, "data": [r.to_dict() for r in readings]}


@router.get("/dashboard")
async def dashboard(request: Request) -> dict:
    return {"success": True, "data": _query(request).get_dashboard()}


@router.get("/health")
async def health(request: Request) -> dict:
    return _query(request).health()
