"""JSON endpoints consumed by the chart widget."""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ratewidget.exceptions import FetchError
from ratewidget.models import PeriodWindow, history_to_list
from ratewidget.periods import select_period

log = structlog.get_logger(__name__)

router = APIRouter()

FETCH_FAILED_MESSAGE = "Failed to fetch exchange rates"


@router.get("/rates")
async def get_rates(
    request: Request, period: str = PeriodWindow.ONE_DAY.value, forecast: str = "false"
) -> JSONResponse:
    """Fetch the latest rate, record it, and return the windowed view.

    Query params:
        period: 1D, 1W, 1M, 1Y or 5Y. Anything else is treated as 1D.
        forecast: Only the literal "true" includes forecast points.
    """
    settings = request.app.state.settings
    store = request.app.state.store
    fetcher = request.app.state.fetcher

    try:
        snapshot = await asyncio.to_thread(fetcher.fetch_latest)
    except FetchError as e:
        log.error("rates_request_failed", period=period, error=str(e))
        return JSONResponse(content={"error": FETCH_FAILED_MESSAGE}, status_code=500)

    history = await store.append(snapshot.rate)
    view = select_period(
        period,
        history,
        rng=request.app.state.rng,
        fallback_rate=settings.forecast.fallback_rate,
        volatility=settings.forecast.volatility,
        drift=settings.forecast.drift,
    )
    show_forecast = forecast == "true"

    return JSONResponse(content={
        "current_rate": float(snapshot.rate),
        "last_updated": snapshot.last_updated,
        "next_update": snapshot.next_update,
        "historical": history_to_list(view.historical),
        "forecast": [point.to_dict() for point in view.forecast] if show_forecast else [],
    })


@router.get("/history")
async def get_history(request: Request) -> JSONResponse:
    """Full persisted history, unfiltered."""
    history = await request.app.state.store.load()
    return JSONResponse(content=history_to_list(history))


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Store health, including persistence failures that requests never see."""
    status = await request.app.state.store.status()
    return JSONResponse(content=status)
