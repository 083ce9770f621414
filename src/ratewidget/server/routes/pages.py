"""Page route serving the chart widget."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ratewidget.models import PeriodWindow

router = APIRouter()

REFRESH_INTERVAL_MS = 60_000


@router.get("/", response_class=HTMLResponse)
async def widget_index(request: Request) -> HTMLResponse:
    """Render the chart widget for the configured currency pair."""
    templates: Jinja2Templates = request.app.state.templates
    exchange_api = request.app.state.settings.exchange_api
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "base_currency": exchange_api.base_currency.upper(),
            "quote_currency": exchange_api.quote_currency.upper(),
            "periods": [window.value for window in PeriodWindow],
            "refresh_interval_ms": REFRESH_INTERVAL_MS,
        },
    )
