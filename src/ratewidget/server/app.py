"""FastAPI application factory for the rate widget."""

from __future__ import annotations

import random
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from ratewidget.config import AppSettings
from ratewidget.history import HistoryStore, build_history_store
from ratewidget.logging import get_logger
from ratewidget.rates import RateFetcher
from ratewidget.server.routes import api, pages

TEMPLATES_DIR = Path(__file__).parent / "templates"

logger = get_logger(__name__)


def build_rng(seed: int | None) -> random.Random:
    """Seeded generator when a seed is configured, OS entropy otherwise."""
    if seed is None:
        return random.SystemRandom()
    return random.Random(seed)


def create_app(
    settings: AppSettings | None = None,
    *,
    store: HistoryStore | None = None,
    fetcher: RateFetcher | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment if omitted.
        store: History backend; built from ``settings.history`` if omitted.
        fetcher: Upstream rate client; built from ``settings.exchange_api`` if omitted.
        rng: Random source for forecasts; see ``build_rng``.

    Returns:
        Configured application. The store is connected and closed by the
        application lifespan.
    """
    settings = settings or AppSettings()
    store = store or build_history_store(settings.history)
    fetcher = fetcher or RateFetcher(settings.exchange_api)
    rng = rng or build_rng(settings.forecast.seed)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.connect()
        logger.info(
            "rate_widget_started",
            backend=store.backend,
            retention_days=store.retention_days,
        )
        try:
            yield
        finally:
            await store.close()
            logger.info("rate_widget_stopped")

    app = FastAPI(title="USD/LKR Exchange Rate Widget", lifespan=lifespan)

    app.state.settings = settings
    app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    app.state.store = store
    app.state.fetcher = fetcher
    app.state.rng = rng

    app.include_router(pages.router)
    app.include_router(api.router)

    return app
