"""HTTP layer: FastAPI app, JSON endpoints and the chart page."""

from ratewidget.server.app import build_rng, create_app

__all__ = ["build_rng", "create_app"]
