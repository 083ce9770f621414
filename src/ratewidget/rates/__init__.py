"""Upstream exchange rate client."""

from ratewidget.rates.fetcher import RateFetcher

__all__ = ["RateFetcher"]
