"""Custom exceptions for the rate widget service.

Kept in one module so the fetcher, the history backends and the HTTP layer
can share them without circular imports.
"""


class RateWidgetError(Exception):
    """Base exception for all rate widget errors."""


class FetchError(RateWidgetError):
    """Raised when the upstream exchange rate API cannot supply a rate.

    Covers network failures, non-2xx responses, undecodable bodies, API-level
    errors and responses missing the requested currency.
    """


class HistoryError(RateWidgetError):
    """Raised when a persisted history blob cannot be decoded.

    Backends catch this inside ``load()`` and fall back to an empty history;
    it never reaches HTTP callers.
    """
