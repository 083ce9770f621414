"""exchangerate-api.com client for the latest USD conversion table.

Uses urllib.request (stdlib) for a single blocking GET; the HTTP layer runs
it in a worker thread. There is no retry or backoff: every failure surfaces
as FetchError and ends the request.

Response shape (v6 ``/latest/{base}``)::

    {
        "result": "success",
        "base_code": "USD",
        "time_last_update_utc": "Fri, 27 Mar 2020 00:00:00 +0000",
        "time_next_update_utc": "Sat, 28 Mar 2020 00:00:00 +0000",
        "conversion_rates": {"USD": 1, "LKR": 299.5, ...}
    }
"""

import http.client
import json
import urllib.request

from ratewidget.config import ExchangeApiSettings
from ratewidget.exceptions import FetchError
from ratewidget.logging import get_logger
from ratewidget.models import RateSnapshot, to_decimal

logger = get_logger(__name__)


class RateFetcher:
    """Fetches the latest base→quote rate from exchangerate-api.com.

    Args:
        settings: API key, base URL, currency pair and request timeout.
    """

    def __init__(self, settings: ExchangeApiSettings) -> None:
        self._settings = settings

    @property
    def latest_url(self) -> str:
        api_key = self._settings.api_key.get_secret_value()
        base_url = self._settings.base_url.rstrip("/")
        return f"{base_url}/{api_key}/latest/{self._settings.base_currency.upper()}"

    def _get_json(self) -> dict:
        headers = {"Accept": "application/json", "User-Agent": "RateWidget/1.0"}
        req = urllib.request.Request(self.latest_url, headers=headers)
        with urllib.request.urlopen(req, timeout=self._settings.timeout_seconds) as resp:
            return json.loads(resp.read())

    def fetch_latest(self) -> RateSnapshot:
        """Fetch the conversion table and extract the configured quote currency.

        Raises:
            FetchError: On network/HTTP failure, an undecodable body, an
                API-level error result, or a missing/invalid rate.
        """
        base = self._settings.base_currency.upper()
        quote = self._settings.quote_currency.upper()

        try:
            data = self._get_json()
        except (OSError, http.client.HTTPException, ValueError, RecursionError) as e:
            # URLError/HTTPError/TimeoutError are OSError; a truncated body is
            # HTTPException; bad or pathologically nested JSON is ValueError/RecursionError
            logger.error("rate_fetch_failed", base=base, error=str(e))
            raise FetchError(f"request for {base} rates failed: {e}") from e

        if not isinstance(data, dict):
            logger.error("rate_unexpected_response", base=base, body_type=type(data).__name__)
            raise FetchError(f"unexpected response type {type(data).__name__}")

        if data.get("result", "success") != "success":
            error_type = data.get("error-type", "unknown")
            logger.error("rate_api_error", base=base, error_type=error_type)
            raise FetchError(f"exchange rate API returned error: {error_type}")

        rates = data.get("conversion_rates")
        if not isinstance(rates, dict) or quote not in rates:
            logger.error("rate_missing_from_response", base=base, quote=quote)
            raise FetchError(f"{quote} missing from {base} conversion table")

        try:
            rate = to_decimal(rates[quote])
        except ValueError as e:
            raise FetchError(f"invalid {quote} rate: {e}") from e

        snapshot = RateSnapshot(
            base=base,
            quote=quote,
            rate=rate,
            last_updated=str(data.get("time_last_update_utc", "")),
            next_update=str(data.get("time_next_update_utc", "")),
        )
        logger.debug("rate_fetched", base=base, quote=quote, rate=str(rate))
        return snapshot
