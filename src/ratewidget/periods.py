"""Period selection: filter history to a named window and attach a forecast."""

import random
from datetime import datetime
from decimal import Decimal

from ratewidget.forecast import DEFAULT_DRIFT, DEFAULT_VOLATILITY, generate_forecast
from ratewidget.models import History, PeriodView, PeriodWindow, utc_now

FALLBACK_RATE = Decimal("320")


def window_start(window: PeriodWindow, now: datetime) -> datetime:
    """First instant included in ``window`` when viewed at ``now``.

    Month and year lookbacks are calendar based, clamped to the last day of
    the target month (e.g. Mar 31 minus 1M is Feb 28/29).
    """
    return now - window.lookback


def select_period(
    period: str | PeriodWindow | None,
    history: History,
    *,
    rng: random.Random,
    now: datetime | None = None,
    fallback_rate: Decimal = FALLBACK_RATE,
    volatility: Decimal = DEFAULT_VOLATILITY,
    drift: Decimal = DEFAULT_DRIFT,
) -> PeriodView:
    """Build the chart view for ``period``.

    Unrecognized period names behave as 1D. The forecast is seeded from the
    last entry of the *full* history (not the filtered window), or from
    ``fallback_rate`` when history is empty, so a forecast is always present
    even when ``historical`` is empty.
    """
    window = period if isinstance(period, PeriodWindow) else PeriodWindow.parse(period)
    anchor = now if now is not None else utc_now()
    start = window_start(window, anchor)

    historical = tuple(obs for obs in history if obs.date >= start)
    last_rate = history[-1].rate if history else fallback_rate

    forecast = generate_forecast(
        last_rate,
        window.forecast_days,
        rng=rng,
        now=anchor,
        volatility=volatility,
        drift=drift,
    )
    return PeriodView(historical=historical, forecast=forecast)
