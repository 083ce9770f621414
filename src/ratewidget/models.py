"""Shared data models for the rate widget service.

CRITICAL: Rates are held as Decimal everywhere inside the service. They are
converted to float only at the JSON boundary, where the chart widget expects
plain numbers.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from dateutil.relativedelta import relativedelta

from ratewidget.exceptions import HistoryError


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render an ISO-8601 UTC timestamp with millisecond precision and a Z suffix.

    Matches what browsers produce from ``Date.prototype.toISOString``, so the
    chart can parse both observation and forecast dates the same way.
    """
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken to be UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_decimal(value: Any) -> Decimal:
    """Coerce a JSON number (or numeric string) to a finite Decimal.

    Raises:
        ValueError: If the value is a bool, not numeric, or not finite.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a rate: {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"not a rate: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"not a finite rate: {value!r}")
    return result


@dataclass(frozen=True)
class Observation:
    """One recorded exchange rate sample."""

    date: datetime
    rate: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"date": format_timestamp(self.date), "rate": float(self.rate)}

    @classmethod
    def from_dict(cls, data: Any) -> "Observation":
        """Build an Observation from its persisted ``{date, rate}`` form.

        Raises:
            HistoryError: If the entry is not a mapping or either field is invalid.
        """
        if not isinstance(data, dict):
            raise HistoryError(f"observation must be an object, got {type(data).__name__}")
        try:
            date = parse_timestamp(data["date"])
            rate = to_decimal(data["rate"])
        except (KeyError, TypeError, ValueError) as e:
            raise HistoryError(f"invalid observation {data!r}: {e}") from e
        return cls(date=date, rate=rate)


History = tuple[Observation, ...]


@dataclass(frozen=True)
class ForecastPoint:
    """A synthetic future rate estimate. Never persisted."""

    date: datetime
    rate: Decimal  # quantized to 3 decimal places

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": format_timestamp(self.date),
            "rate": f"{self.rate:.3f}",
            "isForecast": True,
        }


class PeriodWindow(str, Enum):
    """Named chart window: a lookback duration paired with a forecast horizon."""

    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    ONE_YEAR = "1Y"
    FIVE_YEARS = "5Y"

    @property
    def lookback(self) -> relativedelta:
        return _LOOKBACKS[self]

    @property
    def forecast_days(self) -> int:
        return _FORECAST_DAYS[self]

    @classmethod
    def parse(cls, name: str | None) -> "PeriodWindow":
        """Resolve a period name, falling back to 1D for anything unrecognized."""
        try:
            return cls(name)
        except ValueError:
            return cls.ONE_DAY


_LOOKBACKS: dict[PeriodWindow, relativedelta] = {
    PeriodWindow.ONE_DAY: relativedelta(days=1),
    PeriodWindow.ONE_WEEK: relativedelta(days=7),
    PeriodWindow.ONE_MONTH: relativedelta(months=1),
    PeriodWindow.ONE_YEAR: relativedelta(years=1),
    PeriodWindow.FIVE_YEARS: relativedelta(years=5),
}

_FORECAST_DAYS: dict[PeriodWindow, int] = {
    PeriodWindow.ONE_DAY: 1,
    PeriodWindow.ONE_WEEK: 3,
    PeriodWindow.ONE_MONTH: 7,
    PeriodWindow.ONE_YEAR: 30,
    PeriodWindow.FIVE_YEARS: 90,
}


@dataclass(frozen=True)
class PeriodView:
    """History filtered to a window plus the forecast that follows it."""

    historical: History
    forecast: tuple[ForecastPoint, ...]


@dataclass(frozen=True)
class RateSnapshot:
    """Latest quote parsed from the upstream conversion table."""

    base: str
    quote: str
    rate: Decimal
    last_updated: str  # upstream time_last_update_utc, passed through verbatim
    next_update: str  # upstream time_next_update_utc


def history_to_list(history: History) -> list[dict[str, Any]]:
    """Serialize a history to the JSON array shape used on disk and on the wire."""
    return [obs.to_dict() for obs in history]

