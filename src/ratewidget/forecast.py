"""Random-walk-with-drift forecast generator.

Produces a plausible-looking placeholder series, not a statistical model.
Each point perturbs the seed rate by a bounded uniform shock plus a linear
drift that grows with the horizon offset.

CRITICAL: All computations use Decimal. The random source is injected so
tests can pass a seeded ``random.Random``; the server uses
``random.SystemRandom`` unless a seed is configured.
"""

import random
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ratewidget.models import ForecastPoint, utc_now

DEFAULT_VOLATILITY = Decimal("0.002")
DEFAULT_DRIFT = Decimal("0.0001")

_RATE_QUANTUM = Decimal("0.001")


def generate_forecast(
    seed_rate: Decimal,
    days: int,
    *,
    rng: random.Random,
    now: datetime | None = None,
    volatility: Decimal = DEFAULT_VOLATILITY,
    drift: Decimal = DEFAULT_DRIFT,
) -> tuple[ForecastPoint, ...]:
    """Project ``days`` daily points forward from ``seed_rate``.

    For offset ``i`` in ``1..days`` the point is dated ``now + i days`` and
    valued ``seed_rate * (1 + u + drift * i)`` where ``u`` is drawn uniformly
    from ``[-volatility, +volatility]``. Rates are rounded half-up to three
    decimal places.

    Args:
        seed_rate: Rate the walk starts from (usually the latest observation).
        days: Horizon length; must be at least 1.
        rng: Random source for the shocks.
        now: Anchor time; defaults to the current UTC time.
        volatility: Half-width of the uniform shock.
        drift: Deterministic change added per day of offset.

    Returns:
        Tuple of exactly ``days`` ForecastPoints with strictly increasing dates.

    Raises:
        ValueError: If ``days`` is less than 1.
    """
    if days < 1:
        raise ValueError(f"forecast horizon must be at least 1 day, got {days}")

    anchor = now if now is not None else utc_now()
    points = []
    for i in range(1, days + 1):
        random_change = Decimal(str(rng.uniform(-1.0, 1.0))) * volatility
        trend_change = drift * i
        projected = seed_rate * (Decimal("1") + random_change + trend_change)
        points.append(
            ForecastPoint(
                date=anchor + timedelta(days=i),
                rate=projected.quantize(_RATE_QUANTUM, rounding=ROUND_HALF_UP),
            )
        )
    return tuple(points)
