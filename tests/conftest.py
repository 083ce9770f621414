"""Shared test fixtures for the rate widget service."""

import random
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ratewidget.config import AppSettings, ExchangeApiSettings, HistorySettings
from ratewidget.history import JsonFileHistoryStore
from ratewidget.models import RateSnapshot


class FixedRandom(random.Random):
    """Random source whose uniform() always returns the same value.

    ``uniform(-1, 1)`` returning ``value`` makes the forecast shock exactly
    ``value * volatility``, so expected rates can be computed by hand.
    """

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def uniform(self, a: float, b: float) -> float:
        return self.value


@pytest.fixture
def fixed_random() -> type[FixedRandom]:
    """Factory for deterministic random sources: ``fixed_random(0.0)``."""
    return FixedRandom


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for all time-dependent assertions."""
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "rate_history.json"


@pytest.fixture
def json_store(history_path: Path) -> JsonFileHistoryStore:
    """JSON store writing into a per-test temporary directory."""
    return JsonFileHistoryStore(history_path)


@pytest.fixture
def snapshot() -> RateSnapshot:
    """Typical parsed upstream response."""
    return RateSnapshot(
        base="USD",
        quote="LKR",
        rate=Decimal("299.5"),
        last_updated="Sun, 18 Oct 2026 00:00:01 +0000",
        next_update="Mon, 19 Oct 2026 00:00:01 +0000",
    )


@pytest.fixture
def mock_fetcher(snapshot: RateSnapshot) -> MagicMock:
    """Fetcher stand-in returning the sample snapshot."""
    fetcher = MagicMock()
    fetcher.fetch_latest = MagicMock(return_value=snapshot)
    return fetcher


@pytest.fixture
def app_settings(history_path: Path) -> AppSettings:
    """AppSettings with a dummy API key and a temporary history file."""
    return AppSettings(
        log_level="DEBUG",
        exchange_api=ExchangeApiSettings(api_key="test-api-key"),  # type: ignore[arg-type]
        history=HistorySettings(backend="json", file_path=str(history_path)),
    )
