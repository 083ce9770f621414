"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExchangeApiSettings(BaseSettings):
    """Upstream exchange rate API (exchangerate-api.com v6)."""

    model_config = SettingsConfigDict(env_prefix="EXCHANGE_API_")

    api_key: SecretStr = SecretStr("")
    base_url: str = "https://v6.exchangerate-api.com/v6"
    base_currency: str = "USD"
    quote_currency: str = "LKR"
    timeout_seconds: float = 10.0


class HistorySettings(BaseSettings):
    """Where and how long observations are kept."""

    model_config = SettingsConfigDict(env_prefix="HISTORY_")

    backend: Literal["json", "sqlite"] = "json"
    file_path: str = "rate_history.json"
    db_path: str = "data/rate_history.db"
    retention_days: int = 30


class ForecastSettings(BaseSettings):
    """Random-walk-with-drift forecast parameters."""

    model_config = SettingsConfigDict(env_prefix="FORECAST_")

    volatility: Decimal = Decimal("0.002")  # +/-0.2% per point
    drift: Decimal = Decimal("0.0001")  # per day of horizon
    fallback_rate: Decimal = Decimal("320")  # seed when history is empty
    seed: int | None = None  # set to make served forecasts reproducible


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 3000


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    exchange_api: ExchangeApiSettings = ExchangeApiSettings()
    history: HistorySettings = HistorySettings()
    forecast: ForecastSettings = ForecastSettings()
    server: ServerSettings = ServerSettings()
