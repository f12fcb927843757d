"""Centralised configuration handling for Ledgerwise."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOW_BALANCE_THRESHOLD = 10_000.0
DEFAULT_FORECAST_HORIZON_DAYS = 90

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Engine defaults sourced from ``LEDGERWISE_*`` environment variables."""

    low_balance_threshold: float = DEFAULT_LOW_BALANCE_THRESHOLD
    forecast_horizon_days: int = Field(default=DEFAULT_FORECAST_HORIZON_DAYS, gt=0)
    budget_warning_percent: float = Field(default=80.0, ge=0)
    budget_exceeded_percent: float = Field(default=100.0, ge=0)
    trailing_months: int = Field(default=3, gt=0)
    recurring_amount_tolerance: float = Field(default=0.05, ge=0)
    top_n: int = Field(default=10, gt=0)
    currency_symbol: str = "₹"
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(env_prefix="LEDGERWISE_", extra="ignore")

    def format_amount(self, amount: float) -> str:
        return f"{self.currency_symbol}{amount:,.2f}"


@lru_cache
def get_settings() -> Settings:
    """Load and cache engine settings."""

    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command-line use."""

    resolved = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.WARNING), format=LOG_FORMAT)
