"""Application configuration utilities."""

from .settings import (
    DEFAULT_FORECAST_HORIZON_DAYS,
    DEFAULT_LOW_BALANCE_THRESHOLD,
    Settings,
    configure_logging,
    get_settings,
)

__all__ = [
    "DEFAULT_FORECAST_HORIZON_DAYS",
    "DEFAULT_LOW_BALANCE_THRESHOLD",
    "Settings",
    "configure_logging",
    "get_settings",
]
