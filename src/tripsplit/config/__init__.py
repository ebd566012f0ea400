"""Configuration package."""

from tripsplit.config.settings import (
    AppSettings,
    PaymentSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "PaymentSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
