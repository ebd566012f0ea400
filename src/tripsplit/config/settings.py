"""
Configuration Management for tripsplit

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here, so the few knobs the engine has
(state file location, settlement threshold, payment-code constants) are
validated once at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRIPSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log engine internals at DEBUG instead of INFO"
    )

    # Persistence
    state_file: Path = Field(
        default=Path("~/.tripsplit/state.json"),
        description="Where the whole trips+friends state is stored"
    )

    # Settlement
    settlement_threshold: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Balances smaller than this are treated as settled"
    )

    # Sharing
    embedded_members_field: str = Field(
        default="_embeddedMembers",
        min_length=1,
        description="Transport-only field carrying member profiles in a token"
    )
    max_token_length: int = Field(
        default=2_000_000,
        ge=1024,
        description="Longest token accepted on import (characters)"
    )

    @field_validator('state_file')
    @classmethod
    def expand_state_file(cls, v: Path) -> Path:
        """Expand ~ so the path is usable as-is."""
        return v.expanduser()


class PaymentSettings(BaseSettings):
    """PromptPay payment-code configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPSPLIT_PAYMENT_",
        extra="ignore"
    )

    country_code: str = Field(
        default="66",
        pattern=r"^\d{1,3}$",
        description="Country calling code prepended to local phone numbers"
    )
    trunk_prefix: str = Field(
        default="0",
        pattern=r"^\d?$",
        description="Domestic trunk prefix replaced by the country code"
    )
    local_phone_length: int = Field(
        default=10,
        ge=6,
        le=15,
        description="Digits in a domestic mobile number, trunk prefix included"
    )
    aid: str = Field(
        default="A000000677010111",
        description="Application identifier of the merchant account field"
    )
    currency_code: str = Field(
        default="764",
        pattern=r"^\d{3}$",
        description="ISO 4217 numeric currency code"
    )
    country: str = Field(
        default="TH",
        pattern=r"^[A-Z]{2}$",
        description="ISO 3166 country code"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def payment(self) -> PaymentSettings:
        return PaymentSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    try:
        _ = settings.payment
        results["payment"] = True
    except Exception as e:
        results["payment"] = False
        results["payment_error"] = str(e)

    return results
