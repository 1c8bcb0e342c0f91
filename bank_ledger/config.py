"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class BankLedgerConfig(BaseSettings):
    """Bank ledger configuration"""

    model_config = SettingsConfigDict(
        env_prefix="BANK_LEDGER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Persistence
    data_file: str = "accounts.dat"
    log_file: str = "logs.dat"

    # Panel credentials
    admin_pin: int = 1111
    staff_pin: int = 2222

    # Business rules
    minimum_opening_balance: int = 500
    mini_statement_size: int = 5
    currency_label: str = "RM"

    # Console
    console_width: int = 120

    # Application logging (separate from account log chains)
    app_log_level: str = "WARNING"
    app_log_format: str = "text"  # json or text
    app_log_path: Optional[str] = None  # If None, logs to stderr

    @field_validator("admin_pin", "staff_pin")
    @classmethod
    def _four_digit_pin(cls, value: int) -> int:
        if not 0 <= value <= 9999:
            raise ValueError("panel PIN must be exactly 4 digits")
        return value

    @field_validator("minimum_opening_balance")
    @classmethod
    def _non_negative_balance(cls, value: int) -> int:
        if value < 0:
            raise ValueError("minimum opening balance cannot be negative")
        return value

    @field_validator("mini_statement_size", "console_width")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("app_log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("app_log_format must be 'json' or 'text'")
        return value


# Global configuration instance, built on first use
_config: Optional[BankLedgerConfig] = None


def get_config() -> BankLedgerConfig:
    """Get global configuration instance"""
    if _config is None:
        return reload_config()
    return _config


def reload_config() -> BankLedgerConfig:
    """Reload configuration from environment"""
    global _config
    _config = BankLedgerConfig()
    return _config
