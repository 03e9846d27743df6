"""Engine settings and configuration."""

from datetime import date, time
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Portfolio Sync Engine"
    app_version: str = "0.1.0"

    log_level: str = "INFO"

    # Database URL for the position / sync-log store
    database_url: str = "sqlite:///./portsync.db"

    # Exchange calendar (NSE cash + F&O session)
    exchange_timezone: str = "Asia/Kolkata"
    market_open_time: time = time(9, 15)
    market_close_time: time = time(15, 30)
    market_holidays: list[date] = []

    # Market price cache freshness
    price_ttl_open_seconds: int = 15
    # None means entries never expire while the market is closed
    price_ttl_closed_seconds: Optional[int] = 1800
    max_stale_minutes: int = 1440
    quote_fetch_timeout_seconds: float = 10.0
    warmup_max_workers: int = 8

    # Upstream quote provider: "stub" or "yfinance"
    quote_provider: str = "stub"
    yfinance_symbol_suffix: str = ".NS"

    # Sync orchestration
    sync_page_size: int = 100
    off_hours_stale_minutes: int = 30
    market_hours_interval_seconds: int = 300
    off_hours_interval_seconds: int = 900

    @field_validator("quote_provider")
    @classmethod
    def quote_provider_known(cls, v: str) -> str:
        """Only the bundled providers can be selected by name."""
        v = v.strip().lower()
        if v not in ("stub", "yfinance"):
            raise ValueError("quote_provider must be 'stub' or 'yfinance'")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_upper(cls, v: str) -> str:
        return v.strip().upper()


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (used by embedding applications)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
