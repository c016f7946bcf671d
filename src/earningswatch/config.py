from __future__ import annotations

from enum import Enum
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderKey(str, Enum):
    """Credentials recognised by the provider adapters.

    An empty value disables the matching adapter. The one exception is the
    Alpha Vantage earnings adapter, which raises when ALPHAVANTAGE_KEY is
    missing instead of skipping quietly.
    """

    FMP = "fmp_api_key"
    POLYGON = "polygon_api_key"
    FINNHUB = "finnhub_api_key"
    ALPHAVANTAGE = "alphavantage_key"


def _split_terms(raw: str) -> tuple[str, ...]:
    return tuple(t.strip().lower() for t in raw.split(",") if t.strip())


class Settings(BaseSettings):
    """Application settings with validation.

    All settings are loaded from environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider credentials
    fmp_api_key: str = ""
    polygon_api_key: str = ""
    finnhub_api_key: str = ""
    alphavantage_key: str = ""

    # Durable event store
    store_backend: str = "jsonbin"  # jsonbin | sqlite
    store_path: str = "earningswatch.sqlite3"
    jsonbin_bin_id: str = ""
    jsonbin_master_key: str = ""
    jsonbin_base_url: str = "https://api.jsonbin.io/v3"

    # Logging
    debug_logs: bool = False
    log_json: bool = False

    # Provider calls
    http_timeout: float = 10.0
    news_limit: int = 5
    news_lookback_days: int = 7

    # Sentiment calibration
    sentiment_divisor: float = 3.0
    sentiment_threshold: float = 0.15
    # Comma-separated term lists; empty keeps the built-in tables
    sentiment_positive_terms: str = ""
    sentiment_negative_terms: str = ""

    @field_validator("http_timeout", "sentiment_divisor")
    @classmethod
    def must_be_positive_float(cls, v: float, info) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0, got {v}")
        return v

    @field_validator("sentiment_threshold")
    @classmethod
    def threshold_range(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError(f"sentiment_threshold must be in [0, 1], got {v}")
        return v

    @field_validator("news_limit")
    @classmethod
    def news_limit_range(cls, v: int) -> int:
        if v < 1 or v > 50:
            raise ValueError(f"news_limit must be in [1, 50], got {v}")
        return v

    @field_validator("news_lookback_days")
    @classmethod
    def lookback_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"news_lookback_days must be >= 1, got {v}")
        return v

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("jsonbin", "sqlite"):
            raise ValueError(f"store_backend must be 'jsonbin' or 'sqlite', got {v!r}")
        return v

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug_logs else "INFO"

    @property
    def positive_terms(self) -> tuple[str, ...]:
        return _split_terms(self.sentiment_positive_terms)

    @property
    def negative_terms(self) -> tuple[str, ...]:
        return _split_terms(self.sentiment_negative_terms)

    def credentials(self) -> dict[ProviderKey, str]:
        """Map every recognised provider key to its configured value."""
        return {key: getattr(self, key.value) for key in ProviderKey}

    def has_credential(self, key: ProviderKey) -> bool:
        return bool(getattr(self, key.value))

    @property
    def store_configured(self) -> bool:
        if self.store_backend == "sqlite":
            return bool(self.store_path)
        return bool(self.jsonbin_bin_id and self.jsonbin_master_key)

    def validate_store_credentials(self) -> None:
        """Raise if the active store backend is missing its location or key."""
        if self.store_backend == "sqlite":
            if not self.store_path:
                raise ValueError("STORE_PATH must be set for the sqlite store")
            return
        if not self.jsonbin_bin_id or not self.jsonbin_master_key:
            raise ValueError(
                "JSONBIN_BIN_ID and JSONBIN_MASTER_KEY must be set"
            )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
