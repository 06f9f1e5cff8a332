"""Application settings and configuration management."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

DEFAULT_PROVIDERS = [
    "lifi",
    "1inch",
    "0x",
    "paraswap",
    "pancakeswap",
    "kyberswap",
    "sushiswap",
    "uniswap",
    "openocean",
]


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # App basics
    app_name: str = "Splenex Quote Router"
    debug: bool = False
    version: str = "1.0.0"
    environment: str = "development"  # development, staging, production

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    cors_allow_credentials: bool = True

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False
    log_retention_days: int = 30
    logs_dir: Path = Field(default_factory=lambda: Path("data/logs"))

    # Aggregation
    provider_timeout_seconds: float = 8.0
    aggregation_timeout_seconds: float = 12.0
    provider_max_attempts: int = 1
    provider_retry_delay_seconds: float = 0.25
    enabled_providers: List[str] = Field(default_factory=lambda: list(DEFAULT_PROVIDERS))
    provider_preference: List[str] = Field(default_factory=lambda: list(DEFAULT_PROVIDERS))
    default_slippage_percent: float = 0.5
    max_slippage_percent: float = 50.0
    quote_cache_ttl_seconds: float = 0.0  # 0 disables the cache
    quote_cache_max_entries: int = 100

    # Vendor credentials
    lifi_api_key: Optional[str] = None
    oneinch_api_key: Optional[str] = None
    zerox_api_key: Optional[str] = None
    lifi_integrator: str = "splenex"
    lifi_integrator_fee: Optional[str] = None
    http_user_agent: str = "Splenex-DEX/1.0"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        if v not in ["development", "staging", "production"]:
            raise ValueError("Environment must be one of: development, staging, production")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("provider_timeout_seconds", "aggregation_timeout_seconds")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    @field_validator("provider_max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("provider_max_attempts must be at least 1")
        return v

    @field_validator("enabled_providers", "provider_preference")
    @classmethod
    def normalize_provider_names(cls, v: List[str]) -> List[str]:
        """Lower-case provider names and drop duplicates, keeping first occurrence."""
        seen: List[str] = []
        for name in v:
            key = name.strip().lower()
            if key and key not in seen:
                seen.append(key)
        return seen

    @model_validator(mode="after")
    def check_timeout_budget(self) -> "Settings":
        """Per-provider timeouts must fit inside the overall aggregation budget."""
        if self.aggregation_timeout_seconds < self.provider_timeout_seconds:
            raise ValueError(
                "aggregation_timeout_seconds must be >= provider_timeout_seconds"
            )
        if not 0 <= self.default_slippage_percent <= self.max_slippage_percent:
            raise ValueError("default_slippage_percent must be within [0, max_slippage_percent]")
        return self

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "str_strip_whitespace": True,
    }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance.

    Returns:
        Settings: The global settings instance
    """
    return settings


def reload_settings() -> Settings:
    """
    Reload settings from environment.

    Returns:
        Settings: Reloaded settings instance
    """
    global settings
    settings = Settings()
    return settings


__all__ = [
    "DEFAULT_PROVIDERS",
    "Settings",
    "settings",
    "get_settings",
    "reload_settings",
]
