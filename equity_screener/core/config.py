"""
Application configuration using Pydantic Settings.

Supports hierarchical environment configuration:
- .env.base: Common non-secret defaults (committed to git)
- .env.{ENVIRONMENT}: Environment-specific overrides (gitignored)
- Environment variables: Highest priority
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get environment from env var, default to development
ENV = os.getenv("ENVIRONMENT", "development")

# Placeholder shipped in the sample env file; treated as "no key"
PLACEHOLDER_API_KEY = "your_api_key_here"


class Settings(BaseSettings):
    """Application settings with hierarchical env file support."""

    model_config = SettingsConfigDict(
        env_file=[
            ".env.base",
            f".env.{ENV}",
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"

    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # External APIs - Market Data
    alpha_vantage_api_key: str = ""  # Free tier: 5 calls/min
    alpha_vantage_base_url: str = "https://www.alphavantage.co/query"
    alpha_vantage_timeout_seconds: float = 30.0

    # Serve synthetic data instead of calling Alpha Vantage
    use_synthetic_data: bool = False

    # Upstream quota (Alpha Vantage free tier)
    rate_limit_requests: int = 5
    rate_limit_window: int = 60  # per minute

    # Cache settings - default TTL values in seconds by data kind
    cache_ttl_search: int = 1800  # Symbol search (30 min)
    cache_ttl_time_series: int = 43200  # Monthly time series (12 hours)
    cache_ttl_quote: int = 300  # Quotes (5 min)
    cache_ttl_overview: int = 86400  # Company fundamentals (24 hours)
    cache_ttl_news: int = 600  # Market and symbol news (10 min)
    cache_housekeeping_interval: int = 300  # Purge expired entries every 5 min

    # Synthetic entries are only trusted this long while live mode is active
    synthetic_ttl_seconds: float = 60.0
    synthetic_delay_seconds: float = 0.0

    # Pending-mutation grace delay for favorites/selection toggles (50ms)
    mutation_grace_seconds: float = 0.05

    # Multi-symbol news cap
    news_limit: int = 20

    # Favorites key-value blob
    favorites_path: str = ".equity_screener_favorites.json"

    @property
    def has_api_key(self) -> bool:
        """Check if a usable Alpha Vantage key is configured."""
        key = self.alpha_vantage_api_key.strip()
        return bool(key) and key != PLACEHOLDER_API_KEY

    @property
    def prefers_synthetic(self) -> bool:
        """Synthetic mode is forced explicitly or by a missing API key."""
        return self.use_synthetic_data or not self.has_api_key

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
