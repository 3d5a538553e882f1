"""Application configuration."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from price_exchange.pricing.config import PricingConfig


class Settings(BaseSettings):
    """Service settings; read from EXCHANGE_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database_url: str = "sqlite:///./price_exchange.db"
    sql_echo: bool = False

    poll_interval_seconds: float = Field(default=5.0, gt=0)
    rebalance_interval_ms: int = Field(default=300_000, gt=0)
    recompute_on_rebalance: bool = True

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"

    pricing: PricingConfig = Field(default_factory=PricingConfig)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
