"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",")]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Telegram: comma-separated, paired by position
    bot_tokens: str = ""
    chat_ids: str = ""
    notify_timeout: float = 10.0

    # Bybit candle source
    bybit_base_url: str = "https://api.bybit.com"
    bybit_category: str = "spot"
    fetch_limit: int = 300
    request_timeout: float = 10.0
    fetch_retries: int = 2
    retry_backoff: float = 1.0
    requests_per_minute: int = 600

    # Poll loop
    poll_interval: float = 60.0
    pace_delay: float = 0.35
    max_concurrency: int = 1

    # Trading configuration file (watchlist, preset, overrides)
    trading_config_path: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"

    @property
    def telegram_tokens(self) -> list[str]:
        return _split_csv(self.bot_tokens) if self.bot_tokens else []

    @property
    def telegram_chat_ids(self) -> list[str]:
        return _split_csv(self.chat_ids) if self.chat_ids else []


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
