from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env")

    database_url: str = "sqlite:///./jobmarket.db"
    log_level: str = "INFO"
    db_timeout_seconds: float = 15.0

    # Header set by the upstream identity provider
    identity_header: str = "X-User-Id"

    # Exchange rates (Frankfurter, ECB data)
    exchange_rate_api_url: str = "https://api.frankfurter.app"
    exchange_rate_cache_minutes: int = 60
    http_timeout_seconds: float = 10.0

    # Saved filters
    max_saved_filters: int = 25
    badge_window_hours: int = 12
    badge_refresh_hour: int = 4
    local_timezone: str = "Europe/Amsterdam"

    # Dynamic filter options
    filter_option_sample_size: int = 1000
    filter_option_limit: int = 100
    filter_option_cache_minutes: int = 15

    default_page_size: int = 20
    max_page_size: int = 100


@lru_cache
def get_settings() -> Settings:
    return Settings()
