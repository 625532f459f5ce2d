"""Configuration management for Diet Sync."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    sync_table: str = "user_sync"

    # Sync client
    sync_api_url: str = "http://localhost:8000"
    poll_interval_seconds: float = 30.0
    request_timeout_seconds: float = 10.0
    local_cache_path: str = ".dietsync/cache.json"

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Timezone used to decide what "today" is
    timezone: str = "America/New_York"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
