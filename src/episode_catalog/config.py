"""
Application Configuration

Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from EPISODES_* environment variables"""

    # App
    app_name: str = "Episode Manager"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Remote catalog
    catalog_http_url: str = "http://localhost:8000/graphql"
    catalog_ws_url: str = "ws://localhost:8000/graphql"
    catalog_api_key: str = ""
    catalog_timeout_seconds: float = 10.0
    enable_subscriptions: bool = True

    # Offline store
    offline_only: bool = False
    seed_offline_store: bool = True
    mirror_remote_writes: bool = False

    # Consumers
    search_debounce_ms: int = 400

    # Metadata lookup (OMDb compatible)
    metadata_base_url: str = "https://www.omdbapi.com"
    metadata_api_key: str = ""
    metadata_timeout_seconds: float = 5.0

    # Stand-in catalog server
    mock_host: str = "127.0.0.1"
    mock_port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EPISODES_",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def search_debounce_seconds(self) -> float:
        """Debounce delay in seconds"""
        return self.search_debounce_ms / 1000.0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
