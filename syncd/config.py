from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/syncd.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    debug: bool = False

    # Scraper
    calendar_base_url: str = "https://calendar.unt.edu"
    scraper_pages: int = 3
    scraper_page_delay: float = 1.0
    scraper_timeout: int = 30
    scrape_interval_minutes: int = 60

    # Notifications
    notification_enabled: bool = True
    notification_sweep_seconds: int = 60
    default_reminder_hours: int = 24

    # Email (SMTP)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""
    smtp_use_ssl: bool = False
    smtp_timeout: int = 30

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""

    # Admin
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def sync_database_url(self) -> str:
        return self.database_url.replace("+aiosqlite", "")


@lru_cache
def get_settings() -> Settings:
    return Settings()
