"""
Application configuration using Pydantic Settings
"""
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Database (empty = backend not configured)
    DATABASE_URL: str = ""

    # Security
    SECRET_KEY: str = "super-secret-key-change-me"  # Replace in production
    SESSION_MAX_AGE: int = 14 * 24 * 60 * 60

    # Application
    TIMEZONE: str = "America/Sao_Paulo"
    DEBUG: bool = False

    # Plans
    BASIC_PLAN_TASK_LIMIT: int = 50

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def backend_configured(self) -> bool:
        return bool(self.DATABASE_URL.strip())

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)

    def get_sqlalchemy_url(self) -> str:
        """
        Convert DATABASE_URL to SQLAlchemy format (postgresql+psycopg://)
        """
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+psycopg://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance
    """
    return Settings()
