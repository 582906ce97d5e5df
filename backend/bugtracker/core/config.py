"""Application configuration"""

import logging
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Bug Tracker API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 43200  # 30 days

    # One-time codes
    OTP_LENGTH: int = 6
    OTP_EXPIRATION_MINUTES: int = 10
    # WHY: Codes are stored as HMAC digests; a separate key lets the JWT
    # secret rotate without invalidating outstanding codes
    OTP_SECRET: Optional[str] = None  # falls back to JWT_SECRET

    # Database
    DATABASE_URL: str

    # URLs
    FRONTEND_URL: str = "http://localhost:5173"

    # Redis (rate limiting)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True

    # Email
    RESEND_API_KEY: Optional[str] = None
    EMAIL_FROM: Optional[str] = None

    # Tickets
    # WHY: Off by default, assignees given at creation time are only checked
    # for existence. True rejects assignees outside the project with a 400.
    VALIDATE_ASSIGNEE_ON_CREATE: bool = False

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def otp_secret(self) -> str:
        """Key used to hash one-time codes at rest."""
        return self.OTP_SECRET or self.JWT_SECRET


settings = Settings()


def configure_logging() -> None:
    """
    Configure root logging from settings.

    WHY: Every module logs through ``logging.getLogger(__name__)``; this sets the
    level and format once at application start.
    """
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
