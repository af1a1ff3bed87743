"""Application settings loaded from environment variables.

Defines all environment-driven configuration used by the CRM backend.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed configuration model for the application."""

    # Database configuration
    DATABASE_URL: str = "sqlite:///./leadcrm.db"

    # Token parameters
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 480

    # Wall clock used for follow-up dates (IANA name, host local time if unset)
    TIMEZONE: Optional[str] = None

    # API parameters
    ROOT_PATH_BACKEND: str = ""
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    SEED_MOCK_DATA: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
