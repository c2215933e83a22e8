from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from packages.tiv_core.errors import ConfigurationError


class TIVConfig(BaseSettings):
    """
    Application-wide settings.
    Loaded from environment variables and the .env file.
    """
    PROJECT_NAME: str = "TIV Technical Interview"
    VERSION: str = "0.1.0"

    # Persistence
    STORE_BACKEND: str = "sql"  # "sql" or "memory"
    DATABASE_URL: str = "sqlite:///./tiv.db"

    # Interview flow
    MAX_QUESTIONS: int = 5
    MAX_ACTIVE_SESSIONS: int = 100
    QUESTION_GENERATION_ATTEMPTS: int = 2

    # Session initiation strategy (one per deployment)
    REQUIRE_EMAIL_VERIFICATION: bool = False
    VERIFICATION_TTL_HOURS: int = 24
    BASE_URL: str = "http://localhost:3000"

    # Admin
    ADMIN_SECRET: str = "change-this-in-production"
    ADMIN_PASSWORD_HASH: Optional[str] = None
    TOKEN_TTL_MINUTES: int = 60 * 24 * 7

    # Concurrency
    LOCK_DIR: str = ".locks"
    LOCK_STALE_SECONDS: int = 60

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    # Mail
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    MAIL_FROM: Optional[str] = None

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @classmethod
    def load(cls, **overrides) -> "TIVConfig":
        """
        Load settings, wrapping any failure in ConfigurationError.
        """
        try:
            return cls(**overrides)
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}") from e
