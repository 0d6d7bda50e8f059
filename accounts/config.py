"""Configuration settings for the accounts service."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./accounts.db")

    # Upload
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "upload")
    PROFILE_DIR: str = os.getenv("PROFILE_DIR", "profile")
    MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "2"))

    # Credentials
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    TOKEN_TTL_HOURS: int = int(os.getenv("TOKEN_TTL_HOURS", "168"))
    TOKEN_CLEANUP_INTERVAL_SECONDS: int = int(os.getenv("TOKEN_CLEANUP_INTERVAL_SECONDS", "3600"))

    # Mail
    SMTP_HOST: str = os.getenv("SMTP_HOST", "localhost")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "8587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "false").lower() == "true"
    MAIL_FROM: str = os.getenv("MAIL_FROM", "My App <info@my-app.com>")
    ACTIVATION_URL: str = os.getenv("ACTIVATION_URL", "http://localhost:8080/#/login")

    # Pagination
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "10"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    @property
    def profile_directory(self) -> str:
        return os.path.join(self.UPLOAD_DIR, self.PROFILE_DIR)

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        warnings = []
        if self.SMTP_USE_TLS and not (self.SMTP_USERNAME and self.SMTP_PASSWORD):
            warnings.append("SMTP_USE_TLS is set but SMTP credentials are missing - activation mails will fail")
        if self.MAX_PAGE_SIZE < 1:
            warnings.append("MAX_PAGE_SIZE must be at least 1 - falling back to DEFAULT_PAGE_SIZE for every request")
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
