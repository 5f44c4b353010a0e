"""
Application configuration using environment variables.
"""
import os
import secrets
from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "ProcureHub API"
    debug: bool = False
    environment: str = "development"

    # Security
    secret_key: str = os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60  # 1 hour
    refresh_token_expire_days: int = 7

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./procurehub.db")

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Rate limiting
    rate_limit_requests: int = 100
    rate_limit_period: int = 60  # seconds
    login_rate_limit: str = "5/minute"

    # Links in approval emails
    base_url: str = os.getenv("BASE_URL", "http://localhost:3000")

    # Mail (no smtp_host -> messages are logged, not sent)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@procurehub.local"
    mail_timeout: int = 10  # seconds
    mail_max_workers: int = 8

    # Approval workflow
    approval_fallback_email: str = "test@example.com"
    approval_token_signed: bool = False
    approval_token_expire_hours: int = 72
    default_step_sla: str = "48 hrs"

    # Internal recipients for BRFQ pause/resume notices
    pause_notify_emails: List[str] = []

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Validate secret key on startup
settings = get_settings()
if settings.environment == "production" and "SECRET_KEY" not in os.environ:
    raise ValueError(
        "SECRET_KEY must be set in production! "
        "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
    )
