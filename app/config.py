"""
Studio Split - Configuration
Environment configuration using Pydantic Settings
"""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Studio Split"
    debug: bool = True
    log_level: str = "INFO"

    # Database (SQLite locally, MySQL in production)
    database_url: str = "sqlite:///./studio_split.db"

    # JWT Authentication
    jwt_secret_key: str = "your-super-secret-jwt-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    default_currency: str = "USD"
    platform_fee_percentage: float = 0.05

    # SMTP mail (optional)
    mail_host: Optional[str] = None
    mail_port: int = 587
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_encryption: str = "tls"
    mail_from_address: str = "noreply@example.com"
    mail_from_name: str = "Studio Split"

    # Abuse detection thresholds
    abuse_max_same_client_bookings: int = 5  # per 30 days
    abuse_max_refund_rate: float = 0.3
    abuse_min_refund_sample: int = 10
    abuse_min_hours_between_bookings: float = 2.0
    abuse_max_bookings_per_day: int = 10
    abuse_suspicious_review_streak: int = 5

    # Scheduled abuse scan
    abuse_scan_enabled: bool = False
    abuse_scan_interval_minutes: int = 60

    # Frontend URLs (for redirects)
    frontend_url: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
