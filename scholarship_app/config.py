"""
Application Configuration
"""
from datetime import datetime
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Scholarship Application Portal"
    app_version: str = "1.0.0"
    debug: bool = False
    app_base_url: str = "http://localhost:8000"  # Used to build recommender links

    # Authentication
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"

    # Seed admin account
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123!"

    # Database
    database_url: str = "sqlite:///./data/app.db"

    # Eligibility policy
    residency_state: str = "MI"
    min_gpa: float = 3.0
    essay_min_words: int = 250
    essay_max_words: int = 500
    application_deadline: Optional[datetime] = None  # None means no deadline

    # Recommendations
    recommendation_token_days: int = 30
    max_recommendations: int = 2
    reminder_cooldown_hours: int = 24
    max_reminders: int = 2
    auto_reminder_first_days: int = 7
    auto_reminder_second_days: int = 14
    reminder_cron: str = "0 15 * * *"  # 10:00 AM EST

    # Email dispatch (HTTP API, e.g. Resend)
    email_api_url: str = "https://api.resend.com/emails"
    email_api_key: Optional[str] = None
    email_from_address: str = "Scholarship Committee <noreply@example.com>"
    email_timeout_seconds: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
