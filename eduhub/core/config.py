"""Application configuration from environment."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "EduHub"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./eduhub.db"

    # JWT
    secret_key: str = "change-me-in-production-use-env"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    guest_token_expire_minutes: int = 60 * 24  # 24 hours

    # Guest identities
    guest_session_hours: int = 24

    # Password hashing cost
    bcrypt_rounds: int = 12

    # Rate limits (per client IP)
    login_rate_limit_attempts: int = 5
    login_rate_limit_window_seconds: int = 15 * 60
    register_rate_limit_attempts: int = 3
    register_rate_limit_window_seconds: int = 60 * 60

    cors_origins: str = "http://localhost:5173,http://localhost:5000"

    # Shared secret for POST /api/auth/cleanup; empty disables the endpoint
    maintenance_token: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()
