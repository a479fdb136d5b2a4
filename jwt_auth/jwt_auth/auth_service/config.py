"""
Configuration management for the auth service
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Auth service configuration loaded from environment variables"""

    # Application
    APP_ENVIRONMENT: str = "development"
    APP_HOST: str = "localhost:8080"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    API_PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "/app/logs"

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./app.db"
    DB_ECHO: bool = False

    # JWT Configuration
    SECRET_KEY: str = "change-this-secret-in-prod"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # Passwords
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    MIN_PASSWORD_LENGTH: int = 8
    ENFORCE_PASSWORD_COMPLEXITY: bool = False
    # pbkdf2_sha256 avoids external bcrypt backend issues in some environments
    PASSWORD_HASH_SCHEMES: List[str] = ["pbkdf2_sha256"]

    # Return "invalid credentials" instead of "user not found" on lookups
    UNIFORM_AUTH_ERRORS: bool = False

    # Dev mode exposes reset tokens in responses and the /dev routes
    DEV_MODE: bool = False

    # SMTP Configuration (log-only delivery when SMTP_HOST is unset)
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM: str = "no-reply@localhost"
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: float = 10.0

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.APP_ENVIRONMENT.lower() == "production"


# Global settings instance
settings = Settings()
