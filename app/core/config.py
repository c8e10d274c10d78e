from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AnyUrl, EmailStr, Field, field_validator
import secrets


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra fields in .env file
    )

    # -------------------------
    # Database
    # -------------------------
    DATABASE_URL: AnyUrl

    SQLALCHEMY_ECHO: bool = False
    DB_POOL_MIN_SIZE: Optional[int] = None
    DB_POOL_MAX_SIZE: Optional[int] = None

    # -------------------------
    # Security / Auth
    # -------------------------
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    MIN_PASSWORD_LENGTH: int = Field(default=8, ge=6)

    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # -------------------------
    # Email / SMTP
    # -------------------------
    SMTP_EMAIL: Optional[EmailStr] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: Optional[int] = None
    EMAIL_FROM_NAME: str = "RNPathfinders"

    # -------------------------
    # Application
    # -------------------------
    PROJECT_NAME: str = "RNPathfinders API"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    FRONTEND_URL: str = "https://rnpathfinders.ng"

    # -------------------------
    # Redis (for ARQ email queue)
    # -------------------------
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the email job queue"
    )

    # -------------------------
    # Access codes
    # -------------------------
    ACCESS_CODE_PREFIX: str = Field(default="OP", max_length=10)
    ACCESS_CODE_LENGTH: int = Field(default=6, ge=4, le=32)
    MAX_CODES_PER_REQUEST: int = Field(default=100, ge=1, le=1000)

    # -------------------------
    # First-run data
    # -------------------------
    SEED_ON_STARTUP: bool = True
    INITIAL_ADMIN_EMAIL: Optional[EmailStr] = None
    INITIAL_ADMIN_PASSWORD: Optional[str] = None

    @field_validator("ALGORITHM")
    def validate_algorithm(cls, v):
        if not v or not isinstance(v, str):
            raise ValueError("ALGORITHM must be a non-empty string.")
        return v

    @field_validator("ACCESS_CODE_PREFIX")
    def validate_code_prefix(cls, v):
        """Prefixes are stored upper-case; codes are matched case-insensitively."""
        if not v.isalnum():
            raise ValueError("ACCESS_CODE_PREFIX must be alphanumeric.")
        return v.upper()

settings = Settings()
