"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, signing secret, storage and SMTP credentials)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, SecretStr, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Loaded once per process and treated as read-only afterwards.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="receiptify",
        description="MongoDB database name"
    )

    # Token signing
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Secret used to sign bearer tokens"
    )
    TOKEN_EXPIRE_HOURS: int = Field(
        default=1,
        description="Lifetime of issued login tokens in hours"
    )
    BCRYPT_ROUNDS: int = Field(
        default=12,
        description="bcrypt work factor for password hashes"
    )

    # Cloudinary (receipt image hosting)
    CLOUDINARY_CLOUD_NAME: Optional[str] = Field(
        default=None,
        description="Cloudinary cloud name"
    )
    CLOUDINARY_API_KEY: Optional[str] = Field(
        default=None,
        description="Cloudinary API key"
    )
    CLOUDINARY_API_SECRET: Optional[SecretStr] = Field(
        default=None,
        description="Cloudinary API secret used to sign uploads"
    )
    CLOUDINARY_FOLDER: Optional[str] = Field(
        default=None,
        description="Cloudinary folder receipts are stored under"
    )
    CLOUDINARY_BASE_URL: str = Field(
        default="https://api.cloudinary.com/v1_1",
        description="Cloudinary REST API base URL"
    )
    STORAGE_TIMEOUT: float = Field(
        default=30.0,
        description="Object storage request timeout in seconds"
    )

    # Uploads
    UPLOAD_DIR: str = Field(
        default="uploads",
        description="Directory for transient copies of uploaded files"
    )
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted receipt upload in bytes"
    )

    # SMTP (receipt email relay)
    SMTP_HOST: Optional[str] = Field(
        default=None,
        description="SMTP server host"
    )
    SMTP_PORT: int = Field(
        default=587,
        description="SMTP server port"
    )
    SMTP_USER: Optional[str] = Field(
        default=None,
        description="SMTP login user"
    )
    SMTP_PASSWORD: Optional[SecretStr] = Field(
        default=None,
        description="SMTP login password"
    )
    SMTP_FROM_EMAIL: str = Field(
        default="no-reply@receiptify.app",
        description="Sender address for receipt emails"
    )
    SMTP_STARTTLS: bool = Field(
        default=True,
        description="Upgrade the SMTP connection with STARTTLS"
    )
    SMTP_TIMEOUT: float = Field(
        default=20.0,
        description="SMTP send timeout in seconds"
    )

    # Email relay policy
    EMAIL_RELAY_REQUIRE_AUTH: bool = Field(
        default=False,
        description="Require a bearer token on /send-email"
    )
    EMAIL_RATE_LIMIT_PER_HOUR: int = Field(
        default=20,
        description="Maximum receipt emails per client per hour"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    PORT: int = Field(
        default=8000,
        description="Port the HTTP server listens on"
    )
    CORS_ORIGINS: list = Field(
        default=["https://abdulwahab5547.github.io"],
        description="Allowed CORS origins"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @validator("TOKEN_EXPIRE_HOURS")
    def validate_token_expiry(cls, v):
        """Tokens must expire."""
        if v <= 0:
            raise ValueError("TOKEN_EXPIRE_HOURS must be positive")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def storage_configured(self) -> bool:
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.SECRET_KEY:
        errors.append("SECRET_KEY is required")

    # Production-specific validations
    if settings.is_production:
        if not settings.storage_configured:
            errors.append("CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET are required in production")
        if not settings.SMTP_HOST:
            errors.append("SMTP_HOST is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
