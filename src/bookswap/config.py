"""Configuration management for the BookSwap API.

This module provides centralized configuration management using Pydantic settings
with environment variable support, validation, and error handling.
"""

from typing import Annotated

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support and validation."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Database Configuration
    database_url: Annotated[str, Field(description="Database connection URL")] = "sqlite:///./bookswap.db"
    debug: Annotated[bool, Field(description="Enable debug mode")] = False
    log_level: Annotated[str, Field(description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")] = "INFO"

    # Identity provider (OpenID Connect) Configuration
    oidc_userinfo_url: Annotated[str, Field(description="OpenID Connect userinfo endpoint")] = "https://auth.example.com/oidc/userinfo"
    oidc_timeout_seconds: Annotated[float, Field(description="Timeout for identity provider calls")] = 10.0

    # JWT Configuration
    jwt_secret: Annotated[str, Field(description="JWT secret key for token signing")] = "development-secret-change-me"
    jwt_algorithm: Annotated[str, Field(description="JWT algorithm for token signing")] = "HS256"
    jwt_expire_minutes: Annotated[int, Field(description="JWT token expiration time in minutes")] = 1440

    # Cover upload Configuration
    upload_dir: Annotated[str, Field(description="Directory where uploaded cover images are stored")] = "uploads"
    max_upload_bytes: Annotated[int, Field(description="Maximum size of an uploaded cover image in bytes")] = 10 * 1024 * 1024

    # CORS Configuration
    cors_origins: Annotated[list[str], Field(description="Allowed origins outside development")] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Environment Configuration
    environment: Annotated[str, Field(description="Application environment (development, testing, production)")] = "development"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("jwt_expire_minutes", "max_upload_bytes")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate durations and sizes are positive."""
        if v <= 0:
            raise ValueError("value must be a positive integer")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate JWT algorithm is supported."""
        allowed_algorithms = {"HS256", "HS384", "HS512"}
        if v not in allowed_algorithms:
            raise ValueError(f"jwt_algorithm must be one of {allowed_algorithms}")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith(("postgresql://", "postgresql+psycopg2://", "sqlite://")):
            raise ValueError("database_url must be a valid PostgreSQL or SQLite URL")
        return v

    @field_validator("oidc_userinfo_url")
    @classmethod
    def validate_oidc_userinfo_url(cls, v: str) -> str:
        """Validate identity provider URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("oidc_userinfo_url must be a valid HTTP/HTTPS URL")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment.lower() == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""
    pass


def get_settings() -> Settings:
    """Get application settings with error handling.

    Returns:
        Settings: Validated application settings

    Raises:
        ConfigurationError: If configuration validation fails
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {str(e)}") from e


# Global settings instance
settings = get_settings()
