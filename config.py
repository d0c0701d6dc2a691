"""
Configuration Management for RegAuth
====================================

This module handles all application configuration using the Settings pattern
with Pydantic. Every value can be supplied through the environment, a .env
file, or left at its development default.

Design Pattern: Singleton-like Settings
We use a cached function to ensure we only load settings once,
but still allow for easy testing with different configurations.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with REGAUTH_ to avoid conflicts.
    Example: REGAUTH_SESSION_TTL_SECONDS=900

    Priority order (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values defined here
    """

    # =================================================================
    # Redis Configuration
    # =================================================================
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL holding client, session and counter keys"
    )

    redis_socket_timeout: Optional[float] = Field(
        default=5.0,
        description="Socket timeout in seconds for Redis commands (None = no timeout)"
    )

    # =================================================================
    # Password Hashing
    # =================================================================
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="""
        bcrypt cost factor used when hashing login secrets.

        Each increment doubles hashing time. 12 is a sensible production
        value; tests use 4 to stay fast.
        """
    )

    # =================================================================
    # Sessions
    # =================================================================
    session_ttl_seconds: int = Field(
        default=3600,
        gt=0,
        description="Lifetime of an issued session token; Redis expires the record after this"
    )

    session_token_segment_length: int = Field(
        default=16,
        ge=8,
        le=64,
        description="""
        Characters per random segment of a session token.

        A token is two segments drawn from [a-z0-9]. Two segments of 16
        give 32 characters, roughly 165 bits of entropy.
        """
    )

    # =================================================================
    # Rate Limiting
    # =================================================================
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable per-IP rate limits on /register and /login"
    )

    rate_limit_register: str = Field(
        default="10/minute",
        description="slowapi limit string for POST /register"
    )

    rate_limit_login: str = Field(
        default="30/minute",
        description="slowapi limit string for POST /login"
    )

    # =================================================================
    # API Configuration
    # =================================================================
    api_title: str = Field(
        default="RegAuth API",
        description="Title shown in the OpenAPI docs"
    )

    api_debug: bool = Field(
        default=False,
        description="Include exception details in 500 responses. Never enable in production."
    )

    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # =================================================================
    # Logging Configuration
    # =================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Python logging format string"
    )

    class Config:
        """Pydantic configuration for Settings."""
        env_prefix = "REGAUTH_"  # All env vars start with REGAUTH_
        env_file = ".env"  # Load from .env file if present
        env_file_encoding = "utf-8"
        case_sensitive = False  # REGAUTH_REDIS_URL = regauth_redis_url


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached singleton).

    For testing, you can clear the cache:
        get_settings.cache_clear()

    Returns:
        Settings: Application settings instance
    """
    return Settings()


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a Settings instance with custom values for testing.

    Example:
        settings = get_settings_for_testing(
            bcrypt_rounds=4,
            session_ttl_seconds=60
        )

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: New Settings instance with overrides applied
    """
    return Settings(**overrides)
