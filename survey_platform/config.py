"""
Application Configuration

Centralized configuration management using Pydantic settings.
Loads from environment variables with fallback to .env file.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Note: get_settings() is lru_cached, so tests that change environment
    variables must call get_settings.cache_clear().
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Database settings
    DATABASE_URL: str = "postgresql://localhost/survey_platform"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Security settings
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Redis for caching and rate limiting
    REDIS_URL: str = "redis://localhost:6379/0"

    # Application settings
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Rate limiting (client API, per environment)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 600
    RATE_LIMIT_BURST: int = 100

    # Service cache
    CACHE_BACKEND: str = "redis"  # redis | memory
    CACHE_KEY_PREFIX: str = "survey-platform"
    CACHE_MEMORY_MAX_ENTRIES: int = 10000
    SERVICES_REVALIDATION_INTERVAL: int = 60 * 5
    # Lifetime of tag version counters; tagged entries never outlive it
    CACHE_TAG_TTL: int = 60 * 60 * 24

    # Pagination
    ITEMS_PER_PAGE: int = 50

    # Product analytics
    POSTHOG_API_KEY: str = ""
    POSTHOG_HOST: str = "https://app.posthog.com"

    # Free plan limits
    PRICING_USERTARGETING_FREE_MTU: int = 2500
    FREE_LIMIT_EVENT_INTERVAL: int = 60 * 60 * 24 * 15


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
