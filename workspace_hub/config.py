"""
Application Configuration

Centralized configuration management using Pydantic settings.
Loads from environment variables with fallback to .env file.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Note: get_settings() is cached, so tests that need different values
    must set the environment before the first call (or clear the cache).
    """

    # Database settings
    DATABASE_URL: str = "postgresql://localhost/workspace_hub"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Security settings
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    SESSION_COOKIE_NAME: str = "access_token"

    # Auth event bus (sign-in / sign-out notifications)
    REDIS_URL: str = "redis://localhost:6379/0"
    AUTH_EVENTS_BACKEND: str = "memory"  # memory, redis
    AUTH_EVENTS_CHANNEL: str = "auth:events"

    # Application settings
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Tenant routing
    # Tenants live at {slug}.{ROOT_DOMAIN} in production and at
    # {slug}.localhost:{DEV_PORT} everywhere else.
    ROOT_DOMAIN: str = "example.com"
    DEV_PORT: int = 3000

    # Paths that bypass session and tenant checks entirely
    PUBLIC_PATH_PREFIXES: List[str] = [
        "/auth",
        "/_next",
        "/static",
        "/api/public",
        "/api/account",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/health",
    ]
    PUBLIC_EXACT_PATHS: List[str] = ["/", "/404"]

    # Redirect targets used by the tenant access middleware
    SIGNIN_PATH: str = "/auth/signin"
    UNAUTHORIZED_PATH: str = "/auth/unauthorized"
    NOT_FOUND_PATH: str = "/404"
    RETRY_AFTER_SECONDS: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only instantiate settings once.
    """
    return Settings()
