"""
Shared configuration management for the master server user-service client.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MASTER_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class UserServiceConfig(BaseConfig):
    """Settings for talking to the remote user service."""

    user_service_url: str = Field(default="http://localhost:30100")
    user_service_timeout: float = Field(default=10.0)

    # Entity cache
    user_cache_max_entries: int = Field(default=100, gt=0)
    user_cache_ttl_seconds: float = Field(default=15.0, gt=0)

    # Liveness check
    user_ping_interval_seconds: float = Field(default=30.0, gt=0)
    user_ping_timeout: float = Field(default=5.0)
    user_ping_path: str = Field(default="/ping")


def get_config(user_service_url: Optional[str] = None, **overrides) -> UserServiceConfig:
    """Get user service configuration, letting explicit values win over env."""
    if user_service_url is not None:
        overrides["user_service_url"] = user_service_url
    return UserServiceConfig(**overrides)
