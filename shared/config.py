"""
Shared configuration management for the Users Access Layer.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="USERS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Record store
    record_store_backend: Literal["memory", "mongodb"] = Field(default="memory")
    mongo_uri: str = Field(default="mongodb://127.0.0.1:27017")
    db_name: str = Field(default="node_assignment")
    users_collection: str = Field(default="users")

    # Ingestion source
    source_api_url: str = Field(default="https://jsonplaceholder.typicode.com")
    source_timeout_seconds: float = Field(default=10.0)
    ingestion_concurrency: int = Field(default=5)

    # Response cache
    cache_ttl_millis: int = Field(default=300_000)
    cache_sweep_interval_seconds: float = Field(default=60.0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = 3000
    host: str = "0.0.0.0"


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
