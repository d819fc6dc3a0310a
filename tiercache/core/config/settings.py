#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
tiered cache service. Every tier reads its configuration from here.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Optional tiers: a missing object store or metadata store configuration
  disables that tier instead of failing startup

Author: System Architect
Date: 2025-12-05
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tiercache.core.config.constants import (
    DEFAULT_BUILD_ID,
    LOCAL_CACHE_MAX_SIZE,
    LOCAL_CACHE_TTL_MS,
    METADATA_DEFAULT_TABLE_NAME,
    METADATA_STORE_TIMEOUT,
    OBJECT_KEY_DEFAULT_PREFIX,
    OBJECT_STORE_MAX_ATTEMPTS,
    OBJECT_STORE_TIMEOUT,
)


class ObjectStoreSettings(BaseSettings):
    """
    Persistent tier configuration (S3-compatible object store).

    The tier is enabled only when region, credentials and bucket are all set.
    """

    OBJECT_STORE_REGION: str | None = Field(default=None, description="Object store region")
    OBJECT_STORE_ACCESS_KEY_ID: str | None = Field(default=None, description="Access key id")
    OBJECT_STORE_ACCESS_KEY_SECRET: str | None = Field(default=None, description="Access key secret")
    OBJECT_STORE_BUCKET: str | None = Field(default=None, description="Bucket name")
    OBJECT_STORE_ENDPOINT: str | None = Field(default=None, description="S3-compatible endpoint URL")
    OBJECT_STORE_PREFIX: str = Field(default=OBJECT_KEY_DEFAULT_PREFIX, description="Object key prefix")
    OBJECT_STORE_TIMEOUT: float = Field(default=OBJECT_STORE_TIMEOUT, gt=0, description="Per-call timeout in seconds")
    OBJECT_STORE_MAX_ATTEMPTS: int = Field(default=OBJECT_STORE_MAX_ATTEMPTS, ge=1, description="Retry attempts")
    BUILD_ID: str = Field(default=DEFAULT_BUILD_ID, description="Deployment/build identifier")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def is_configured(self) -> bool:
        return all(
            (
                self.OBJECT_STORE_REGION,
                self.OBJECT_STORE_ACCESS_KEY_ID,
                self.OBJECT_STORE_ACCESS_KEY_SECRET,
                self.OBJECT_STORE_BUCKET,
            )
        )


class MetadataStoreSettings(BaseSettings):
    """
    Metadata tier configuration (Redis hashes).

    The tier is enabled only when an endpoint is set.
    """

    METADATA_STORE_ENDPOINT: str | None = Field(default=None, description="Redis URL, e.g. redis://host:6379")
    METADATA_STORE_INSTANCE: int = Field(default=0, ge=0, description="Redis logical database")
    METADATA_STORE_USERNAME: str | None = Field(default=None, description="Redis ACL username")
    METADATA_STORE_PASSWORD: str | None = Field(default=None, description="Redis password")
    METADATA_STORE_TABLE_NAME: str = Field(default=METADATA_DEFAULT_TABLE_NAME, description="Key namespace")
    METADATA_STORE_TIMEOUT: float = Field(default=METADATA_STORE_TIMEOUT, gt=0, description="Per-call timeout in seconds")
    BUILD_ID: str = Field(default=DEFAULT_BUILD_ID, description="Deployment/build identifier")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.METADATA_STORE_ENDPOINT)


class CacheSettings(BaseSettings):
    """
    Local tier configuration.
    """

    CACHE_LOCAL_TTL_MS: int = Field(default=LOCAL_CACHE_TTL_MS, ge=0, description="Local freshness window (ms)")
    CACHE_LOCAL_MAX_SIZE: int = Field(default=LOCAL_CACHE_MAX_SIZE, ge=1, description="Local capacity (entries)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")
    CACHE_DEBUG: bool = Field(default=False, description="Force DEBUG level for cache tracing")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @property
    def effective_level(self) -> str:
        return "DEBUG" if self.CACHE_DEBUG else self.LOG_LEVEL

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.
    """

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Tiered Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all API routes")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from tiercache.core.config.settings import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_LOCAL_TTL_MS
        if settings.object_store.is_configured:
            ...

    Fields are flat (one environment variable each); the nested properties
    group them per component.
    """

    # Object store
    OBJECT_STORE_REGION: str | None = Field(default=None, description="Object store region")
    OBJECT_STORE_ACCESS_KEY_ID: str | None = Field(default=None, description="Access key id")
    OBJECT_STORE_ACCESS_KEY_SECRET: str | None = Field(default=None, description="Access key secret")
    OBJECT_STORE_BUCKET: str | None = Field(default=None, description="Bucket name")
    OBJECT_STORE_ENDPOINT: str | None = Field(default=None, description="S3-compatible endpoint URL")
    OBJECT_STORE_PREFIX: str = Field(default=OBJECT_KEY_DEFAULT_PREFIX, description="Object key prefix")
    OBJECT_STORE_TIMEOUT: float = Field(default=OBJECT_STORE_TIMEOUT, gt=0, description="Per-call timeout in seconds")
    OBJECT_STORE_MAX_ATTEMPTS: int = Field(default=OBJECT_STORE_MAX_ATTEMPTS, ge=1, description="Retry attempts")

    # Metadata store
    METADATA_STORE_ENDPOINT: str | None = Field(default=None, description="Redis URL")
    METADATA_STORE_INSTANCE: int = Field(default=0, ge=0, description="Redis logical database")
    METADATA_STORE_USERNAME: str | None = Field(default=None, description="Redis ACL username")
    METADATA_STORE_PASSWORD: str | None = Field(default=None, description="Redis password")
    METADATA_STORE_TABLE_NAME: str = Field(default=METADATA_DEFAULT_TABLE_NAME, description="Key namespace")
    METADATA_STORE_TIMEOUT: float = Field(default=METADATA_STORE_TIMEOUT, gt=0, description="Per-call timeout in seconds")

    # Shared
    BUILD_ID: str = Field(default=DEFAULT_BUILD_ID, description="Deployment/build identifier")

    # Local tier
    CACHE_LOCAL_TTL_MS: int = Field(default=LOCAL_CACHE_TTL_MS, ge=0, description="Local freshness window (ms)")
    CACHE_LOCAL_MAX_SIZE: int = Field(default=LOCAL_CACHE_MAX_SIZE, ge=1, description="Local capacity (entries)")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")
    CACHE_DEBUG: bool = Field(default=False, description="Force DEBUG level for cache tracing")

    # Application
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Tiered Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all API routes")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @property
    def object_store(self) -> ObjectStoreSettings:
        """Get object store settings."""
        return ObjectStoreSettings(
            OBJECT_STORE_REGION=self.OBJECT_STORE_REGION,
            OBJECT_STORE_ACCESS_KEY_ID=self.OBJECT_STORE_ACCESS_KEY_ID,
            OBJECT_STORE_ACCESS_KEY_SECRET=self.OBJECT_STORE_ACCESS_KEY_SECRET,
            OBJECT_STORE_BUCKET=self.OBJECT_STORE_BUCKET,
            OBJECT_STORE_ENDPOINT=self.OBJECT_STORE_ENDPOINT,
            OBJECT_STORE_PREFIX=self.OBJECT_STORE_PREFIX,
            OBJECT_STORE_TIMEOUT=self.OBJECT_STORE_TIMEOUT,
            OBJECT_STORE_MAX_ATTEMPTS=self.OBJECT_STORE_MAX_ATTEMPTS,
            BUILD_ID=self.BUILD_ID,
        )

    @property
    def metadata(self) -> MetadataStoreSettings:
        """Get metadata store settings."""
        return MetadataStoreSettings(
            METADATA_STORE_ENDPOINT=self.METADATA_STORE_ENDPOINT,
            METADATA_STORE_INSTANCE=self.METADATA_STORE_INSTANCE,
            METADATA_STORE_USERNAME=self.METADATA_STORE_USERNAME,
            METADATA_STORE_PASSWORD=self.METADATA_STORE_PASSWORD,
            METADATA_STORE_TABLE_NAME=self.METADATA_STORE_TABLE_NAME,
            METADATA_STORE_TIMEOUT=self.METADATA_STORE_TIMEOUT,
            BUILD_ID=self.BUILD_ID,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get local tier settings."""
        return CacheSettings(
            CACHE_LOCAL_TTL_MS=self.CACHE_LOCAL_TTL_MS,
            CACHE_LOCAL_MAX_SIZE=self.CACHE_LOCAL_MAX_SIZE,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT,
            CACHE_DEBUG=self.CACHE_DEBUG,
        )

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            API_BASE_PATH=self.API_BASE_PATH,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
