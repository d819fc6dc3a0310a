"""
Unit Tests for Configuration Settings

Tests the settings loading, validation, and default values.
"""

import pytest
from pydantic import ValidationError

from tiercache.core.config.settings import Settings, get_settings, reload_settings


def _configure_object_store(monkeypatch):
    monkeypatch.setenv("OBJECT_STORE_REGION", "oss-cn-hangzhou")
    monkeypatch.setenv("OBJECT_STORE_ACCESS_KEY_ID", "key-id")
    monkeypatch.setenv("OBJECT_STORE_ACCESS_KEY_SECRET", "key-secret")
    monkeypatch.setenv("OBJECT_STORE_BUCKET", "page-cache")


@pytest.mark.unit
class TestSettingsDefaults:
    """Test default values."""

    def test_cache_defaults(self):
        settings = Settings()

        assert settings.cache.CACHE_LOCAL_TTL_MS == 60_000
        assert settings.cache.CACHE_LOCAL_MAX_SIZE == 1000

    def test_object_store_defaults(self):
        settings = Settings()

        assert settings.object_store.OBJECT_STORE_PREFIX == "cache/"
        assert settings.object_store.OBJECT_STORE_TIMEOUT == 60
        assert settings.object_store.OBJECT_STORE_MAX_ATTEMPTS == 3
        assert settings.object_store.BUILD_ID == "default"

    def test_metadata_defaults(self):
        settings = Settings()

        assert settings.metadata.METADATA_STORE_INSTANCE == 0
        assert settings.metadata.METADATA_STORE_TABLE_NAME == "cache_metadata"
        assert settings.metadata.METADATA_STORE_TIMEOUT == 5

    def test_app_defaults(self):
        settings = Settings()

        assert settings.app.API_BASE_PATH == "/api/v1"
        assert settings.app.ENVIRONMENT in ["development", "staging", "production"]

    def test_remote_tiers_disabled_by_default(self):
        settings = Settings()

        assert not settings.object_store.is_configured
        assert not settings.metadata.is_configured


@pytest.mark.unit
class TestTierEnablement:
    """Test which tiers the environment enables."""

    def test_object_store_needs_all_four_values(self, monkeypatch):
        _configure_object_store(monkeypatch)
        assert Settings().object_store.is_configured

        monkeypatch.delenv("OBJECT_STORE_BUCKET")
        assert not Settings().object_store.is_configured

    def test_metadata_enabled_by_endpoint(self, monkeypatch):
        monkeypatch.setenv("METADATA_STORE_ENDPOINT", "redis://localhost:6379")
        assert Settings().metadata.is_configured

    def test_build_id_shared_by_both_tiers(self, monkeypatch):
        monkeypatch.setenv("BUILD_ID", "build-42")
        settings = Settings()

        assert settings.object_store.BUILD_ID == "build-42"
        assert settings.metadata.BUILD_ID == "build-42"


@pytest.mark.unit
class TestSettingsValidation:
    """Test validation failures."""

    def test_capacity_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("CACHE_LOCAL_MAX_SIZE", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_ttl_cannot_be_negative(self, monkeypatch):
        monkeypatch.setenv("CACHE_LOCAL_TTL_MS", "-1")
        with pytest.raises(ValidationError):
            Settings()

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
        with pytest.raises(ValidationError):
            Settings()

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert Settings().logging.LOG_LEVEL == "WARNING"


@pytest.mark.unit
class TestLoggingLevel:
    """Test CACHE_DEBUG handling."""

    def test_effective_level_follows_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert Settings().logging.effective_level == "ERROR"

    def test_cache_debug_forces_debug(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.setenv("CACHE_DEBUG", "true")
        assert Settings().logging.effective_level == "DEBUG"


@pytest.mark.unit
class TestSettingsSingleton:
    """Test global settings access."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reload_replaces_instance(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("CACHE_LOCAL_TTL_MS", "5")

        reloaded = reload_settings()

        assert reloaded is not first
        assert get_settings().cache.CACHE_LOCAL_TTL_MS == 5
