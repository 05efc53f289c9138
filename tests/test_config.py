"""Tests for configuration."""

import pytest
from pydantic import ValidationError

from ecodrive.config import (
    AppSettings,
    GeminiSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestGeminiSettings:
    """Tests for GeminiSettings."""

    @pytest.mark.parametrize("key", [None, "", "PLACEHOLDER_API_KEY"])
    def test_not_configured(self, key):
        assert GeminiSettings(api_key=key).is_configured is False

    def test_configured(self):
        assert GeminiSettings(api_key="abc123").is_configured is True

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_MODEL_NAME", "gemini-test")
        assert GeminiSettings().model_name == "gemini-test"


class TestStorageSettings:
    """Tests for StorageSettings."""

    def test_defaults(self):
        settings = StorageSettings(_env_file=None)
        assert settings.key_prefix == "ecodrive_"
        assert settings.default_fuel_price == 5.89
        assert settings.quota_bytes == 5 * 1024 * 1024

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            StorageSettings(backend="sqlite")

    def test_blank_prefix_rejected(self):
        with pytest.raises(ValidationError):
            StorageSettings(key_prefix="  ")


class TestAppSettings:
    """Tests for AppSettings."""

    def test_timeline_window_from_environment(self, monkeypatch):
        monkeypatch.setenv("ECODRIVE_TIMELINE_WINDOW", "20")
        assert AppSettings().timeline_window == 20


class TestValidateAllSettings:
    """Tests for validate_all_settings."""

    def test_reports_missing_api_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "")
        results = validate_all_settings()
        assert results["gemini"] is False
        assert "gemini_error" in results
        assert results["storage"] is True
        assert results["app"] is True

    def test_reports_invalid_storage(self, monkeypatch):
        monkeypatch.setenv("ECODRIVE_STORAGE_BACKEND", "ftp")
        results = validate_all_settings()
        assert results["storage"] is False
        assert "storage_error" in results
