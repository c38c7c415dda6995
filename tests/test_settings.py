"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from ledger_client.config import ApiSettings, AppSettings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "DEBUG_MODE", "DISPLAY_TIMEZONE", "LEDGER_API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


class TestApiSettings:
    """Tests for ApiSettings."""

    def test_trailing_slash_is_dropped(self, monkeypatch):
        monkeypatch.setenv("LEDGER_API_BASE_URL", "https://ledger.example.com/api/")
        assert ApiSettings().base_url == "https://ledger.example.com/api"

    def test_rejects_non_http_url(self, monkeypatch):
        monkeypatch.setenv("LEDGER_API_BASE_URL", "ftp://ledger.example.com")
        with pytest.raises(ValidationError):
            ApiSettings()

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("LEDGER_API_BASE_URL", "http://localhost:8000")
        settings = ApiSettings()
        assert settings.timeout == 10.0
        assert settings.read_retry_attempts == 3


class TestAppSettings:
    """Tests for AppSettings."""

    def test_log_level_used_by_default(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        assert AppSettings().effective_log_level == "WARNING"

    def test_debug_mode_forces_debug_logging(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.setenv("DEBUG_MODE", "true")
        assert AppSettings().effective_log_level == "DEBUG"

    def test_unknown_timezone_rejected(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_TIMEZONE", "Mars/Olympus")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_display_tz(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_TIMEZONE", "Asia/Kolkata")
        assert str(AppSettings().display_tz) == "Asia/Kolkata"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
