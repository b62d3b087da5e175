"""
Configuration Tests.

============================================================
PURPOSE
============================================================
Tests for settings validation and environment loading.

============================================================
"""

import pytest

from sailthru_sdk import ConfigurationError, Credentials, SailthruSettings, TimeoutConfig
from sailthru_sdk.config import DEFAULT_BASE_URL


class TestSailthruSettings:
    """Tests for SailthruSettings."""

    def test_defaults(self):
        """Test default values."""
        settings = SailthruSettings()

        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.capture_request_content is False
        assert settings.capture_response_content is False

    def test_validate_ok(self):
        """Test complete settings pass."""
        SailthruSettings(api_key="k", api_secret="s").validate()

    def test_validate_reports_each_problem(self):
        """Test one message per missing setting."""
        with pytest.raises(ConfigurationError) as exc_info:
            SailthruSettings(api_key="k").validate()

        assert exc_info.value.problems == ["A Sailthru API secret must be provided."]
        assert isinstance(exc_info.value, ValueError)

    def test_secret_hidden_from_repr(self):
        """Test the secret never appears in repr."""
        settings = SailthruSettings(api_key="k", api_secret="topsecret")

        assert "topsecret" not in repr(settings)
        assert "topsecret" not in repr(settings.credentials)

    def test_from_env(self, monkeypatch):
        """Test loading from prefixed variables."""
        monkeypatch.setenv("ESP_API_KEY", "envkey")
        monkeypatch.setenv("ESP_API_SECRET", "envsecret")
        monkeypatch.setenv("ESP_BASE_URL", "https://sandbox.example.com")

        settings = SailthruSettings.from_env(prefix="esp")

        assert settings.api_key == "envkey"
        assert settings.api_secret == "envsecret"
        assert settings.base_url == "https://sandbox.example.com"

    def test_from_env_missing(self, monkeypatch):
        """Test missing variables leave settings invalid, not failed."""
        monkeypatch.delenv("SAILTHRU_API_KEY", raising=False)
        monkeypatch.delenv("SAILTHRU_API_SECRET", raising=False)
        monkeypatch.delenv("SAILTHRU_BASE_URL", raising=False)

        settings = SailthruSettings.from_env()

        assert settings.api_key == ""
        assert settings.base_url == DEFAULT_BASE_URL
        with pytest.raises(ConfigurationError):
            settings.validate()


class TestCredentials:
    """Tests for Credentials."""

    def test_empty_values_rejected(self):
        """Test key and secret are required."""
        with pytest.raises(ValueError):
            Credentials(api_key="", api_secret="s")
        with pytest.raises(ValueError):
            Credentials(api_key="k", api_secret="")


class TestTimeoutConfig:
    """Tests for TimeoutConfig."""

    def test_defaults(self):
        """Test default timeouts."""
        config = TimeoutConfig()

        assert config.connection_timeout_seconds == 5.0
        assert config.read_timeout_seconds == 30.0
