"""
Unit tests for configuration.
"""

import pytest
from pydantic import ValidationError

from livebridge.config import Settings, get_settings


class TestSettingsDefaults:
    """Test default configuration values."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        s = Settings(_env_file=None)

        assert s.port == 8000
        assert s.live_model == "gemini-live-2.5-flash-preview"
        assert s.voice_name == "Zephyr"
        assert s.response_modalities == ["AUDIO"]
        assert s.enable_google_search is True
        assert s.google_use_vertexai is False
        assert s.cors_origins == ["*"]
        assert s.index_html_path == "index.html"
        assert s.log_server_messages is False
        assert s.send_timeout == 5.0

    def test_is_production(self):
        assert Settings(_env_file=None, app_env="production").is_production is True
        assert Settings(_env_file=None, app_env="development").is_production is False


class TestSettingsEnvironment:
    """Test loading from environment variables."""

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "abcd1234")

        s = Settings(_env_file=None)

        assert s.google_api_key == "abcd1234"
        assert s.masked_api_key == "abcd…"

    def test_masked_api_key_unset(self):
        assert Settings(_env_file=None, google_api_key="").masked_api_key == "Not set"

    def test_comma_separated_lists(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("RESPONSE_MODALITIES", "AUDIO,TEXT")

        s = Settings(_env_file=None)

        assert s.cors_origins == ["http://a.test", "http://b.test"]
        assert s.response_modalities == ["AUDIO", "TEXT"]

    def test_invalid_modality_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, response_modalities=["VIDEO"])

    def test_invalid_port_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, port=70000)


class TestGetSettings:
    """Test cached settings accessor."""

    def test_cached(self):
        assert get_settings() is get_settings()


class TestSendTimeout:
    def test_send_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("SEND_TIMEOUT", "0.5")

        assert Settings(_env_file=None).send_timeout == 0.5

    def test_send_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, send_timeout=0)
