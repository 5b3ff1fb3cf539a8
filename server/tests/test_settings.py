"""
Unit tests for configuration loading.
"""

import pytest

from config import (
    Credentials,
    get_classifier_config,
    get_credentials,
    get_generation_config,
    get_image_config,
    get_server_config,
    get_session_config,
)


class TestSettings:
    """Test suite for environment-driven configuration."""

    def test_credentials_from_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "  gemini  ")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        credentials = get_credentials()
        assert credentials.gemini_api_key == "gemini"
        assert credentials.openai_api_key == ""
        assert credentials.is_complete

    def test_credentials_incomplete_without_gemini_key(self):
        assert not Credentials(gemini_api_key="", openai_api_key="sk").is_complete

    def test_generation_defaults(self, monkeypatch):
        for name in ("GEMINI_MODEL", "GEMINI_TEMPERATURE", "GEMINI_TOP_K", "GEMINI_TOP_P",
                     "GEMINI_MAX_OUTPUT_TOKENS", "GENERATION_TIMEOUT", "GEMINI_BASE_URL"):
            monkeypatch.delenv(name, raising=False)
        config = get_generation_config()
        assert (config.temperature, config.top_k, config.top_p, config.max_output_tokens) == (
            0.7, 40, 0.95, 2048)
        assert config.endpoint.endswith("/models/gemini-1.5-flash-latest:generateContent")

    def test_classifier_overrides(self, monkeypatch):
        monkeypatch.setenv("CLASSIFIER_URL", "https://vision.example/classify")
        monkeypatch.setenv("CLASSIFIER_TIMEOUT", "12.5")
        monkeypatch.setenv("CLASSIFIER_SEED", "9")
        config = get_classifier_config()
        assert config.endpoint == "https://vision.example/classify"
        assert config.timeout == 12.5
        assert config.seed == 9

    def test_image_and_server_config(self, monkeypatch):
        monkeypatch.setenv("IMAGE_MAX_BYTES", "1024")
        monkeypatch.setenv("IMAGE_VERIFY_DECODABLE", "false")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        image = get_image_config()
        assert image.max_bytes == 1024
        assert image.verify_decodable is False
        assert get_server_config().log_level == "DEBUG"

    def test_session_limits(self, monkeypatch):
        monkeypatch.setenv("SESSION_IDLE_TIMEOUT", "90")
        monkeypatch.setenv("SESSION_MAX", "25")
        config = get_session_config()
        assert config.idle_timeout == 90.0
        assert config.max_sessions == 25


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
