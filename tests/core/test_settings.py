"""Tests for survey_spine.core.settings."""

import pytest
from pydantic import ValidationError

from survey_spine.core.settings import EngineSettings, get_settings


class TestEngineSettings:
    """Test defaults, environment overrides and validation."""

    def test_defaults(self, monkeypatch):
        for name in ("SURVEY_SPINE_DEFAULT_LIMIT", "SURVEY_SPINE_LOG_LEVEL", "SURVEY_SPINE_DEBUG"):
            monkeypatch.delenv(name, raising=False)
        settings = EngineSettings(_env_file=None)
        assert settings.default_limit == 50
        assert settings.default_cutoff == 1
        assert settings.fetch_timeout_seconds == 30.0
        assert settings.debug is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SURVEY_SPINE_DEFAULT_LIMIT", "12")
        monkeypatch.setenv("SURVEY_SPINE_LOG_FORMAT", "JSON")
        settings = EngineSettings(_env_file=None)
        assert settings.default_limit == 12
        assert settings.log_format == "json"

    def test_log_level_is_normalized(self):
        assert EngineSettings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            EngineSettings(_env_file=None, log_level="chatty")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            EngineSettings(_env_file=None, log_format="xml")

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
