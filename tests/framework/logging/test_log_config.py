"""Tests for survey_spine.framework.logging.config."""

import logging

from survey_spine.framework.logging import configure_logging, is_configured


class TestConfigureLogging:
    def test_configures_level(self):
        configure_logging(level="WARNING", format="json", force=True)
        assert is_configured()
        assert logging.getLogger("survey_spine").level == logging.WARNING

    def test_second_call_is_noop_without_force(self):
        configure_logging(level="ERROR", force=True)
        configure_logging(level="DEBUG")
        assert logging.getLogger("survey_spine").level == logging.ERROR

    def test_environment_level(self, monkeypatch):
        monkeypatch.setenv("SURVEY_SPINE_LOG_LEVEL", "debug")
        configure_logging(force=True)
        assert logging.getLogger("survey_spine").level == logging.DEBUG
