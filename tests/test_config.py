"""Tests for Settings loading from the environment."""

from __future__ import annotations

import pytest

from assembly_cli.config import (
    DEFAULT_POLL_INTERVAL_S,
    Settings,
    load_settings,
    log_level_from_env,
)
from assembly_cli.errors import ConfigurationError

_ENV = {
    "API_TOKEN": "secret",
    "TRANSCRIPT_URL": "https://api.example.com/v2/transcript/",
    "QUESTION_URL": "https://api.example.com/lemur/v3/generate/question-answer",
}


class TestLoadSettings:
    def test_reads_all_values(self):
        settings = load_settings(require_transcript=True, require_question=True, environ=_ENV)
        assert settings == Settings(
            api_token="secret",
            transcript_url="https://api.example.com/v2/transcript",
            question_url="https://api.example.com/lemur/v3/generate/question-answer",
            poll_interval=DEFAULT_POLL_INTERVAL_S,
        )

    def test_strips_trailing_slash(self):
        settings = load_settings(environ=_ENV)
        assert not settings.transcript_url.endswith("/")

    def test_missing_token(self):
        env = dict(_ENV, API_TOKEN="  ")
        with pytest.raises(ConfigurationError, match="API_TOKEN"):
            load_settings(environ=env)

    def test_transcript_url_only_required_when_asked(self):
        env = {"API_TOKEN": "secret"}
        assert load_settings(environ=env).transcript_url == ""
        with pytest.raises(ConfigurationError, match="TRANSCRIPT_URL"):
            load_settings(require_transcript=True, environ=env)

    def test_lists_every_missing_variable(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(require_transcript=True, require_question=True, environ={})
        message = str(exc_info.value)
        for name in ("API_TOKEN", "TRANSCRIPT_URL", "QUESTION_URL"):
            assert name in message

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            load_settings(environ={})

    def test_poll_interval_override(self):
        settings = load_settings(environ=dict(_ENV, POLL_INTERVAL="2.5"))
        assert settings.poll_interval == 2.5

    @pytest.mark.parametrize("value", ["soon", "-1"])
    def test_bad_poll_interval(self, value):
        with pytest.raises(ConfigurationError, match="POLL_INTERVAL"):
            load_settings(environ=dict(_ENV, POLL_INTERVAL=value))

    def test_settings_are_frozen(self):
        settings = load_settings(environ=_ENV)
        with pytest.raises(AttributeError):
            settings.api_token = "other"


class TestLogLevel:
    def test_default(self):
        assert log_level_from_env({}) == "WARNING"

    def test_override(self):
        assert log_level_from_env({"LOG_LEVEL": "info"}) == "INFO"

    def test_unknown_level_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="LOG_LEVEL.*'LOUD'"):
            log_level_from_env({"LOG_LEVEL": "loud"})
