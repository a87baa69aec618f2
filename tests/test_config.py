"""
Tests for environment-driven settings.
"""

import pytest

from climbcoach.config import CoachSettings
from climbcoach.errors import ConfigurationError


def test_defaults():
    settings = CoachSettings.from_env({})

    assert settings.database_url == "sqlite:///climbcoach.db"
    assert settings.generation_url is None
    assert settings.generation_timeout == 45.0
    assert settings.log_level == "INFO"


def test_reads_environment():
    settings = CoachSettings.from_env(
        {
            "CLIMBCOACH_DATABASE_URL": "sqlite:///:memory:",
            "CLIMBCOACH_GENERATION_URL": "http://localhost:11434/api/generate",
            "CLIMBCOACH_GENERATION_MODEL": "mistral",
            "CLIMBCOACH_GENERATION_TIMEOUT": "12.5",
            "CLIMBCOACH_LOG_LEVEL": "debug",
        }
    )

    assert settings.database_url == "sqlite:///:memory:"
    assert settings.generation_url == "http://localhost:11434/api/generate"
    assert settings.generation_model == "mistral"
    assert settings.generation_timeout == 12.5
    assert settings.log_level == "DEBUG"


def test_empty_generation_url_disables_narration():
    assert CoachSettings.from_env({"CLIMBCOACH_GENERATION_URL": ""}).generation_url is None


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_invalid_timeout(value):
    with pytest.raises(ConfigurationError) as exc_info:
        CoachSettings.from_env({"CLIMBCOACH_GENERATION_TIMEOUT": value})
    assert exc_info.value.field == "CLIMBCOACH_GENERATION_TIMEOUT"


def test_unknown_log_level():
    with pytest.raises(ConfigurationError) as exc_info:
        CoachSettings.from_env({"CLIMBCOACH_LOG_LEVEL": "chatty"})
    assert exc_info.value.field == "CLIMBCOACH_LOG_LEVEL"
