"""
Unit Tests for Configuration

Tests for settings and configuration management.
"""

import pytest
from pydantic import ValidationError

from attendline.config import Settings


def test_settings_defaults():
    """Test default settings values."""
    settings = Settings(_env_file=None)

    assert settings.ENVIRONMENT in ["local", "staging", "production"]
    assert settings.LOG_LEVEL in ["DEBUG", "INFO", "WARNING", "ERROR"]
    assert isinstance(settings.DATABASE_URL, str)
    assert settings.LINE_API_BASE_URL == "https://api.line.me/v2/bot"


def test_flow_defaults():
    """Saturday lessons, 48h sessions, three shortcuts."""
    settings = Settings(_env_file=None, LESSON_WEEKDAYS=[5], SESSION_TTL_HOURS=48)

    assert settings.LESSON_WEEKDAYS == [5]
    assert settings.SESSION_TTL_HOURS == 48


def test_settings_environment_specific():
    """Test environment-specific behavior."""
    settings_local = Settings(_env_file=None, ENVIRONMENT="local")
    assert settings_local.is_local is True
    assert settings_local.is_production is False

    settings_prod = Settings(_env_file=None, ENVIRONMENT="production")
    assert settings_prod.is_local is False
    assert settings_prod.is_production is True


def test_line_reply_enabled_requires_access_token():
    assert Settings(_env_file=None, LINE_CHANNEL_ACCESS_TOKEN="").line_reply_enabled is False
    assert Settings(_env_file=None, LINE_CHANNEL_ACCESS_TOKEN="token").line_reply_enabled is True


class TestLessonWeekdays:
    def test_sorted_and_deduplicated(self):
        settings = Settings(_env_file=None, LESSON_WEEKDAYS=[5, 2, 5])

        assert settings.LESSON_WEEKDAYS == [2, 5]

    def test_rejects_out_of_range(self):
        with pytest.raises(ValidationError, match="LESSON_WEEKDAYS"):
            Settings(_env_file=None, LESSON_WEEKDAYS=[7])


def test_rejects_non_positive_counts():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, SESSION_TTL_HOURS=0)

    with pytest.raises(ValidationError):
        Settings(_env_file=None, DATE_SHORTCUT_COUNT=-1)
