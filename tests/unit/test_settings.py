"""
Tests for application settings (standup_bot/config/settings.py).

Covers:
  - Defaults and environment overrides
  - Field validators
  - Startup validation warnings and production errors
"""

import pytest
from pydantic import ValidationError

from standup_bot.config.settings import (
    DEFAULT_DEBOUNCE_WINDOW_MS,
    DEFAULT_OVERRIDE_PREFIX,
    AppSettings,
    get_settings,
)

_ENV_VARS = (
    "BOT_ACCESS_TOKEN",
    "DEBOUNCE_BACKEND",
    "DEBOUNCE_WINDOW_MS",
    "ENVIRONMENT",
    "HELP_COMMAND",
    "LOG_LEVEL",
    "OVERRIDE_DOMAIN",
    "OVERRIDE_PREFIX",
    "SEND_ACKNOWLEDGEMENT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the host environment out of the settings under test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _settings(**kwargs) -> AppSettings:
    return AppSettings(_env_file=None, **kwargs)


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        s = _settings()
        assert s.debounce_window_ms == DEFAULT_DEBOUNCE_WINDOW_MS == 60_000
        assert s.override_prefix == DEFAULT_OVERRIDE_PREFIX == "override:"
        assert s.debounce_backend == "memory"
        assert s.help_command == "help"
        assert s.send_acknowledgement is True
        assert s.environment == "development"
        assert s.log_level == "INFO"
        assert s.is_development
        assert not s.is_production

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("OVERRIDE_DOMAIN", "Contoso.com")
        monkeypatch.setenv("DEBOUNCE_WINDOW_MS", "30000")
        monkeypatch.setenv("SEND_ACKNOWLEDGEMENT", "false")
        s = _settings()
        assert s.override_domain == "contoso.com"
        assert s.debounce_window_ms == 30_000
        assert s.send_acknowledgement is False

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidators:
    """Tests for field validators."""

    def test_log_level_uppercased(self):
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            _settings(log_level="verbose")

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            _settings(environment="qa")

    def test_debounce_backend(self):
        assert _settings(debounce_backend="Redis").debounce_backend == "redis"
        with pytest.raises(ValidationError):
            _settings(debounce_backend="sqlite")

    def test_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            _settings(debounce_window_ms=0)

    def test_override_domain_normalized(self):
        assert _settings(override_domain=" @Contoso.COM ").override_domain == "contoso.com"

    def test_blank_help_command_rejected(self):
        with pytest.raises(ValidationError):
            _settings(help_command="   ")

    def test_platform_limits(self):
        with pytest.raises(ValidationError):
            _settings(platform_timeout_seconds=0)
        with pytest.raises(ValidationError):
            _settings(platform_max_retries=0)


class TestStartupValidation:
    """Tests for validate_for_startup."""

    def test_development_warnings(self):
        warnings = _settings().validate_for_startup()
        assert any("OVERRIDE_DOMAIN" in w for w in warnings)
        assert any("BOT_ACCESS_TOKEN" in w for w in warnings)

    def test_fully_configured(self):
        s = _settings(override_domain="contoso.com", bot_access_token="abc")
        assert s.has_custom_override_domain
        assert s.has_bot_access_token
        assert s.validate_for_startup() == []

    def test_placeholder_token_not_configured(self):
        assert not _settings(bot_access_token="your_bot_access_token_here").has_bot_access_token

    def test_production_requires_override_domain(self):
        with pytest.raises(ValueError, match="OVERRIDE_DOMAIN"):
            _settings(environment="production").validate_for_startup()

    def test_production_memory_backend_warns(self):
        s = _settings(environment="production", override_domain="contoso.com", bot_access_token="abc")
        warnings = s.validate_for_startup()
        assert any("DEBOUNCE_BACKEND" in w for w in warnings)

    def test_log_configuration_summary(self):
        _settings(bot_access_token="abc").log_configuration_summary()
