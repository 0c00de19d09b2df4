"""Tests for logscope.core.settings module."""

import pytest
from pydantic import ValidationError

from logscope.core.enums import BackendName, ReversalPolicy
from logscope.core.errors import ConfigError, ErrorCategory
from logscope.core.settings import LogScopeSettings, get_settings, reset_settings


class TestDefaults:
    """Test default values."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOGSCOPE_DISCOVER_PROVIDERS", raising=False)
        settings = LogScopeSettings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.log_format is None
        assert settings.backend == BackendName.LOCAL
        assert settings.discover_providers is True
        assert settings.provider_group == "logscope.providers"
        assert settings.reversal_policy == ReversalPolicy.SWALLOW
        assert settings.nested_key == "ndc"


class TestEnvironment:
    """Test LOGSCOPE_ environment overrides."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LOGSCOPE_BACKEND", "structlog")
        monkeypatch.setenv("LOGSCOPE_REVERSAL_POLICY", "surface_last")
        monkeypatch.setenv("LOGSCOPE_NESTED_KEY", "scope")
        monkeypatch.setenv("LOGSCOPE_LOG_FORMAT", "console")

        settings = LogScopeSettings(_env_file=None)

        assert settings.backend == BackendName.STRUCTLOG
        assert settings.reversal_policy == ReversalPolicy.SURFACE_LAST
        assert settings.nested_key == "scope"
        assert settings.log_format == "console"

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOGSCOPE_LOG_LEVEL", " debug ")
        assert LogScopeSettings(_env_file=None).log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            LogScopeSettings(_env_file=None, log_level="LOUD")

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            LogScopeSettings(_env_file=None, backend="log4j")

    def test_empty_nested_key_rejected(self):
        with pytest.raises(ValidationError):
            LogScopeSettings(_env_file=None, nested_key="")


class TestCaching:
    """Test get_settings / reset_settings."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_environment_raises_config_error(self, monkeypatch):
        monkeypatch.setenv("LOGSCOPE_REVERSAL_POLICY", "explode")

        with pytest.raises(ConfigError) as exc_info:
            get_settings()

        assert exc_info.value.category == ErrorCategory.CONFIG
        assert exc_info.value.context.metadata == {"fields": ["reversal_policy"]}
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_invalid_environment_is_not_cached(self, monkeypatch):
        monkeypatch.setenv("LOGSCOPE_REVERSAL_POLICY", "explode")
        with pytest.raises(ConfigError):
            get_settings()

        monkeypatch.setenv("LOGSCOPE_REVERSAL_POLICY", "surface_last")
        assert get_settings().reversal_policy == ReversalPolicy.SURFACE_LAST

    def test_reset_rereads_environment(self, monkeypatch):
        get_settings()
        monkeypatch.setenv("LOGSCOPE_NESTED_KEY", "labels")
        reset_settings()
        assert get_settings().nested_key == "labels"
