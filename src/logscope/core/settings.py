"""Settings for logscope.

All knobs live on one ``LogScopeSettings`` class read from ``LOGSCOPE_``
prefixed environment variables and an optional ``.env`` file.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at first use, not deep in a call
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** The local context store works out of the box

Examples:
    >>> from logscope.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.backend
    <BackendName.LOCAL: 'local'>

Environment:
    LOGSCOPE_LOG_LEVEL          DEBUG | INFO | WARNING | ERROR (default: INFO)
    LOGSCOPE_LOG_FORMAT         json | console (default: auto)
    LOGSCOPE_BACKEND            local | structlog | none (default: local)
    LOGSCOPE_DISCOVER_PROVIDERS load providers from entry points (default: true)
    LOGSCOPE_PROVIDER_GROUP     entry-point group (default: logscope.providers)
    LOGSCOPE_REVERSAL_POLICY    swallow | surface_last (default: swallow)
    LOGSCOPE_NESTED_KEY         key nested labels render under (default: ndc)

Tags:
    settings, configuration, pydantic, environment, logscope
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logscope.core.enums import BackendName, ReversalPolicy
from logscope.core.errors import ConfigError


class LogScopeSettings(BaseSettings):
    """Process-wide logscope settings.

    Fields
    ──────
    log_level          : Level used by ``configure_logging``
    log_format         : Renderer used by ``configure_logging`` (None = auto)
    backend            : Built-in provider registered when the registry loads
    discover_providers : Load providers from the entry-point group first
    provider_group     : Entry-point group holding provider factories
    reversal_policy    : Default failure policy of built-in context units
    nested_key         : Key under which nested labels render in log events
    """

    model_config = SettingsConfigDict(
        env_prefix="LOGSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: Literal["json", "console"] | None = None

    # ── Provider lookup ──────────────────────────────────────────
    backend: BackendName = BackendName.LOCAL
    discover_providers: bool = True
    provider_group: str = "logscope.providers"

    # ── Context units ────────────────────────────────────────────
    reversal_policy: ReversalPolicy = ReversalPolicy.SWALLOW
    nested_key: str = Field(default="ndc", min_length=1)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> LogScopeSettings:
    """
    Return the cached process-wide settings.

    Raises:
        ConfigError: A LOGSCOPE_ variable holds an invalid value. Not cached,
            so a corrected environment is picked up on the next call.
    """
    try:
        return LogScopeSettings()
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in e.errors()})
        raise ConfigError("Invalid logscope settings", cause=e).with_context(fields=fields) from e


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment (for testing)."""
    get_settings.cache_clear()


__all__ = ["LogScopeSettings", "get_settings", "reset_settings"]
