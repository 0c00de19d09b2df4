"""logscope core -- errors, results, settings, logging and shared enums.

Module Map:
    enums       ReversalPolicy, BackendName
    errors      LogScopeError hierarchy with categories and context
    result      Ok / Err outcome carrier, try_result
    settings    LogScopeSettings (pydantic-settings), get_settings
    logging     structlog configuration, get_logger

Nothing in ``logscope.core`` imports from the context, backend or
interception layers.
"""

from logscope.core.enums import BackendName, ReversalPolicy
from logscope.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    ExtractorError,
    LogScopeError,
    NestedContextMismatchError,
    RegistryError,
    RegistryFrozenError,
    ReversalError,
)
from logscope.core.logging import configure_logging, get_logger
from logscope.core.result import Err, Ok, Result, try_result
from logscope.core.settings import LogScopeSettings, get_settings, reset_settings

__all__ = [
    # enums
    "BackendName",
    "ReversalPolicy",
    # errors
    "ErrorCategory",
    "ErrorContext",
    "LogScopeError",
    "ConfigError",
    "RegistryError",
    "RegistryFrozenError",
    "ExtractorError",
    "ReversalError",
    "NestedContextMismatchError",
    # result
    "Ok",
    "Err",
    "Result",
    "try_result",
    # settings
    "LogScopeSettings",
    "get_settings",
    "reset_settings",
    # logging
    "configure_logging",
    "get_logger",
]
