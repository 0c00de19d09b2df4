"""
Structured error types for logscope.

Provides a small hierarchy of typed errors with metadata for logging and
root cause analysis through error chaining.

Most failures inside logscope are recovered locally (missing providers,
broken extractors, malformed labels) and only show up in the logs. The
types below exist for the few places where a failure does reach the
caller: registry lifecycle violations, reversal failures surfaced under the
``surface_last`` policy, and invalid configuration.

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different concerns
    - **Rich Context:** Errors carry the type, method, and key they concern
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      LogScopeError                          │
        │              (category, context, cause)                     │
        ├─────────────────────────────────────────────────────────────┤
        │                                                             │
        │  ConfigError       RegistryError        ExtractorError      │
        │  (CONFIG)          (REGISTRY)           (EXTRACTION)        │
        │                         │                                   │
        │                    RegistryFrozenError                      │
        │                                                             │
        │  ReversalError                                              │
        │  (REVERSAL)                                                 │
        │       │                                                     │
        │  NestedContextMismatchError                                 │
        └─────────────────────────────────────────────────────────────┘

Examples:
    Adding context to an error:

    >>> error = ExtractorError("extractor could not be created")
    >>> error.with_context(parameter="employee")
    ExtractorError('extractor could not be created', category=EXTRACTION)
    >>> error.context.parameter
    'employee'

    Chaining errors for root cause:

    >>> try:
    ...     raise TypeError("missing argument")
    ... except TypeError as e:
    ...     raise ExtractorError("bad extractor", cause=e)
    Traceback (most recent call last):
    ...
    ExtractorError: bad extractor

Guardrails:
    ❌ DON'T: Raise from reversal paths while a call failure is in flight
    ✅ DO: Log and suppress; the call's own failure wins

    ❌ DON'T: Swallow the original exception when wrapping
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, logscope

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    Examples:
        >>> ErrorCategory.REVERSAL.value
        'REVERSAL'
    """

    CONFIG = "CONFIG"  # Invalid settings
    REGISTRY = "REGISTRY"  # Provider registry lifecycle
    EXTRACTION = "EXTRACTION"  # Extractor resolution or extraction
    REVERSAL = "REVERSAL"  # Undoing a committed context unit
    VALIDATION = "VALIDATION"  # Malformed input
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Any additional metadata can be stored in the ``metadata`` dict. The
    ``to_dict()`` method serializes all non-None fields for logging.

    Examples:
        >>> ctx = ErrorContext(type_name="OrdersService", method="issue_refund")
        >>> ctx.to_dict()
        {'type_name': 'OrdersService', 'method': 'issue_refund'}

    Attributes:
        type_name: Declaring type of the intercepted call
        method: Name of the intercepted function
        parameter: Parameter the error concerns
        key: Mapped context key the error concerns
        label: Nested context label the error concerns
        metadata: Additional key-value pairs
    """

    type_name: str | None = None
    method: str | None = None
    parameter: str | None = None
    key: str | None = None
    label: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for name in ["type_name", "method", "parameter", "key", "label"]:
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class LogScopeError(Exception):
    """
    Base exception for all logscope errors.

    Carries a category, an ``ErrorContext`` and an optional chained cause.
    Subclasses set ``default_category``.

    Examples:
        >>> error = LogScopeError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'LogScopeError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> LogScopeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ReversalError("pop failed").with_context(label="OrdersService")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(LogScopeError):
    """Configuration error. Configuration must be fixed."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# REGISTRY ERRORS
# =============================================================================


class RegistryError(LogScopeError):
    """Provider or extractor registry error."""

    default_category = ErrorCategory.REGISTRY


class RegistryFrozenError(RegistryError):
    """A provider was registered after the registry was first used."""

    def __init__(self, provider: Any):
        self.provider = provider
        super().__init__(
            f"Cannot register {provider!r}: provider registry is read-only after first use"
        )


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================


class ExtractorError(LogScopeError):
    """
    An extractor could not be resolved or failed to extract.

    Never raised out of an intercepted call; created so the failure can be
    logged with structured context.
    """

    default_category = ErrorCategory.EXTRACTION


# =============================================================================
# REVERSAL ERRORS
# =============================================================================


class ReversalError(LogScopeError):
    """Undoing a committed context unit failed."""

    default_category = ErrorCategory.REVERSAL


class NestedContextMismatchError(ReversalError):
    """The label popped from the nested context is not the one that was pushed."""

    def __init__(self, expected: str, actual: str | None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Unexpected nested context {actual!r} removed instead of {expected!r}",
            context=ErrorContext(label=expected),
        )


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "LogScopeError",
    "ConfigError",
    "RegistryError",
    "RegistryFrozenError",
    "ExtractorError",
    "ReversalError",
    "NestedContextMismatchError",
]
