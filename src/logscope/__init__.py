"""
logscope - scope-bound logging context for structured logs.

Declare nested labels on classes and functions and mapped values on
parameters; every call then logs inside that context, and the context is
removed when the call returns or raises.

Usage:
    from typing import Annotated
    from logscope import LoggingContext, configure_logging, get_logger, logging_context

    configure_logging()
    log = get_logger(__name__)

    @logging_context("Orders")
    class OrdersService:

        @logging_context
        def issue_refund(self, order: Annotated[str, LoggingContext("order")]) -> None:
            log.info("refund_issued")   # ndc=["Orders", "issue_refund"] order="A-17"
"""

__version__ = "0.1.0"

from logscope.backends.local import ScopeContextFilter, add_scope_context
from logscope.context import (
    ContextBuilder,
    ContextUnit,
    ProviderRegistry,
    get_builder,
    mapped_context,
    nested_context,
    register_provider,
)
from logscope.core import (
    LogScopeError,
    ReversalPolicy,
    configure_logging,
    get_logger,
    get_settings,
)
from logscope.interception import (
    ExtractedContext,
    InterceptionEngine,
    LoggingContext,
    logging_context,
    register_extractor,
    with_logging_context,
)

__all__ = [
    "__version__",
    # Declarations
    "LoggingContext",
    "ExtractedContext",
    "logging_context",
    "with_logging_context",
    "register_extractor",
    # Context
    "ContextBuilder",
    "ContextUnit",
    "ProviderRegistry",
    "InterceptionEngine",
    "get_builder",
    "nested_context",
    "mapped_context",
    "register_provider",
    # Core
    "LogScopeError",
    "ReversalPolicy",
    "configure_logging",
    "get_logger",
    "get_settings",
    # Rendering
    "add_scope_context",
    "ScopeContextFilter",
]
