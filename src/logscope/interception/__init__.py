"""
Declarative logging context for functions, methods and classes.

Usage:
    from typing import Annotated
    from logscope.interception import LoggingContext, logging_context

    @logging_context
    def settle(batch: Annotated[str, LoggingContext("batch")]) -> None:
        ...
"""

from logscope.interception.decorators import intercept, logging_context, with_logging_context
from logscope.interception.engine import InterceptionEngine, get_default_engine, set_default_engine
from logscope.interception.extractors import (
    NO_OP_EXTRACTOR,
    ContextExtractor,
    ExtractorRegistry,
    FunctionExtractor,
    NoOpExtractor,
    clear_extractors,
    default_extractors,
    register_extractor,
)
from logscope.interception.metadata import (
    CallMetadata,
    CallMetadataProvider,
    DeclaredMetadataProvider,
    ExtractedContext,
    LoggingContext,
    ParameterBinding,
    PendingCall,
)

__all__ = [
    # Declarations
    "LoggingContext",
    "ExtractedContext",
    # Decorators
    "logging_context",
    "with_logging_context",
    "intercept",
    # Engine
    "InterceptionEngine",
    "get_default_engine",
    "set_default_engine",
    # Metadata
    "CallMetadata",
    "CallMetadataProvider",
    "DeclaredMetadataProvider",
    "ParameterBinding",
    "PendingCall",
    # Extractors
    "ContextExtractor",
    "NoOpExtractor",
    "NO_OP_EXTRACTOR",
    "FunctionExtractor",
    "ExtractorRegistry",
    "default_extractors",
    "register_extractor",
    "clear_extractors",
]
