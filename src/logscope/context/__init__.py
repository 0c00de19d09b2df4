"""
Context units, builders and the provider registry.

Usage:
    from logscope.context import nested_context

    with nested_context("nightly-import").add_mapped("run", run_id).build():
        import_everything()
"""

from logscope.context.builder import (
    ContextBuilder,
    ContextStore,
    NoOpContextBuilder,
    StoreContextBuilder,
)
from logscope.context.registry import (
    ContextBuilderProvider,
    ProviderRegistry,
    clear_registry,
    default_registry,
    get_builder,
    mapped_context,
    nested_context,
    register_provider,
)
from logscope.context.unit import NO_OP_UNIT, ContextUnit

__all__ = [
    # Units
    "ContextUnit",
    "NO_OP_UNIT",
    # Builders
    "ContextStore",
    "ContextBuilder",
    "StoreContextBuilder",
    "NoOpContextBuilder",
    # Registry
    "ContextBuilderProvider",
    "ProviderRegistry",
    "default_registry",
    "register_provider",
    "get_builder",
    "nested_context",
    "mapped_context",
    "clear_registry",
]
