"""
Built-in context stores.

- ``local``: module-level context variables, rendered by the
  ``add_scope_context`` processor or ``ScopeContextFilter``
- ``structlog``: ``structlog.contextvars``, rendered by ``merge_contextvars``

Select one with ``LOGSCOPE_BACKEND``.
"""

from logscope.backends.local import (
    LocalContextProvider,
    LocalContextStore,
    ScopeContextFilter,
    add_scope_context,
    local_store,
)
from logscope.backends.structlog import (
    StructlogContextBuilder,
    StructlogContextProvider,
    StructlogContextStore,
)

__all__ = [
    "LocalContextStore",
    "LocalContextProvider",
    "local_store",
    "add_scope_context",
    "ScopeContextFilter",
    "StructlogContextStore",
    "StructlogContextBuilder",
    "StructlogContextProvider",
]
