"""
Context-local diagnostic context store using contextvars.

Holds a nested-label stack (NDC) and a mapped-value dict (MDC) per thread
and per asyncio task. Values are replaced, never mutated in place, so a
task that copies the current context keeps its own view.

Design choice: contextvars
- Thread-safe and asyncio-compatible
- No need to pass context through every function
- Clean integration with structlog processors

Rendering:
- ``add_scope_context`` is a structlog processor adding ``ndc`` (list of
  labels, key configurable) and every mapped value to each event
- ``ScopeContextFilter`` is a stdlib ``logging.Filter`` setting
  ``record.ndc`` and ``record.mdc`` for ``%(ndc)s``-style format strings
"""

import logging
from collections.abc import Mapping
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

from logscope.context.builder import StoreContextBuilder
from logscope.core.settings import get_settings

_EMPTY: Mapping[str, str | None] = MappingProxyType({})

_nested_context: ContextVar[tuple[str, ...]] = ContextVar("logscope_nested", default=())  # noqa: B039
_mapped_context: ContextVar[Mapping[str, str | None]] = ContextVar("logscope_mapped", default=_EMPTY)  # noqa: B039


class LocalContextStore:
    """``ContextStore`` backed by module-level context variables."""

    def push_label(self, label: str) -> None:
        _nested_context.set(_nested_context.get() + (label,))

    def pop_label(self) -> str | None:
        stack = _nested_context.get()
        if not stack:
            return None
        _nested_context.set(stack[:-1])
        return stack[-1]

    def peek_label(self) -> str | None:
        stack = _nested_context.get()
        return stack[-1] if stack else None

    def set_value(self, key: str, value: str | None) -> None:
        current = dict(_mapped_context.get())
        current[key] = value
        _mapped_context.set(MappingProxyType(current))

    def remove_key(self, key: str) -> None:
        current = _mapped_context.get()
        if key not in current:
            return
        updated = dict(current)
        del updated[key]
        _mapped_context.set(MappingProxyType(updated))

    def get_value(self, key: str) -> str | None:
        return _mapped_context.get().get(key)

    def nested(self) -> tuple[str, ...]:
        """Current nested labels, outermost first."""
        return _nested_context.get()

    def mapped(self) -> dict[str, str | None]:
        """Copy of the current mapped values."""
        return dict(_mapped_context.get())

    def clear(self) -> None:
        """Clear both stacks (reset to empty)."""
        _nested_context.set(())
        _mapped_context.set(_EMPTY)


local_store = LocalContextStore()


class LocalContextProvider:
    """Provider handing out builders that write to ``local_store``."""

    def context_builder(self) -> StoreContextBuilder:
        return StoreContextBuilder(local_store, policy=get_settings().reversal_policy)


def add_scope_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds the local diagnostic context to every event.

    Existing event keys are never overridden.
    """
    nested = _nested_context.get()
    if nested:
        event_dict.setdefault(get_settings().nested_key, list(nested))

    for key, value in _mapped_context.get().items():
        event_dict.setdefault(key, value)

    return event_dict


class ScopeContextFilter(logging.Filter):
    """
    Stdlib logging filter exposing the local diagnostic context on records.

    Sets ``record.ndc`` to the space-joined nested labels and ``record.mdc``
    to a dict copy of the mapped values. Never filters a record out.

    Usage:
        handler.addFilter(ScopeContextFilter())
        handler.setFormatter(logging.Formatter("%(ndc)s %(message)s"))
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.ndc = " ".join(_nested_context.get())
        record.mdc = dict(_mapped_context.get())
        return True


__all__ = [
    "LocalContextStore",
    "LocalContextProvider",
    "local_store",
    "add_scope_context",
    "ScopeContextFilter",
]
