"""
Context extractors: turn one argument into mapped logging context.

An extractor is anything with ``extract(value) -> Mapping[str, str]``.
Parameters declare theirs through ``ExtractedContext(descriptor)``, where
the descriptor is one of:

- an extractor class, instantiated with no arguments,
- an extractor instance,
- a plain callable taking the value,
- a name registered with ``register_extractor``, or a ``"module:attr"``
  import path.

Descriptors are resolved once and cached. A descriptor that cannot be
resolved falls back to ``NO_OP_EXTRACTOR`` with a WARNING; interception
goes on without that parameter's context.
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from logscope.core.errors import ExtractorError
from logscope.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class ContextExtractor(Protocol):
    """Turns a value into key/value pairs; ``None`` gives an empty mapping."""

    def extract(self, value: Any) -> Mapping[str, str]: ...


class NoOpExtractor:
    """Extractor that never contributes anything."""

    def extract(self, value: Any) -> Mapping[str, str]:
        return {}

    def __repr__(self) -> str:
        return "NoOpExtractor()"


NO_OP_EXTRACTOR = NoOpExtractor()


class FunctionExtractor:
    """Adapts a plain ``value -> mapping`` callable."""

    __slots__ = ("function",)

    def __init__(self, function: Callable[[Any], Mapping[str, str] | None]) -> None:
        self.function = function

    def extract(self, value: Any) -> Mapping[str, str]:
        return self.function(value) or {}

    def __repr__(self) -> str:
        return f"FunctionExtractor({getattr(self.function, '__qualname__', self.function)!r})"


class ExtractorRegistry:
    """Maps extractor descriptors to extractor instances, resolving each once."""

    def __init__(self) -> None:
        self._factories: dict[str, Callable[[], Any]] = {}
        self._resolved: dict[Any, ContextExtractor] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: Callable[[], Any]) -> None:
        """Register a named factory producing an extractor."""
        with self._lock:
            self._factories[name] = factory
            self._resolved.pop(name, None)
        logger.debug("extractor_registered", name=name)

    def resolve(self, descriptor: Any) -> ContextExtractor:
        """
        Return the extractor for ``descriptor``.

        Never raises: failures are logged and give ``NO_OP_EXTRACTOR``.
        """
        try:
            return self._resolved[descriptor]
        except KeyError:
            pass
        except TypeError:
            return self._create(descriptor)

        extractor = self._create(descriptor)
        with self._lock:
            self._resolved[descriptor] = extractor
        return extractor

    def clear(self) -> None:
        with self._lock:
            self._factories.clear()
            self._resolved.clear()

    def _create(self, descriptor: Any) -> ContextExtractor:
        try:
            return self._instantiate(descriptor)
        except Exception as e:
            error = ExtractorError(f"Cannot create extractor from {descriptor!r}", cause=e)
            logger.warning(
                "extractor_unavailable",
                descriptor=repr(descriptor),
                **error.to_dict(),
            )
            return NO_OP_EXTRACTOR

    def _instantiate(self, descriptor: Any) -> ContextExtractor:
        if descriptor is None:
            raise TypeError("extractor descriptor is None")

        if isinstance(descriptor, str):
            if descriptor in self._factories:
                return _as_extractor(self._factories[descriptor]())
            module_name, sep, attr = descriptor.partition(":")
            if not sep:
                raise LookupError(f"No extractor registered as {descriptor!r}")
            descriptor = getattr(importlib.import_module(module_name), attr)

        if isinstance(descriptor, type):
            return _as_extractor(descriptor())
        return _as_extractor(descriptor)


def _as_extractor(candidate: Any) -> ContextExtractor:
    if isinstance(candidate, ContextExtractor):
        return candidate
    if callable(candidate):
        return FunctionExtractor(candidate)
    raise TypeError(f"{type(candidate).__name__} is not a context extractor")


# =============================================================================
# Process-wide registry
# =============================================================================

default_extractors = ExtractorRegistry()


def register_extractor(name: str, factory: Callable[[], Any]) -> None:
    """Register a named extractor factory with the process-wide registry."""
    default_extractors.register(name, factory)


def clear_extractors() -> None:
    """Reset the process-wide extractor registry (for testing)."""
    default_extractors.clear()


__all__ = [
    "ContextExtractor",
    "NoOpExtractor",
    "NO_OP_EXTRACTOR",
    "FunctionExtractor",
    "ExtractorRegistry",
    "default_extractors",
    "register_extractor",
    "clear_extractors",
]
