"""Provider registry for locating the active context builder.

Manifesto:
    A single explicit registry decides which backing store receives
    logging context. Providers register before first use; the first
    registered provider wins and the registry is read-only afterwards.
    When nothing is registered, builders degrade to no-ops instead of
    failing.

Providers are either objects with a ``context_builder()`` method or plain
zero-argument factories returning a ``ContextBuilder``. They come from, in
order:

1. explicit ``register()`` calls,
2. the ``logscope.providers`` entry-point group (``LOGSCOPE_DISCOVER_PROVIDERS``),
3. the built-in backend named by ``LOGSCOPE_BACKEND``.

Tags:
    registry, provider-lookup, service-discovery, logscope

Doc-Types:
    api-reference
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Callable, Iterable
from importlib.metadata import entry_points
from typing import Any, Protocol, Union, runtime_checkable

from logscope.core.enums import BackendName
from logscope.core.errors import ConfigError, RegistryFrozenError
from logscope.core.logging import get_logger
from logscope.core.settings import get_settings
from logscope.context.builder import ContextBuilder, NoOpContextBuilder

logger = get_logger(__name__)

BUILTIN_PROVIDERS: dict[BackendName, str] = {
    BackendName.LOCAL: "logscope.backends.local:LocalContextProvider",
    BackendName.STRUCTLOG: "logscope.backends.structlog:StructlogContextProvider",
}


@runtime_checkable
class ContextBuilderProvider(Protocol):
    """Supplies a fresh builder for one logging-context scope."""

    def context_builder(self) -> ContextBuilder: ...


Provider = Union[ContextBuilderProvider, Callable[[], ContextBuilder]]


class ProviderRegistry:
    """
    Ordered collection of builder providers with a register-then-read lifecycle.

    Args:
        providers: Providers registered up front, in priority order.
        autoload: Load entry-point and built-in providers on first use.
            Pass ``False`` to get exactly the given providers.
    """

    def __init__(self, providers: Iterable[Any] = (), *, autoload: bool = True) -> None:
        self._providers: list[Provider] = [_normalize(p) for p in providers]
        self._autoload = autoload
        self._loaded = not autoload
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, provider: Any) -> Any:
        """Register a provider; usable as a class decorator.

        Raises:
            RegistryFrozenError: If a builder has already been handed out.
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(provider)
            self._providers.append(_normalize(provider))
        logger.debug("context_provider_registered", provider=_describe(provider))
        return provider

    def providers(self) -> list[Provider]:
        """Return the providers in priority order, loading them if needed."""
        self._ensure_loaded()
        return list(self._providers)

    def builder(self) -> ContextBuilder:
        """
        Return a new builder from the first provider.

        Never raises: with no providers, or a provider that fails, a
        ``NoOpContextBuilder`` is returned.
        """
        self._ensure_loaded()
        self._frozen = True

        if not self._providers:
            return NoOpContextBuilder()

        provider = self._providers[0]
        try:
            if isinstance(provider, ContextBuilderProvider):
                return provider.context_builder()
            return provider()
        except Exception as e:
            logger.warning(
                "context_provider_failed",
                provider=_describe(provider),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return NoOpContextBuilder()

    def reset(self) -> None:
        """Drop all providers and reopen the registry (for testing)."""
        with self._lock:
            self._providers.clear()
            self._loaded = not self._autoload
            self._frozen = False

    def _ensure_loaded(self) -> None:
        """Load discovered and built-in providers once (lazy initialization)."""
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            try:
                settings = get_settings()
            except ConfigError as e:
                logger.warning("context_registry_config_invalid", **e.to_dict())
                self._loaded = True
                return
            if settings.discover_providers:
                self._providers.extend(_discover(settings.provider_group))
            builtin = BUILTIN_PROVIDERS.get(settings.backend)
            if builtin is not None:
                self._providers.append(_normalize(_load_object(builtin)))
            self._loaded = True
        logger.debug("context_registry_loaded", registered=len(self._providers))


def _discover(group: str) -> list[Provider]:
    """Load providers published under an entry-point group."""
    found: list[Provider] = []
    for entry_point in entry_points(group=group):
        try:
            found.append(_normalize(entry_point.load()))
        except Exception as e:
            logger.warning(
                "context_provider_discovery_failed",
                entry_point=entry_point.name,
                error_type=type(e).__name__,
                error_message=str(e),
            )
    return found


def _load_object(path: str) -> Any:
    module_name, _, attr = path.partition(":")
    return getattr(importlib.import_module(module_name), attr)


def _normalize(provider: Any) -> Provider:
    # Provider classes are instantiated; builder classes stay factories
    if isinstance(provider, type) and hasattr(provider, "context_builder"):
        return provider()
    if not callable(provider) and not isinstance(provider, ContextBuilderProvider):
        raise TypeError(f"Not a context builder provider: {provider!r}")
    return provider


def _describe(provider: Any) -> str:
    return getattr(provider, "__qualname__", None) or type(provider).__qualname__


# =============================================================================
# Process-wide registry
# =============================================================================

default_registry = ProviderRegistry()


def register_provider(provider: Any) -> Any:
    """Register a provider with the process-wide registry."""
    return default_registry.register(provider)


def get_builder() -> ContextBuilder:
    """Get a builder from the process-wide registry."""
    return default_registry.builder()


def nested_context(*labels: str | None) -> ContextBuilder:
    """Create a builder that will push the given nested labels."""
    return get_builder().add_nested(*labels)


def mapped_context(key: str | None, value: str | None) -> ContextBuilder:
    """Create a builder that will set the given mapped value."""
    return get_builder().add_mapped(key, value)


def clear_registry() -> None:
    """Reset the process-wide registry (for testing)."""
    default_registry.reset()


__all__ = [
    "ContextBuilderProvider",
    "ProviderRegistry",
    "default_registry",
    "register_provider",
    "get_builder",
    "nested_context",
    "mapped_context",
    "clear_registry",
]
