"""
Shared pytest fixtures and configuration for logscope tests.

This module provides:
- Registry, settings and context cleanup fixtures for test isolation
- A recording ``ContextStore`` that logs every primitive call in order
- Registries wired to that store

Usage:
    def test_something(recording_store, recording_registry):
        engine = InterceptionEngine(registry=recording_registry)
        ...
        assert recording_store.calls == [("push", "C1N"), ...]
"""

import sys
from pathlib import Path

import pytest
import structlog
from structlog.contextvars import merge_contextvars
from structlog.testing import LogCapture

# Ensure logscope package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fixtures.stores import RecordingStore
from logscope.backends.local import add_scope_context, local_store
from logscope.context.builder import StoreContextBuilder
from logscope.context.registry import ProviderRegistry, clear_registry
from logscope.core.settings import reset_settings
from logscope.interception.engine import set_default_engine
from logscope.interception.extractors import clear_extractors


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_logscope_state(monkeypatch: pytest.MonkeyPatch):
    """
    Reset every process-wide piece of logscope state around each test.

    Entry-point discovery is switched off so installed plugins never leak
    into tests.
    """
    monkeypatch.setenv("LOGSCOPE_DISCOVER_PROVIDERS", "false")
    reset_settings()
    clear_registry()
    clear_extractors()
    set_default_engine(None)
    local_store.clear()
    structlog.contextvars.clear_contextvars()
    yield
    reset_settings()
    clear_registry()
    clear_extractors()
    set_default_engine(None)
    local_store.clear()
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# =============================================================================
# Recording Store
# =============================================================================


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def recording_registry(recording_store: RecordingStore) -> ProviderRegistry:
    """Registry whose only provider builds over ``recording_store``."""
    return ProviderRegistry([lambda: StoreContextBuilder(recording_store)], autoload=False)


# =============================================================================
# Log Capture
# =============================================================================


@pytest.fixture
def log_output() -> LogCapture:
    """Capture structlog events as rendered by both context processors."""
    capture = LogCapture()
    structlog.configure(processors=[merge_contextvars, add_scope_context, capture])
    return capture
