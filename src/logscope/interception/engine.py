"""Interception engine: wraps one call in its declared logging context.

Manifesto:
    The engine is the only place where the three contributions meet.
    For every eligible call it acquires a builder, adds the type labels,
    then the method labels, then parameter context in declaration order,
    commits, runs the call and reverses the committed unit on every exit
    path. The caller sees exactly what the call returned or raised.

Architecture:
    ::

        invoke(call, invoker)
            │
            ├── resolve(call) ── None ──────────────▶ invoker()   (no context)
            │
            ├── prepare(metadata)
            │     registry.builder()
            │     add_nested(*type_labels)
            │     add_nested(*method_labels)
            │     add_mapped(key, str(value)) / add_mapping(extracted)
            │
            ├── build()                               ◀── commit
            ├── try_result(invoker)                   ◀── Ok / Err
            ├── unit.reverse()                        ◀── always, once
            └── outcome.unwrap()                      ◀── value or original error

Examples:
    >>> from logscope.context.registry import ProviderRegistry
    >>> from logscope.interception.metadata import CallMetadata
    >>> engine = InterceptionEngine(registry=ProviderRegistry(autoload=False))
    >>> engine.invoke(CallMetadata("refund", method_labels=("refund",)), lambda: 42)
    42

Guardrails:
    ❌ DON'T: Let a reversal failure replace the call's own exception
    ✅ DO: Reverse with the swallow policy whenever the call failed

Tags:
    interception, engine, ndc, mdc, logscope

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from logscope.context.builder import ContextBuilder
from logscope.context.registry import ProviderRegistry, default_registry
from logscope.context.unit import ContextUnit
from logscope.core.enums import ReversalPolicy
from logscope.core.errors import ExtractorError
from logscope.core.logging import get_logger
from logscope.core.result import Err, Ok, Result, try_result
from logscope.interception.extractors import ExtractorRegistry, default_extractors
from logscope.interception.metadata import (
    CallMetadata,
    CallMetadataProvider,
    DeclaredMetadataProvider,
    ParameterBinding,
)

logger = get_logger(__name__)

T = TypeVar("T")


class InterceptionEngine:
    """
    Runs calls inside the logging context their metadata declares.

    Args:
        registry: Provider registry builders come from. Defaults to the
            process-wide registry.
        metadata: Resolves pending calls to ``CallMetadata``.
        extractors: Resolves extractor descriptors.
        policy: Reversal policy after a successful call. ``None`` uses
            the policy of the unit the builder returned.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        metadata: CallMetadataProvider | None = None,
        extractors: ExtractorRegistry | None = None,
        policy: ReversalPolicy | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.metadata = metadata if metadata is not None else DeclaredMetadataProvider()
        self.extractors = extractors if extractors is not None else default_extractors
        self.policy = ReversalPolicy(policy) if policy is not None else None

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def invoke(self, call: Any, invoker: Callable[[], T]) -> T:
        """Run ``invoker`` inside the context declared for ``call``."""
        metadata = self.resolve(call)
        if metadata is None:
            return invoker()

        unit = self.prepare(metadata).build()
        try:
            logger.debug("context_scope_entered", **metadata.to_dict())
            outcome = try_result(invoker)
        except BaseException:
            unit.reverse(ReversalPolicy.SWALLOW)
            raise

        self._exit(unit, outcome, metadata)
        return outcome.unwrap()

    async def ainvoke(self, call: Any, invoker: Callable[[], Awaitable[T]]) -> T:
        """Async version of ``invoke``; commit and reversal run in the awaiting task."""
        metadata = self.resolve(call)
        if metadata is None:
            return await invoker()

        unit = self.prepare(metadata).build()
        outcome: Result[T]
        try:
            logger.debug("context_scope_entered", **metadata.to_dict())
            outcome = Ok(await invoker())
        except Exception as e:
            outcome = Err(e)
        except BaseException:
            unit.reverse(ReversalPolicy.SWALLOW)
            raise

        self._exit(unit, outcome, metadata)
        return outcome.unwrap()

    def run(self, call: Any, invoker: Callable[[], T]) -> Result[T]:
        """Like ``invoke`` but returns the outcome as ``Ok``/``Err``."""
        return try_result(lambda: self.invoke(call, invoker))

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def resolve(self, call: Any) -> CallMetadata | None:
        """Resolve ``call`` to metadata; None means it runs without context."""
        if isinstance(call, CallMetadata):
            return call
        try:
            return self.metadata.resolve(call)
        except Exception as e:
            logger.warning(
                "call_metadata_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return None

    def prepare(self, metadata: CallMetadata) -> ContextBuilder:
        """Acquire a builder and add every contribution, without committing."""
        builder = self.registry.builder()

        if metadata.type_labels:
            builder.add_nested(*metadata.type_labels)
        if metadata.method_labels:
            builder.add_nested(*metadata.method_labels)

        for parameter in metadata.parameters:
            if parameter.labels:
                builder.add_mapped(parameter.key, str(parameter.value))
            elif parameter.extracted is not None:
                extracted = self.extract(metadata, parameter)
                if extracted:
                    builder.add_mapping(extracted)

        return builder

    def extract(self, metadata: CallMetadata, parameter: ParameterBinding) -> Mapping[str, str]:
        """Run a parameter's extractor and apply its prefix. Never raises."""
        declared = parameter.extracted
        if declared is None:
            return {}

        extractor = self.extractors.resolve(declared.extractor)
        try:
            extracted = extractor.extract(parameter.value) or {}
        except Exception as e:
            error = ExtractorError(f"{extractor!r} failed to extract context", cause=e).with_context(
                type_name=metadata.type_name,
                method=metadata.method_name,
                parameter=parameter.name,
            )
            logger.warning("context_extraction_failed", **error.to_dict())
            return {}

        prefix = declared.effective_prefix
        if not prefix:
            return dict(extracted)
        return {f"{prefix}{key}": value for key, value in extracted.items()}

    def _exit(self, unit: ContextUnit, outcome: Result[Any], metadata: CallMetadata) -> None:
        # A call failure is what propagates; reversal failures are only logged
        if outcome.is_err():
            unit.reverse(ReversalPolicy.SWALLOW)
        else:
            unit.reverse(self.policy)
        logger.debug(
            "context_scope_exited",
            method=metadata.method_name,
            outcome="error" if outcome.is_err() else "ok",
        )


# =============================================================================
# Process-wide engine
# =============================================================================

_default_engine: InterceptionEngine | None = None


def get_default_engine() -> InterceptionEngine:
    """Get the engine used by decorators without an explicit ``engine=``."""
    global _default_engine
    if _default_engine is None:
        _default_engine = InterceptionEngine()
    return _default_engine


def set_default_engine(engine: InterceptionEngine | None) -> None:
    """Replace the process-wide engine; ``None`` recreates it on next use."""
    global _default_engine
    _default_engine = engine


__all__ = [
    "InterceptionEngine",
    "get_default_engine",
    "set_default_engine",
]
