"""Logging-context declarations and the metadata they resolve to.

Manifesto:
    Interception never reflects over a call while it runs. A
    ``CallMetadataProvider`` turns a pending call into ``CallMetadata``
    up front (type labels, method labels, parameter bindings with their
    values) and the engine only consumes that. A call that cannot be
    resolved yields ``None`` and runs untouched.

Declarations:
    - ``LoggingContext(*labels)`` on a type or function adds nested labels;
      on a parameter (through ``typing.Annotated``) it adds one mapped value
      keyed by its last label. No labels means the element's own name.
    - ``ExtractedContext(extractor, prefix="")`` on a parameter hands the
      argument to an extractor and adds what it returns, prefixed.

Examples:
    >>> from typing import Annotated
    >>> def refund(order: Annotated[str, LoggingContext("order")], amount: int): ...
    >>> metadata = DeclaredMetadataProvider().resolve(
    ...     PendingCall(refund, arguments={"order": "A-17", "amount": 5})
    ... )
    >>> [(p.name, p.labels) for p in metadata.parameters]
    [('order', ('order',))]

Tags:
    interception, metadata, annotations, logscope

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
import re
import threading
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from logscope.core.logging import get_logger

logger = get_logger(__name__)

DECLARATION_ATTRIBUTE = "__logging_context__"

_MARKER_NAMES = re.compile(r"\b(?:LoggingContext|ExtractedContext)\b")


# =============================================================================
# Declarations
# =============================================================================


class LoggingContext:
    """Declares nested labels on a type or function, or a mapped key on a parameter."""

    __slots__ = ("labels",)

    def __init__(self, *labels: str) -> None:
        self.labels: tuple[str, ...] = tuple(labels)

    def effective_labels(self, default: str) -> tuple[str, ...]:
        """Explicit labels, else the element's own name."""
        return self.labels or (default,)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoggingContext):
            return NotImplemented
        return self.labels == other.labels

    def __hash__(self) -> int:
        return hash(("LoggingContext", self.labels))

    def __repr__(self) -> str:
        return f"LoggingContext({', '.join(repr(label) for label in self.labels)})"


class ExtractedContext:
    """
    Declares that a parameter's value is turned into mapped context by an extractor.

    Args:
        extractor: Extractor descriptor: a class, a registered name, an
            extractor instance, or a plain callable.
        prefix: Prepended verbatim to every extracted key when not blank.
    """

    __slots__ = ("extractor", "prefix")

    def __init__(self, extractor: Any, prefix: str | None = "") -> None:
        self.extractor = extractor
        self.prefix = prefix or ""

    @property
    def effective_prefix(self) -> str:
        return self.prefix if self.prefix.strip() else ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExtractedContext):
            return NotImplemented
        return (self.extractor, self.prefix) == (other.extractor, other.prefix)

    def __hash__(self) -> int:
        try:
            return hash(("ExtractedContext", self.extractor, self.prefix))
        except TypeError:
            return hash(("ExtractedContext", self.prefix))

    def __repr__(self) -> str:
        return f"ExtractedContext({self.extractor!r}, prefix={self.prefix!r})"


# =============================================================================
# Resolved metadata
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParameterBinding:
    """
    One declared parameter of a call and the argument bound to it.

    Exactly one of ``labels`` and ``extracted`` is normally set; ``labels``
    wins when both are.
    """

    name: str
    value: Any = None
    labels: tuple[str, ...] | None = None
    extracted: ExtractedContext | None = None

    @property
    def key(self) -> str | None:
        """Mapped key for a labelled parameter: its last effective label."""
        return self.labels[-1] if self.labels else None


@dataclass(frozen=True, slots=True)
class CallMetadata:
    """Everything the engine needs to know about one intercepted call."""

    method_name: str
    type_name: str | None = None
    type_labels: tuple[str, ...] = ()
    method_labels: tuple[str, ...] = ()
    parameters: tuple[ParameterBinding, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "method": self.method_name,
            "type_labels": list(self.type_labels),
            "method_labels": list(self.method_labels),
            "parameters": [p.name for p in self.parameters],
        }


@dataclass(frozen=True, slots=True)
class PendingCall:
    """
    A call about to be made.

    Attributes:
        function: The undecorated function being called.
        target: The instance the function is called on, or the class for a
            class method. None for plain functions and static methods.
        arguments: Argument values by parameter name, or None when the
            arguments could not be bound to the signature.
    """

    function: Callable[..., Any] | None
    target: Any = None
    arguments: Mapping[str, Any] | None = field(default=None)


@runtime_checkable
class CallMetadataProvider(Protocol):
    """Resolves a pending call to metadata, or None when it cannot."""

    def resolve(self, call: Any) -> CallMetadata | None: ...


# =============================================================================
# Declared metadata
# =============================================================================


@dataclass(frozen=True, slots=True)
class _Declarations:
    method_name: str
    method: LoggingContext | None
    parameters: tuple[tuple[str, LoggingContext | None, ExtractedContext | None], ...]


def declaration_of(element: Any) -> LoggingContext | None:
    """Return the ``LoggingContext`` recorded on a type or function."""
    declared = getattr(element, DECLARATION_ATTRIBUTE, None)
    return declared if isinstance(declared, LoggingContext) else None


def declare(element: Any, declaration: LoggingContext) -> Any:
    """Record a ``LoggingContext`` on a type or function."""
    setattr(element, DECLARATION_ATTRIBUTE, declaration)
    return element


class DeclaredMetadataProvider:
    """
    Reads declarations recorded by the decorators and ``Annotated`` hints.

    The type declaration is looked up on the runtime type of the call's
    target, or on the target itself when it is a class (class methods), so
    subclasses inherit it; its default label is the runtime type's name. Per-function declarations are resolved once and cached.
    """

    def __init__(self) -> None:
        self._cache: dict[Callable[..., Any], _Declarations | None] = {}
        self._lock = threading.Lock()

    def resolve(self, call: Any) -> CallMetadata | None:
        if not isinstance(call, PendingCall):
            return None
        if call.function is None or call.arguments is None:
            return None

        declarations = self._declarations(call.function)
        if declarations is None:
            return None

        type_name: str | None = None
        type_labels: tuple[str, ...] = ()
        if call.target is not None:
            owner = call.target if isinstance(call.target, type) else type(call.target)
            type_name = owner.__name__
            declared = declaration_of(owner)
            if declared is not None:
                type_labels = declared.effective_labels(type_name)

        method_labels: tuple[str, ...] = ()
        if declarations.method is not None:
            method_labels = declarations.method.effective_labels(declarations.method_name)

        parameters = []
        for name, labelled, extracted in declarations.parameters:
            value = call.arguments.get(name)
            if labelled is not None:
                parameters.append(ParameterBinding(name, value, labels=labelled.effective_labels(name)))
            else:
                parameters.append(ParameterBinding(name, value, extracted=extracted))

        return CallMetadata(
            method_name=declarations.method_name,
            type_name=type_name,
            type_labels=type_labels,
            method_labels=method_labels,
            parameters=tuple(parameters),
        )

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _declarations(self, function: Callable[..., Any]) -> _Declarations | None:
        try:
            return self._cache[function]
        except KeyError:
            pass
        except TypeError:
            # Unhashable callables are resolved every time
            return _read_declarations(function)

        declarations = _read_declarations(function)
        with self._lock:
            self._cache[function] = declarations
        return declarations


def _read_declarations(function: Callable[..., Any]) -> _Declarations | None:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        logger.debug("call_metadata_unresolvable", function=repr(function))
        return None

    hints = _annotations(function, signature)
    parameters = []
    for name in signature.parameters:
        labelled, extracted = _parameter_markers(hints.get(name))
        if labelled is not None or extracted is not None:
            parameters.append((name, labelled, extracted))

    return _Declarations(
        method_name=getattr(function, "__name__", type(function).__name__),
        method=declaration_of(function),
        parameters=tuple(parameters),
    )


def _annotations(function: Callable[..., Any], signature: inspect.Signature) -> dict[str, Any]:
    try:
        return typing.get_type_hints(function, include_extras=True)
    except (NameError, TypeError, AttributeError):
        pass

    # One unresolvable forward reference only loses that parameter's hint
    globalns = getattr(inspect.unwrap(function), "__globals__", {})
    hints: dict[str, Any] = {}
    for name, parameter in signature.parameters.items():
        annotation = parameter.annotation
        if annotation is inspect.Parameter.empty:
            continue
        if not isinstance(annotation, str):
            hints[name] = annotation
            continue
        try:
            hints[name] = _evaluate_hint(annotation, globalns)
        except (NameError, TypeError, AttributeError, SyntaxError) as e:
            log = logger.warning if _MARKER_NAMES.search(annotation) else logger.debug
            log(
                "parameter_hint_unresolved",
                function=getattr(function, "__qualname__", repr(function)),
                parameter=name,
                annotation=annotation,
                error_type=type(e).__name__,
                error_message=str(e),
            )
    return hints


def _evaluate_hint(annotation: str, globalns: dict[str, Any]) -> Any:
    def holder() -> None: ...

    holder.__annotations__ = {"hint": annotation}
    return typing.get_type_hints(holder, globalns=globalns, include_extras=True)["hint"]


def _parameter_markers(hint: Any) -> tuple[LoggingContext | None, ExtractedContext | None]:
    labelled: LoggingContext | None = None
    extracted: ExtractedContext | None = None
    for marker in getattr(hint, "__metadata__", ()):
        if marker is LoggingContext:
            marker = LoggingContext()
        if isinstance(marker, LoggingContext) and labelled is None:
            labelled = marker
        elif isinstance(marker, ExtractedContext) and extracted is None:
            extracted = marker
    return labelled, extracted


__all__ = [
    "LoggingContext",
    "ExtractedContext",
    "ParameterBinding",
    "CallMetadata",
    "PendingCall",
    "CallMetadataProvider",
    "DeclaredMetadataProvider",
    "declaration_of",
    "declare",
]
