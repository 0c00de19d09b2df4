"""
Context builders: accumulate nested labels and mapped values, then commit.

A builder collects what should be added to the diagnostic context and, on
``build()``, applies it to a backing store and returns the ``ContextUnit``
that undoes it.

Accumulation rules (shared by every builder):

- ``add_nested(*labels)`` appends every non-None label in call order;
  duplicates are kept, an empty or all-None batch is a no-op.
- ``add_mapped(key, value)`` ignores None keys and keys that are blank
  after stripping; otherwise it sets the value, keeping the position of a
  key that is already pending.
- ``add_mapping(mapping)`` applies ``add_mapped`` entry by entry.

``build()`` may be called more than once. Each call applies the pending
state again and returns an independent unit, so nested labels are pushed
twice if the first unit has not been reversed. Each unit reverses only
its own mutations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from logscope.core.enums import ReversalPolicy
from logscope.core.errors import NestedContextMismatchError
from logscope.core.logging import get_logger
from logscope.context.unit import NO_OP_UNIT, ContextUnit, ReversalAction

logger = get_logger(__name__)


@runtime_checkable
class ContextStore(Protocol):
    """
    Primitive operations of a diagnostic-context backing store.

    Nested operations behave like a stack; mapped operations like a dict.
    Implementations are expected to be scoped per thread or asyncio task.
    """

    def push_label(self, label: str) -> None: ...

    def pop_label(self) -> str | None: ...

    def set_value(self, key: str, value: str | None) -> None: ...

    def remove_key(self, key: str) -> None: ...


class ContextBuilder(ABC):
    """Base builder holding the pending nested labels and mapped values."""

    def __init__(self) -> None:
        self._nested: list[str] = []
        self._mapped: dict[str, str | None] = {}

    @property
    def nested(self) -> tuple[str, ...]:
        """Pending nested labels, in push order."""
        return tuple(self._nested)

    @property
    def mapped(self) -> Mapping[str, str | None]:
        """Read-only view of the pending mapped values, in insertion order."""
        return MappingProxyType(self._mapped)

    def add_nested(self, *labels: str | None) -> ContextBuilder:
        """Add nested labels; None labels are skipped."""
        self._nested.extend(label for label in labels if label is not None)
        return self

    def add_mapped(self, key: str | None, value: str | None) -> ContextBuilder:
        """Add one mapped value; None or blank keys are ignored."""
        if key is not None and key.strip():
            self._mapped[key] = value
        return self

    def add_mapping(self, mapping: Mapping[str, str | None] | None) -> ContextBuilder:
        """Add every entry of ``mapping`` in its iteration order."""
        if mapping is not None:
            for key, value in mapping.items():
                self.add_mapped(key, value)
        return self

    @abstractmethod
    def build(self) -> ContextUnit:
        """Apply the pending context to the backing store and return its undo unit."""


class StoreContextBuilder(ContextBuilder):
    """
    Builder that applies each pending entry through a ``ContextStore``.

    Every push gets a pop action that verifies the popped label, every set
    gets a remove-by-key action. Removal does not restore a value the key
    held before this unit set it.
    """

    def __init__(
        self,
        store: ContextStore,
        policy: ReversalPolicy = ReversalPolicy.SWALLOW,
    ) -> None:
        super().__init__()
        self._store = store
        self._policy = ReversalPolicy(policy)

    @property
    def store(self) -> ContextStore:
        return self._store

    def build(self) -> ContextUnit:
        actions: list[ReversalAction] = []

        try:
            for label in self._nested:
                self._store.push_label(label)
                actions.append(_PopLabel(self._store, label))

            for key, value in self._mapped.items():
                self._store.set_value(key, value)
                actions.append(_RemoveKey(self._store, key))
        except BaseException:
            # Undo the partial commit before the failure propagates
            ContextUnit(actions).reverse(ReversalPolicy.SWALLOW)
            raise

        logger.debug(
            "context_unit_committed",
            nested=len(self._nested),
            mapped=len(self._mapped),
        )
        return ContextUnit(actions, policy=self._policy)


class _PopLabel:
    __slots__ = ("store", "label")

    def __init__(self, store: ContextStore, label: str) -> None:
        self.store = store
        self.label = label

    def __call__(self) -> None:
        popped = self.store.pop_label()
        if popped != self.label:
            raise NestedContextMismatchError(self.label, popped)

    def __repr__(self) -> str:
        return f"pop({self.label!r})"


class _RemoveKey:
    __slots__ = ("store", "key")

    def __init__(self, store: ContextStore, key: str) -> None:
        self.store = store
        self.key = key

    def __call__(self) -> None:
        self.store.remove_key(self.key)

    def __repr__(self) -> str:
        return f"remove({self.key!r})"


class NoOpContextBuilder(ContextBuilder):
    """
    Builder used when no provider is registered.

    Accepts everything, keeps nothing, and builds a unit whose reversal
    does nothing.
    """

    def add_nested(self, *labels: str | None) -> ContextBuilder:
        return self

    def add_mapped(self, key: str | None, value: str | None) -> ContextBuilder:
        return self

    def add_mapping(self, mapping: Mapping[str, str | None] | None) -> ContextBuilder:
        return self

    def build(self) -> ContextUnit:
        return NO_OP_UNIT


__all__ = [
    "ContextStore",
    "ContextBuilder",
    "StoreContextBuilder",
    "NoOpContextBuilder",
]
