"""
Diagnostic context stored in structlog's context-local context.

Mapped values become ordinary ``structlog.contextvars`` keys and nested
labels are kept as a tuple under the nested key (``ndc`` by default), so
``structlog.contextvars.merge_contextvars`` renders both without any
extra processor.

Unlike the local store, the builder here restores what was there before:
every mutation is made with ``bind_contextvars`` and undone by resetting
the returned tokens. A mapped key that already held a value gets that
value back when the unit is reversed.

Usage:
    LOGSCOPE_BACKEND=structlog

    structlog.configure(processors=[
        structlog.contextvars.merge_contextvars,
        ...
    ])
"""

from collections.abc import Mapping

import structlog

from logscope.context.builder import ContextBuilder
from logscope.context.unit import ContextUnit, ReversalAction
from logscope.core.enums import ReversalPolicy
from logscope.core.logging import get_logger
from logscope.core.settings import get_settings

logger = get_logger(__name__)


class StructlogContextStore:
    """``ContextStore`` over ``structlog.contextvars``."""

    def __init__(self, nested_key: str | None = None) -> None:
        self.nested_key = nested_key or get_settings().nested_key

    def push_label(self, label: str) -> None:
        structlog.contextvars.bind_contextvars(**{self.nested_key: self.nested() + (label,)})

    def pop_label(self) -> str | None:
        stack = self.nested()
        if not stack:
            return None
        if len(stack) == 1:
            structlog.contextvars.unbind_contextvars(self.nested_key)
        else:
            structlog.contextvars.bind_contextvars(**{self.nested_key: stack[:-1]})
        return stack[-1]

    def set_value(self, key: str, value: str | None) -> None:
        structlog.contextvars.bind_contextvars(**{key: value})

    def remove_key(self, key: str) -> None:
        structlog.contextvars.unbind_contextvars(key)

    def nested(self) -> tuple[str, ...]:
        return tuple(structlog.contextvars.get_contextvars().get(self.nested_key, ()))

    def mapped(self) -> dict[str, object]:
        """Copy of the bound context without the nested labels."""
        bound = structlog.contextvars.get_contextvars()
        bound.pop(self.nested_key, None)
        return bound


class _ResetTokens:
    __slots__ = ("tokens",)

    def __init__(self, tokens: Mapping[str, object]) -> None:
        self.tokens = dict(tokens)

    def __call__(self) -> None:
        structlog.contextvars.reset_contextvars(**self.tokens)

    def __repr__(self) -> str:
        return f"reset({', '.join(self.tokens)})"


class StructlogContextBuilder(ContextBuilder):
    """Builder that binds into structlog's context and restores it on reversal."""

    def __init__(
        self,
        store: StructlogContextStore | None = None,
        policy: ReversalPolicy = ReversalPolicy.SWALLOW,
    ) -> None:
        super().__init__()
        self._store = store or StructlogContextStore()
        self._policy = ReversalPolicy(policy)

    @property
    def store(self) -> StructlogContextStore:
        return self._store

    def build(self) -> ContextUnit:
        actions: list[ReversalAction] = []
        key = self._store.nested_key

        try:
            for label in self._nested:
                tokens = structlog.contextvars.bind_contextvars(**{key: self._store.nested() + (label,)})
                actions.append(_ResetTokens(tokens))

            for name, value in self._mapped.items():
                tokens = structlog.contextvars.bind_contextvars(**{name: value})
                actions.append(_ResetTokens(tokens))
        except BaseException:
            ContextUnit(actions).reverse(ReversalPolicy.SWALLOW)
            raise

        logger.debug(
            "context_unit_committed",
            nested=len(self._nested),
            mapped=len(self._mapped),
            backend="structlog",
        )
        return ContextUnit(actions, policy=self._policy)


class StructlogContextProvider:
    """Provider handing out ``StructlogContextBuilder`` instances."""

    def context_builder(self) -> StructlogContextBuilder:
        settings = get_settings()
        return StructlogContextBuilder(
            StructlogContextStore(settings.nested_key),
            policy=settings.reversal_policy,
        )


__all__ = [
    "StructlogContextStore",
    "StructlogContextBuilder",
    "StructlogContextProvider",
]
