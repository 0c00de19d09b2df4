"""
Reversible record of one logging-context commit.

A ``ContextUnit`` is what a builder's ``build()`` returns after it has
pushed nested labels and set mapped values into a backing store. It holds
one reversal action per mutation and undoes them as a group.

Manifesto:
    - **All-or-nothing intent:** Reversal attempts every recorded action,
      even after one of them fails
    - **Mirror image:** Actions unwind last-added-first, so nested labels
      pop in the reverse order they were pushed
    - **Caller picks the noise level:** Failures are swallowed or the last
      one is re-raised, per ``ReversalPolicy``
    - **Single owner:** One logical owner reverses a unit once; a second
      reversal is a logged no-op

Architecture:
    ::

        build()                               reverse()
        ───────                               ─────────
        push("OrdersService")  ─┐        ┌─▶  remove("order")
        push("issue_refund")    │ record │    pop()  == "issue_refund"
        set("order", "A-17")   ─┘        └─   pop()  == "OrdersService"

Examples:
    Context-manager form:

    >>> from logscope import nested_context
    >>> with nested_context("batch").add_mapped("run", "7").build():
    ...     pass

    Wrapping an arbitrary close callable:

    >>> closed = []
    >>> ContextUnit.wrap(lambda: closed.append(True)).reverse()
    >>> closed
    [True]

Guardrails:
    ❌ DON'T: Forget to reverse a unit; its labels stay in the store
    ✅ DO: Use ``with`` or ``try/finally``

    ❌ DON'T: Share a unit across threads or tasks
    ✅ DO: Reverse it on the execution unit that built it

Tags:
    context-unit, reversal, ndc, mdc, logscope

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from types import TracebackType
from typing import Any

from logscope.core.enums import ReversalPolicy
from logscope.core.logging import get_logger

logger = get_logger(__name__)

ReversalAction = Callable[[], Any]


class ContextUnit:
    """
    A committed set of logging-context mutations that can be undone.

    Args:
        actions: Reversal actions in the order their mutations were applied.
            ``None`` entries are skipped.
        policy: Failure policy used when ``reverse()`` is called without one.
    """

    __slots__ = ("_actions", "_policy", "_reversed")

    def __init__(
        self,
        actions: Iterable[ReversalAction | None] = (),
        policy: ReversalPolicy = ReversalPolicy.SWALLOW,
    ) -> None:
        self._actions: tuple[ReversalAction | None, ...] = tuple(actions)
        self._policy = ReversalPolicy(policy)
        self._reversed = False

    @classmethod
    def wrap(cls, close: Callable[[], Any]) -> ContextUnit:
        """Treat any zero-argument close callable as a context unit.

        Failures raised by ``close`` are swallowed on reversal.
        """
        if close is None:
            raise TypeError("close must not be None")
        return cls([close], policy=ReversalPolicy.SWALLOW)

    @property
    def policy(self) -> ReversalPolicy:
        return self._policy

    @property
    def reversed(self) -> bool:
        """True once ``reverse()`` has run."""
        return self._reversed

    def __len__(self) -> int:
        return sum(1 for action in self._actions if action is not None)

    def reverse(self, policy: ReversalPolicy | None = None) -> None:
        """
        Run every reversal action, last-added first.

        Args:
            policy: Overrides the unit's own policy for this call.

        Raises:
            Exception: Under ``SURFACE_LAST``, the last failure raised by an
                action, after all actions have been attempted.
        """
        if self._reversed:
            logger.debug("context_unit_already_reversed", actions=len(self))
            return
        self._reversed = True

        effective = ReversalPolicy(policy) if policy is not None else self._policy
        last_failure: Exception | None = None

        for action in reversed(self._actions):
            if action is None:
                continue
            try:
                action()
            except Exception as e:
                last_failure = e
                logger.warning(
                    "context_reversal_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    policy=effective.value,
                )

        if last_failure is not None and effective is ReversalPolicy.SURFACE_LAST:
            raise last_failure

    def close(self) -> None:
        """Alias for ``reverse()`` with the unit's own policy."""
        self.reverse()

    def __enter__(self) -> ContextUnit:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        # An in-flight failure always wins over reversal failures
        if exc_type is not None:
            self.reverse(policy=ReversalPolicy.SWALLOW)
        else:
            self.reverse()

    def __repr__(self) -> str:
        return f"ContextUnit(actions={len(self)}, policy={self._policy.value}, reversed={self._reversed})"


# Shared by the no-op builder: reversing it does nothing, repeatedly
class _NoOpContextUnit(ContextUnit):
    __slots__ = ()

    def reverse(self, policy: ReversalPolicy | None = None) -> None:
        return None

    def __repr__(self) -> str:
        return "ContextUnit(no-op)"


NO_OP_UNIT: ContextUnit = _NoOpContextUnit()


__all__ = ["ContextUnit", "ReversalAction", "NO_OP_UNIT"]
