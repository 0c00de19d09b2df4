"""
Result envelope for capturing the outcome of a scoped call.

Provides a typed Result[T] pattern: Ok[T] for a value the call returned,
Err[T] for the exception it raised. The interception engine uses it to run
a call, capture its outcome, always reverse the logging context, and only
then re-surface the outcome. The thin adapter back to native exceptions is
``unwrap()``, which re-raises the captured exception object unchanged.

Manifesto:
    - **Explicit over Implicit:** "Did the call fail?" is a value, not a
      stack unwinding in progress
    - **Lossless:** Err keeps the original exception object, traceback
      included, so re-raising is indistinguishable from never catching

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     Result[T]                                │
        │                    (Type Alias)                              │
        ├─────────────────┬─────────────────┬─────────────────────────┤
        │     Ok[T]       │     Err[T]      │     Utilities           │
        │   (Success)     │   (Failure)     │                         │
        ├─────────────────┼─────────────────┼─────────────────────────┤
        │ • value: T      │ • error: Exc    │ • try_result()          │
        │ • unwrap()      │ • unwrap()      │                         │
        │   returns value │   re-raises     │                         │
        └─────────────────┴─────────────────┴─────────────────────────┘

Examples:
    >>> from logscope.core.result import Ok, Err, try_result
    >>> try_result(lambda: 1 + 1)
    Ok(2)
    >>> outcome = try_result(lambda: 1 / 0)
    >>> outcome.is_err()
    True
    >>> outcome.error
    ZeroDivisionError('division by zero')

Guardrails:
    ❌ DON'T: Use unwrap() without checking is_ok() first
    ✅ DO: Use unwrap() only at the boundary where re-raising is intended

    ❌ DON'T: Catch BaseException into Err
    ✅ DO: Let KeyboardInterrupt and friends unwind through finally blocks

Tags:
    result-pattern, error-handling, exception-bridge, logscope

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Successful result containing a value.

    Examples:
        >>> Ok(42).unwrap()
        42
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """
    Failed result containing an error.

    Examples:
        >>> err = Err(ValueError("something went wrong"))
        >>> err.is_err()
        True
        >>> err.error
        ValueError('something went wrong')
    """

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Type alias for Result
Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Execute a zero-argument function and wrap its outcome in a Result.

    Returns Ok with the return value, or Err with the raised exception.
    Only ``Exception`` subclasses are captured.

    Examples:
        >>> import json
        >>> try_result(lambda: json.loads('{"a": 1}')).unwrap()
        {'a': 1}
        >>> try_result(lambda: json.loads('invalid')).is_err()
        True
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


__all__ = ["Ok", "Err", "Result", "try_result"]
