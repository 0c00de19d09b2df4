"""
Decorators declaring and applying logging context.

Usage:
    @logging_context("Orders")
    class OrdersService:

        @logging_context
        def issue_refund(
            self,
            order: Annotated[str, LoggingContext("order")],
            customer: Annotated[Customer, ExtractedContext(CustomerExtractor, prefix="customer.")],
        ) -> None:
            log.info("refund_issued")   # ndc=["Orders", "issue_refund"], order=..., customer.id=...

        def list_orders(self, region: Annotated[str, LoggingContext]) -> list[Order]:
            ...                          # ndc=["Orders"], region=...

    @with_logging_context
    def handle(request_id: Annotated[str, LoggingContext("request")]) -> None:
        ...                              # request=...

On a class, ``logging_context`` records the type declaration and
intercepts every public function defined in the class body. Static and
class methods are only intercepted when decorated themselves: a static
method gets no type labels, a class method gets those of the class it is
called on.
"""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar, overload

from logscope.interception.engine import InterceptionEngine, get_default_engine
from logscope.interception.metadata import LoggingContext, PendingCall, declare

F = TypeVar("F", bound=Callable[..., Any])

INTERCEPTED_ATTRIBUTE = "__logscope_intercepted__"


@overload
def logging_context(target: F, /) -> F: ...


@overload
def logging_context(*labels: str, engine: InterceptionEngine | None = None) -> Callable[[F], F]: ...


def logging_context(*labels: Any, engine: InterceptionEngine | None = None) -> Any:
    """
    Declare nested labels on a class or function and intercept it.

    Without labels the class or function name is used. Usable bare
    (``@logging_context``) or called (``@logging_context("a", "b")``).
    """
    if len(labels) == 1 and (callable(labels[0]) or isinstance(labels[0], (staticmethod, classmethod))):
        return _declare(labels[0], LoggingContext(), engine)

    declaration = LoggingContext(*labels)

    def decorator(target: F) -> F:
        return _declare(target, declaration, engine)

    return decorator


@overload
def with_logging_context(function: F, /) -> F: ...


@overload
def with_logging_context(*, engine: InterceptionEngine | None = None) -> Callable[[F], F]: ...


def with_logging_context(function: Any = None, *, engine: InterceptionEngine | None = None) -> Any:
    """Intercept a function for its parameter declarations, without method labels."""
    if function is not None:
        return intercept(function, engine)

    def decorator(target: F) -> F:
        return intercept(target, engine)

    return decorator


def _declare(target: Any, declaration: LoggingContext, engine: InterceptionEngine | None) -> Any:
    if inspect.isclass(target):
        declare(target, declaration)
        for name, member in list(vars(target).items()):
            if name.startswith("_") or not inspect.isfunction(member):
                continue
            if getattr(member, INTERCEPTED_ATTRIBUTE, False):
                continue
            setattr(target, name, intercept(member, engine))
        return target

    function = target.__func__ if isinstance(target, (staticmethod, classmethod)) else target
    declare(function, declaration)
    if getattr(function, INTERCEPTED_ATTRIBUTE, False):
        # Stacked on an intercepting decorator: declare on the wrapped function too
        declare(function.__wrapped__, declaration)
    return intercept(target, engine)


def intercept(function: F, engine: InterceptionEngine | None = None) -> F:
    """
    Wrap ``function`` so every call goes through an ``InterceptionEngine``.

    ``staticmethod`` objects are intercepted without a target and
    ``classmethod`` objects with the class they are called on.
    """
    if isinstance(function, staticmethod):
        return staticmethod(_intercept(function.__func__, engine, _no_target))  # type: ignore[return-value]
    if isinstance(function, classmethod):
        return classmethod(_intercept(function.__func__, engine, _first_argument))  # type: ignore[return-value]
    return _intercept(function, engine, _owner_target(function))


def _intercept(
    function: F,
    engine: InterceptionEngine | None,
    target_of: Callable[[tuple[Any, ...]], Any],
) -> F:
    if getattr(function, INTERCEPTED_ATTRIBUTE, False):
        return function

    signature = _signature(function)

    def pending(args: tuple[Any, ...], kwargs: dict[str, Any]) -> PendingCall:
        arguments = None
        if signature is not None:
            try:
                bound = signature.bind(*args, **kwargs)
            except TypeError:
                # Let the call itself raise the argument error
                pass
            else:
                bound.apply_defaults()
                arguments = bound.arguments
        return PendingCall(function, target=target_of(args), arguments=arguments)

    if inspect.iscoroutinefunction(function):

        @functools.wraps(function)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            return await (engine or get_default_engine()).ainvoke(
                pending(args, kwargs),
                lambda: function(*args, **kwargs),
            )

        setattr(async_wrapper, INTERCEPTED_ATTRIBUTE, True)
        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(function)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return (engine or get_default_engine()).invoke(
            pending(args, kwargs),
            lambda: function(*args, **kwargs),
        )

    setattr(wrapper, INTERCEPTED_ATTRIBUTE, True)
    return wrapper  # type: ignore[return-value]


def _signature(function: Callable[..., Any]) -> inspect.Signature | None:
    try:
        return inspect.signature(function)
    except (TypeError, ValueError):
        return None


def _no_target(args: tuple[Any, ...]) -> Any:
    return None


def _first_argument(args: tuple[Any, ...]) -> Any:
    return args[0] if args else None


def _owner_target(function: Callable[..., Any]) -> Callable[[tuple[Any, ...]], Any]:
    """
    Pick the call target of a function defined in a class body.

    The first argument is the target only when it is an instance or a
    subclass of the class named by the function's ``__qualname__``. This
    keeps a ``@staticmethod`` stacked on top from taking its first
    argument's type, and lets a ``@classmethod`` stacked on top pass its
    class.
    """
    owner, _, _ = getattr(function, "__qualname__", "").rpartition(".")
    if not owner or owner.endswith("<locals>"):
        return _no_target

    def target_of(args: tuple[Any, ...]) -> Any:
        if not args:
            return None
        first = args[0]
        mro = first.__mro__ if isinstance(first, type) else type(first).__mro__
        return first if any(cls.__qualname__ == owner for cls in mro) else None

    return target_of


__all__ = [
    "logging_context",
    "with_logging_context",
    "intercept",
]
