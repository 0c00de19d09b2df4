"""
Tests for the logging_context / with_logging_context decorators.

These run end to end: default engine, default registry, local store.

Tests verify:
- Class, method and parameter declarations produce the expected context
- Context is gone after the call, also when it raises
- Async functions, defaults, inheritance, engine injection
"""

import asyncio
import inspect
from typing import Annotated

import pytest

from fixtures.people import PERSON, PERSON_PREFIX, Person, PersonExtractor
from fixtures.stores import RecordingStore
from logscope.backends.local import local_store
from logscope.context.builder import StoreContextBuilder
from logscope.context.registry import ProviderRegistry
from logscope.interception.decorators import intercept, logging_context, with_logging_context
from logscope.interception.engine import InterceptionEngine
from logscope.interception.metadata import ExtractedContext, LoggingContext, declaration_of


def snapshot():
    return local_store.nested(), local_store.mapped()


@logging_context("C1N")
class NamedService:
    @logging_context("C1N_METHOD_CONTEXT_1", "C1N_METHOD_CONTEXT_2")
    def labelled(self, p1: Annotated[str, LoggingContext("P1")]):
        return snapshot()

    def undeclared_method(self, p1: Annotated[str, LoggingContext("P1")], p2: Annotated[int, LoggingContext("P2")]):
        return snapshot()

    def employee(
        self,
        person: Annotated[Person, ExtractedContext(PersonExtractor, prefix=PERSON_PREFIX)],
        p2: Annotated[int, LoggingContext("P2")],
    ):
        return snapshot()

    def default_named(self, region: Annotated[str, LoggingContext]):
        return snapshot()

    def failing(self, p1: Annotated[str, LoggingContext("P1")]):
        raise ValueError("service failed")

    async def asynchronous(self, p1: Annotated[str, LoggingContext("P1")]):
        await asyncio.sleep(0)
        return snapshot()

    def _private(self):
        return snapshot()

    @staticmethod
    def static():
        return snapshot()

    @classmethod
    def factory(cls):
        return snapshot()


@logging_context
class DefaultService:
    @logging_context
    def run(self):
        return snapshot()


class SubService(DefaultService):
    pass


class UndeclaredService:
    @logging_context
    def run(self, job: Annotated[str, LoggingContext("job")] = "nightly"):
        return snapshot()


@logging_context("Declared")
class Declared:
    pass


class Util:
    @staticmethod
    @logging_context
    def helper(value):
        return snapshot()

    @logging_context
    @staticmethod
    def outer_helper(value):
        return snapshot()


@logging_context("Svc")
class Svc:
    @classmethod
    @logging_context
    def make(cls):
        return snapshot()

    @logging_context
    @classmethod
    def build(cls, tag: Annotated[str, LoggingContext("tag")]):
        return snapshot()


class SubSvc(Svc):
    pass


@with_logging_context
def handle(request: Annotated[str, LoggingContext("request")], body: str):
    return snapshot()


@logging_context("handler")
def labelled_handler():
    return snapshot()


class TestClassDeclaration:
    """Test class-level declarations."""

    def test_declaration_recorded(self):
        assert declaration_of(NamedService) == LoggingContext("C1N")

    def test_type_then_method_labels_then_parameter(self):
        nested, mapped = NamedService().labelled("value1")

        assert nested == ("C1N", "C1N_METHOD_CONTEXT_1", "C1N_METHOD_CONTEXT_2")
        assert mapped == {"P1": "value1"}

    def test_undeclared_method_gets_type_labels_only(self):
        nested, mapped = NamedService().undeclared_method("value1", 6)

        assert nested == ("C1N",)
        assert mapped == {"P1": "value1", "P2": "6"}

    def test_extracted_parameter_with_prefix(self):
        nested, mapped = NamedService().employee(PERSON, 6)

        assert nested == ("C1N",)
        assert mapped == {"employee.name": "John", "employee.dob": "20010821", "P2": "6"}

    def test_parameter_default_name(self):
        _, mapped = NamedService().default_named("eu")
        assert mapped == {"region": "eu"}

    def test_default_type_and_method_names(self):
        nested, _ = DefaultService().run()
        assert nested == ("DefaultService", "run")

    def test_subclass_uses_own_name(self):
        nested, _ = SubService().run()
        assert nested == ("SubService", "run")

    def test_private_methods_not_intercepted(self):
        assert NamedService()._private() == ((), {})

    def test_static_and_class_methods_not_intercepted(self):
        assert NamedService.static() == ((), {})
        assert NamedService.factory() == ((), {})


class TestScope:
    """Test that context only exists during the call."""

    def test_context_removed_after_call(self):
        NamedService().labelled("value1")
        assert snapshot() == ((), {})

    def test_context_removed_after_failure(self):
        with pytest.raises(ValueError, match="service failed"):
            NamedService().failing("value1")

        assert snapshot() == ((), {})

    def test_nested_calls_stack(self):
        @logging_context("outer")
        def outer():
            return DefaultService().run(), snapshot()

        inner, after_inner = outer()

        assert inner[0] == ("outer", "DefaultService", "run")
        assert after_inner[0] == ("outer",)
        assert snapshot() == ((), {})

    def test_existing_context_kept(self):
        local_store.push_label("request-42")

        nested, _ = DefaultService().run()

        assert nested == ("request-42", "DefaultService", "run")
        assert local_store.nested() == ("request-42",)


class TestFunctions:
    """Test module-level functions and methods of undeclared classes."""

    def test_with_logging_context_adds_parameters_only(self):
        nested, mapped = handle("r-1", body="{}")

        assert nested == ()
        assert mapped == {"request": "r-1"}

    def test_keyword_arguments(self):
        _, mapped = handle(body="{}", request="r-2")
        assert mapped == {"request": "r-2"}

    def test_labelled_function(self):
        assert labelled_handler() == (("handler",), {})

    def test_undeclared_class_method(self):
        nested, mapped = UndeclaredService().run()

        assert nested == ("run",)
        assert mapped == {"job": "nightly"}

    def test_bad_arguments_raise_from_the_function(self):
        with pytest.raises(TypeError):
            handle()

        assert snapshot() == ((), {})

    def test_metadata_preserved(self):
        assert handle.__name__ == "handle"
        assert handle.__wrapped__.__name__ == "handle"

    def test_local_function(self):
        @logging_context
        def local_job(step: Annotated[int, LoggingContext("step")]):
            return snapshot()

        assert local_job(3) == (("local_job",), {"step": "3"})


class TestAsync:
    """Test coroutine functions."""

    def test_async_method(self):
        nested, mapped = asyncio.run(NamedService().asynchronous("value1"))

        assert nested == ("C1N",)
        assert mapped == {"P1": "value1"}
        assert snapshot() == ((), {})

    def test_async_function_is_still_a_coroutine_function(self):
        assert inspect.iscoroutinefunction(NamedService.asynchronous)

    def test_concurrent_tasks_are_isolated(self):
        @logging_context
        async def task(name: Annotated[str, LoggingContext("task")]):
            await asyncio.sleep(0)
            return snapshot()

        async def main():
            return await asyncio.gather(task("a"), task("b"))

        first, second = asyncio.run(main())

        assert first == (("task",), {"task": "a"})
        assert second == (("task",), {"task": "b"})


class TestEngineInjection:
    """Test decorators with an explicit engine."""

    def test_engine_argument(self):
        store = RecordingStore()
        engine = InterceptionEngine(
            registry=ProviderRegistry([lambda: StoreContextBuilder(store)], autoload=False)
        )

        @logging_context("injected", engine=engine)
        def job():
            return list(store.labels)

        assert job() == ["injected"]
        assert local_store.nested() == ()

    def test_with_logging_context_engine_argument(self):
        store = RecordingStore()
        engine = InterceptionEngine(
            registry=ProviderRegistry([lambda: StoreContextBuilder(store)], autoload=False)
        )

        @with_logging_context(engine=engine)
        def job(run: Annotated[str, LoggingContext("run")]):
            return dict(store.values)

        assert job("7") == {"run": "7"}


class TestStacking:
    """Test repeated or stacked decoration."""

    def test_intercept_is_idempotent(self):
        assert intercept(handle) is handle

    def test_logging_context_over_with_logging_context(self):
        @logging_context("stacked")
        @with_logging_context
        def job(run: Annotated[str, LoggingContext("run")]):
            return snapshot()

        assert job("7") == (("stacked",), {"run": "7"})


class TestStaticAndClassMethods:
    """Test explicitly decorated static and class methods."""

    def test_static_method_ignores_first_argument_type(self):
        assert Util.helper(Declared()) == (("helper",), {})
        assert snapshot() == ((), {})

    def test_static_method_through_instance(self):
        assert Util().helper(Declared()) == (("helper",), {})

    def test_decorator_over_staticmethod(self):
        assert Util.outer_helper(Declared()) == (("outer_helper",), {})

    def test_class_method_gets_class_labels(self):
        assert Svc.make() == (("Svc", "make"), {})
        assert Svc().make() == (("Svc", "make"), {})

    def test_class_method_on_subclass(self):
        assert SubSvc.make() == (("Svc", "make"), {})

    def test_decorator_over_classmethod(self):
        assert Svc.build("x") == (("Svc", "build"), {"tag": "x"})
        assert snapshot() == ((), {})

    def test_unbound_instance_method_call(self):
        nested, _ = DefaultService.run(DefaultService())
        assert nested == ("DefaultService", "run")
