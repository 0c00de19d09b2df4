"""
Tests for extractor resolution.

Tests verify:
- Every descriptor form resolves to a working extractor
- Resolution happens once per descriptor
- Resolution failures fall back to the no-op extractor with a warning
"""

from structlog.testing import capture_logs

from fixtures.people import PERSON, PERSON_CONTEXT, BrokenExtractor, PersonExtractor
from logscope.interception.extractors import (
    NO_OP_EXTRACTOR,
    ContextExtractor,
    ExtractorRegistry,
    FunctionExtractor,
    NoOpExtractor,
    default_extractors,
    register_extractor,
)


class TestExtractors:
    """Test the built-in extractor types."""

    def test_person_extractor(self):
        assert PersonExtractor().extract(PERSON) == PERSON_CONTEXT

    def test_person_extractor_tolerates_none(self):
        assert PersonExtractor().extract(None) == {}

    def test_noop_extractor(self):
        assert NoOpExtractor().extract(PERSON) == {}
        assert isinstance(NO_OP_EXTRACTOR, ContextExtractor)

    def test_function_extractor(self):
        extractor = FunctionExtractor(lambda value: {"value": str(value)})
        assert extractor.extract(5) == {"value": "5"}

    def test_function_extractor_none_result(self):
        assert FunctionExtractor(lambda value: None).extract(5) == {}


class TestExtractorRegistry:
    """Test descriptor resolution."""

    def setup_method(self):
        self.registry = ExtractorRegistry()

    def test_class_is_instantiated(self):
        extractor = self.registry.resolve(PersonExtractor)
        assert isinstance(extractor, PersonExtractor)

    def test_class_resolved_once(self):
        assert self.registry.resolve(PersonExtractor) is self.registry.resolve(PersonExtractor)

    def test_instance_is_used_as_is(self):
        extractor = PersonExtractor()
        assert self.registry.resolve(extractor) is extractor

    def test_callable_is_adapted(self):
        extractor = self.registry.resolve(lambda value: {"v": value})
        assert isinstance(extractor, FunctionExtractor)
        assert extractor.extract("x") == {"v": "x"}

    def test_registered_name(self):
        self.registry.register("person", PersonExtractor)
        assert self.registry.resolve("person").extract(PERSON) == PERSON_CONTEXT

    def test_registering_replaces_cached_name(self):
        self.registry.resolve("person")
        self.registry.register("person", PersonExtractor)
        assert isinstance(self.registry.resolve("person"), PersonExtractor)

    def test_import_path(self):
        extractor = self.registry.resolve("fixtures.people:PersonExtractor")
        assert isinstance(extractor, PersonExtractor)

    def test_unknown_name_falls_back(self):
        with capture_logs() as logs:
            extractor = self.registry.resolve("nobody")

        assert extractor is NO_OP_EXTRACTOR
        warnings = [e for e in logs if e["event"] == "extractor_unavailable"]
        assert warnings[0]["log_level"] == "warning"
        assert warnings[0]["category"] == "EXTRACTION"

    def test_failing_constructor_falls_back(self):
        with capture_logs() as logs:
            extractor = self.registry.resolve(BrokenExtractor)

        assert extractor is NO_OP_EXTRACTOR
        assert logs[0]["cause"] == "extractor misconfigured"

    def test_failure_resolved_once(self):
        with capture_logs() as logs:
            self.registry.resolve(BrokenExtractor)
            self.registry.resolve(BrokenExtractor)

        assert len([e for e in logs if e["event"] == "extractor_unavailable"]) == 1

    def test_none_falls_back(self):
        assert self.registry.resolve(None) is NO_OP_EXTRACTOR

    def test_non_extractor_falls_back(self):
        assert self.registry.resolve(42) is NO_OP_EXTRACTOR

    def test_unhashable_descriptor(self):
        class Unhashable(PersonExtractor):
            __hash__ = None

        extractor = Unhashable()
        assert self.registry.resolve(extractor) is extractor

    def test_clear(self):
        self.registry.register("person", PersonExtractor)
        self.registry.clear()
        assert self.registry.resolve("person") is NO_OP_EXTRACTOR


class TestModuleHelpers:
    """Test the process-wide registry helpers."""

    def test_register_extractor(self):
        register_extractor("person", PersonExtractor)
        assert isinstance(default_extractors.resolve("person"), PersonExtractor)
