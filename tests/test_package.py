"""Tests for the public logscope package surface."""

from typing import Annotated

import logscope
from logscope import LoggingContext, logging_context, nested_context
from logscope.backends.local import local_store


class TestPublicApi:
    """Test top-level exports."""

    def test_version(self):
        assert logscope.__version__ == "0.1.0"

    def test_all_exports_exist(self):
        for name in logscope.__all__:
            assert hasattr(logscope, name), name

    def test_end_to_end(self):
        @logging_context("Orders")
        def refund(order: Annotated[str, LoggingContext("order")]):
            return local_store.nested(), local_store.mapped()

        with nested_context("request-1").build():
            assert refund("A-17") == (("request-1", "Orders"), {"order": "A-17"})

        assert local_store.nested() == ()
