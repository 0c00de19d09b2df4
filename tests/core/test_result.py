"""Tests for logscope.core.result module."""

import pytest

from logscope.core.result import Err, Ok, try_result


class TestOk:
    """Test the success variant."""

    def test_predicates(self):
        outcome = Ok(5)
        assert outcome.is_ok()
        assert not outcome.is_err()

    def test_unwrap(self):
        assert Ok("value").unwrap() == "value"

    def test_repr(self):
        assert repr(Ok(2)) == "Ok(2)"


class TestErr:
    """Test the failure variant."""

    def test_predicates(self):
        outcome = Err(ValueError("bad"))
        assert outcome.is_err()
        assert not outcome.is_ok()

    def test_unwrap_raises_the_same_error(self):
        error = ValueError("bad")
        with pytest.raises(ValueError) as exc_info:
            Err(error).unwrap()
        assert exc_info.value is error

    def test_repr(self):
        assert repr(Err(KeyError("k"))) == "Err(KeyError('k'))"


class TestTryResult:
    """Test try_result bridge."""

    def test_success(self):
        assert try_result(lambda: 42) == Ok(42)

    def test_exception_is_captured(self):
        error = RuntimeError("boom")

        def fail():
            raise error

        outcome = try_result(fail)
        assert outcome.is_err()
        assert outcome.error is error

    def test_base_exception_is_not_captured(self):
        def interrupt():
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            try_result(interrupt)
