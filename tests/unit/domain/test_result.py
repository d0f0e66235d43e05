"""
Unit tests for the Result and Maybe value objects.
"""

import pytest

from archi.domain.entities.result import ArchiError, Maybe, Result

E1 = ArchiError(code="E1", description="first")
E2 = ArchiError(code="E2", description="second")
E3 = ArchiError(code="E3", description="third")


class TestResult:
    """Test Result construction and combination."""

    def test_success_has_no_errors(self):
        result = Result.success()
        assert result.succeeded
        assert result.errors == ()
        assert bool(result)

    def test_failed_keeps_error_order(self):
        result = Result.failed(E1, E2)
        assert not result.succeeded
        assert result.error_codes == ("E1", "E2")

    def test_success_with_errors_rejected(self):
        """Test that a successful result cannot carry errors."""
        with pytest.raises(ValueError):
            Result(True, [E1])

    def test_and_concatenates_errors(self):
        """Test that combining keeps every error, left operand first."""
        combined = Result.failed(E1) & Result.success() & Result.failed(E2, E3)
        assert not combined.succeeded
        assert combined.error_codes == ("E1", "E2", "E3")

    def test_and_of_successes_succeeds(self):
        assert (Result.success() & Result.success()) == Result.success()

    def test_combine(self):
        combined = Result.combine([Result.success(), Result.failed(E2), Result.failed(E1)])
        assert combined.error_codes == ("E2", "E1")

    def test_combine_empty(self):
        assert Result.combine([]).succeeded

    def test_equality(self):
        assert Result.failed(E1) == Result.failed(ArchiError(code="E1", description="first"))
        assert Result.failed(E1) != Result.failed(E2)


class TestArchiError:
    """Test the error value object."""

    def test_empty_code_rejected(self):
        with pytest.raises(ValueError):
            ArchiError(code="", description="nothing")

    def test_str(self):
        assert str(E1) == "E1: first"


class TestMaybe:
    """Test Maybe presence handling."""

    def test_just(self):
        maybe = Maybe.just(5)
        assert maybe.has_value
        assert maybe.value == 5
        assert bool(maybe)

    def test_nothing(self):
        maybe = Maybe.nothing()
        assert not maybe.has_value
        assert maybe.or_else("default") == "default"

    def test_reading_empty_value_raises(self):
        with pytest.raises(ValueError):
            Maybe.nothing().value

    def test_just_none_rejected(self):
        with pytest.raises(ValueError):
            Maybe.just(None)

    def test_from_optional(self):
        assert Maybe.from_optional(None) == Maybe.nothing()
        assert Maybe.from_optional("x") == Maybe.just("x")

    def test_map(self):
        assert Maybe.just(2).map(lambda v: v * 3) == Maybe.just(6)
        assert Maybe.nothing().map(lambda v: v * 3) == Maybe.nothing()
