"""
Tests for the pylmcompare exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyLMCompareError)
    - Diagnostic attributes on DimensionMismatchError, MissingValueError,
      ContrastError, RankDeficientError, InvalidComparisonError
    - Default attribute values
"""

import pytest

from pylmcompare.core.exceptions import (
    ContrastError,
    DimensionError,
    DimensionMismatchError,
    InvalidComparisonError,
    MissingContrastError,
    MissingValueError,
    NumericalError,
    PyLMCompareError,
    RankDeficientError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyLMCompareError."""

    @pytest.mark.parametrize("exc", [
        ValidationError("bad input"),
        DimensionError("wrong shape"),
        DimensionMismatchError("wrong length"),
        MissingValueError("missing"),
        ContrastError("bad coding"),
        MissingContrastError("no coding"),
        NumericalError("failed"),
        RankDeficientError("aliased"),
        InvalidComparisonError("not nested"),
    ])
    def test_all_are_library_errors(self, exc):
        with pytest.raises(PyLMCompareError):
            raise exc

    def test_dimension_mismatch_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise DimensionMismatchError("wrong length")

    def test_missing_value_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise MissingValueError("missing")

    def test_contrast_errors_are_validation_errors(self):
        assert issubclass(ContrastError, ValidationError)
        assert issubclass(MissingContrastError, ValidationError)

    def test_rank_deficient_is_numerical_error(self):
        with pytest.raises(NumericalError):
            raise RankDeficientError("aliased")

    def test_invalid_comparison_is_not_validation_error(self):
        assert not issubclass(InvalidComparisonError, ValidationError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:
    """Exceptions carry the diagnostics their callers need."""

    def test_dimension_mismatch_attributes(self):
        e = DimensionMismatchError("response: expected 10, got 9", expected=10, actual=9)
        assert e.expected == 10
        assert e.actual == 9
        assert "expected 10" in str(e)

    def test_dimension_mismatch_defaults(self):
        e = DimensionMismatchError("msg")
        assert e.expected is None
        assert e.actual is None

    def test_missing_value_attributes(self):
        e = MissingValueError("x: 3 missing", column="x", n_missing=3)
        assert e.column == "x"
        assert e.n_missing == 3

    def test_contrast_error_factor(self):
        assert ContrastError("bad", factor="dose").factor == "dose"
        assert ContrastError("bad").factor is None

    def test_missing_contrast_factor(self):
        assert MissingContrastError("none", factor="g").factor == "g"

    def test_rank_deficient_attributes(self):
        e = RankDeficientError(
            "rank 2 < 3", rank=2, expected_rank=3, aliased=("x3",),
        )
        assert e.rank == 2
        assert e.expected_rank == 3
        assert e.aliased == ("x3",)

    def test_rank_deficient_defaults(self):
        e = RankDeficientError("msg")
        assert e.rank is None
        assert e.expected_rank is None
        assert e.aliased == ()

    def test_invalid_comparison_attributes(self):
        e = InvalidComparisonError("not nested", reason="nesting", df1=2, df2=30)
        assert e.reason == "nesting"
        assert e.df1 == 2
        assert e.df2 == 30

    def test_invalid_comparison_defaults(self):
        e = InvalidComparisonError("msg")
        assert e.reason is None
        assert e.df1 is None
        assert e.df2 is None
