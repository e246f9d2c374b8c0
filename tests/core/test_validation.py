"""
Tests for input validation utilities.

Validates every function in core/validation.py:
    - check_array: conversion, dtype coercion, object rejection
    - check_finite: NaN/Inf detection
    - check_ndim / check_1d / check_2d: dimensionality checks
    - check_length / check_consistent_length: length matching
    - check_probability: open unit interval
"""

import numpy as np
import pytest

from pylmcompare.core.exceptions import (
    DimensionError,
    DimensionMismatchError,
    ValidationError,
)
from pylmcompare.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_consistent_length,
    check_finite,
    check_length,
    check_ndim,
    check_probability,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:
    """check_array converts to ndarray and rejects non-numeric data."""

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "X")
        assert isinstance(result, np.ndarray)
        assert result.dtype == np.float64
        np.testing.assert_array_equal(result, [1.0, 2.0, 3.0])

    def test_bool_promoted_to_float(self):
        result = check_array(np.array([True, False]), "mask")
        np.testing.assert_array_equal(result, [1.0, 0.0])

    def test_strings_rejected(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(np.array(["a", "b"]), "labels")

    def test_mixed_types_rejected(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array([1, "a", None], "mixed")


# ═══════════════════════════════════════════════════════════════════════
# check_finite
# ═══════════════════════════════════════════════════════════════════════


class TestCheckFinite:

    def test_finite_passes(self):
        check_finite(np.array([1.0, 2.0]), "y")

    def test_nan_and_inf_counted(self):
        with pytest.raises(ValidationError, match=r"1 NaN, 2 Inf"):
            check_finite(np.array([np.nan, np.inf, -np.inf, 0.0]), "y")


# ═══════════════════════════════════════════════════════════════════════
# Dimensions and lengths
# ═══════════════════════════════════════════════════════════════════════


class TestDimensions:

    def test_check_1d(self):
        check_1d(np.zeros(3), "y")
        with pytest.raises(DimensionError, match="expected 1D"):
            check_1d(np.zeros((3, 2)), "y")

    def test_check_2d(self):
        check_2d(np.zeros((3, 2)), "X")
        with pytest.raises(DimensionError, match="expected 2D"):
            check_2d(np.zeros(3), "X")

    def test_check_ndim_reports_shape(self):
        with pytest.raises(DimensionError, match=r"\(2, 2, 2\)"):
            check_ndim(np.zeros((2, 2, 2)), 2, "X")

    def test_check_length(self):
        check_length(np.zeros(5), 5, "response")
        with pytest.raises(DimensionMismatchError) as info:
            check_length(np.zeros(4), 5, "response")
        assert info.value.expected == 5
        assert info.value.actual == 4

    def test_consistent_length(self):
        check_consistent_length(np.zeros(3), np.zeros((3, 2)), names=("y", "X"))
        with pytest.raises(DimensionMismatchError, match="y=3, X=4"):
            check_consistent_length(np.zeros(3), np.zeros((4, 2)), names=("y", "X"))

    def test_consistent_length_names_mismatch(self):
        with pytest.raises(ValueError):
            check_consistent_length(np.zeros(3), names=("y", "X"))


# ═══════════════════════════════════════════════════════════════════════
# check_probability
# ═══════════════════════════════════════════════════════════════════════


class TestCheckProbability:

    @pytest.mark.parametrize("value", [0.5, 0.95, 1e-9])
    def test_inside_interval(self, value):
        check_probability(value, "conf_level")

    @pytest.mark.parametrize("value", [0.0, 1.0, -0.1, 95.0])
    def test_outside_interval(self, value):
        with pytest.raises(ValidationError, match="conf_level"):
            check_probability(value, "conf_level")
