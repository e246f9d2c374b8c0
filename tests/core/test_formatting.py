"""Tests for R-style p-value formatting helpers."""

import numpy as np
import pytest

from pylmcompare.core.formatting import format_pvalue, significance_stars


class TestSignificanceStars:

    @pytest.mark.parametrize("p, stars", [
        (0.0001, '***'),
        (0.005, '**'),
        (0.03, '*'),
        (0.07, '.'),
        (0.5, ''),
    ])
    def test_thresholds(self, p, stars):
        assert significance_stars(p) == stars

    def test_nan(self):
        assert significance_stars(np.nan) == ''
        assert significance_stars(None) == ''


class TestFormatPvalue:

    def test_tiny(self):
        assert format_pvalue(1e-20) == '< 2e-16'

    def test_missing(self):
        assert format_pvalue(np.nan) == 'NA'
