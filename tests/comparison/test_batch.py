"""
Tests for compare_many() and sweep_bayes_factor().
"""

import numpy as np
import pytest

from pylmcompare.core.exceptions import InvalidComparisonError, ValidationError
from pylmcompare.design import ModelSpec
from pylmcompare.regression import lm
from pylmcompare.comparison import (
    bayes_factor,
    compare,
    compare_many,
    sweep_bayes_factor,
)


def _lm(terms, dataset):
    return lm(ModelSpec(terms=terms, response='y'), dataset)


@pytest.fixture
def model_chain(simple_regression_data):
    m0 = lm(ModelSpec(terms=(), response='y'), simple_regression_data)
    m1 = _lm(['x1'], simple_regression_data)
    m2 = _lm(['x1', 'x2'], simple_regression_data)
    return m0, m1, m2


class TestCompareMany:

    def test_sequential_matches_compare(self, model_chain):
        m0, m1, m2 = model_chain
        pairs = [(m0, m1), (m1, m2), (m0, m2)]
        results = compare_many(pairs)
        for (r, g), result in zip(pairs, results):
            assert result.f_value == compare(r, g).f_value

    def test_parallel_keeps_order(self, model_chain):
        m0, m1, m2 = model_chain
        pairs = [(m0, m1), (m1, m2), (m0, m2)]
        sequential = compare_many(pairs, n_jobs=1)
        parallel = compare_many(pairs, n_jobs=2)
        np.testing.assert_allclose(
            [r.f_value for r in parallel], [r.f_value for r in sequential],
        )

    def test_invalid_pair_raises(self, model_chain):
        m0, m1, _ = model_chain
        with pytest.raises(InvalidComparisonError):
            compare_many([(m0, m1), (m1, m1)])

    def test_empty(self):
        assert compare_many([]) == []

    @pytest.mark.parametrize("n_jobs", [0, -2, 1.5])
    def test_bad_n_jobs(self, model_chain, n_jobs):
        m0, m1, _ = model_chain
        with pytest.raises(ValidationError, match="n_jobs"):
            compare_many([(m0, m1)], n_jobs=n_jobs)


class TestSweepBayesFactor:

    def test_one_result_per_scale(self, model_chain):
        _, m1, m2 = model_chain
        scales = [np.sqrt(2) / 4, 0.5, np.sqrt(2) / 2]
        results = sweep_bayes_factor(m1, m2, scales)
        assert [r.r_scale for r in results] == pytest.approx(scales)
        assert results[1].log_bf10 == pytest.approx(
            bayes_factor(m1, m2, r_scale=0.5).log_bf10
        )

    def test_result_depends_on_scale(self, model_chain):
        _, m1, m2 = model_chain
        narrow, wide = sweep_bayes_factor(m1, m2, [0.1, 10.0])
        assert narrow.log_bf10 != pytest.approx(wide.log_bf10)

    def test_needs_scales(self, model_chain):
        _, m1, m2 = model_chain
        with pytest.raises(ValidationError):
            sweep_bayes_factor(m1, m2, [])
