"""
Tests for contrast(), pairwise() and CellMeans.

Validates:
    - Estimates, SEs and t from weights over means and coefficients
    - Agreement with scipy's two-sample t test and Tukey HSD
    - Adjustment changes p-values and intervals, never estimates
    - Weight parsing and validation
"""

import types

import numpy as np
import pytest
from scipy import stats as sp_stats

import pylmcompare
from pylmcompare.core.dataset import Dataset
from pylmcompare.core.exceptions import DimensionMismatchError, ValidationError
from pylmcompare.design import Custom, ModelSpec
from pylmcompare.regression import lm
from pylmcompare.contrasts import (
    CellMeans,
    ContrastResult,
    PAdjust,
    Tukey,
    contrast,
    pairwise,
)

A = [10.0, 12.0, 11.0]
B = [20.0, 22.0, 19.0]


@pytest.fixture
def four_means():
    return CellMeans.from_summary(
        [10.0, 20.0, 30.0, 40.0], [1.0, 1.0, 1.0, 1.0], df=20,
        labels=['a', 'b', 'c', 'd'],
    )


# ═══════════════════════════════════════════════════════════════════════
# CellMeans
# ═══════════════════════════════════════════════════════════════════════


class TestCellMeans:

    def test_from_summary(self, four_means):
        assert four_means.n_means == 4
        np.testing.assert_allclose(four_means.standard_errors, 1.0)
        np.testing.assert_allclose(four_means.covariance, np.eye(4))

    def test_default_labels(self):
        means = CellMeans.from_summary([1.0, 2.0], [0.5, 0.5], df=10)
        assert means.labels == ('m1', 'm2')

    def test_from_groups(self):
        means = CellMeans.from_groups(A + B, ['A'] * 3 + ['B'] * 3, factor='group')
        np.testing.assert_allclose(means.means, [11.0, 61.0 / 3.0])
        assert means.df == 4
        assert means.labels == ('A', 'B')
        mse = (np.var(A, ddof=1) + np.var(B, ddof=1)) / 2
        np.testing.assert_allclose(np.diag(means.covariance), [mse / 3, mse / 3])

    def test_from_summary_length_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            CellMeans.from_summary([1.0, 2.0], [0.5], df=10)

    def test_negative_se(self):
        with pytest.raises(ValidationError):
            CellMeans.from_summary([1.0, 2.0], [0.5, -0.5], df=10)

    def test_df_positive(self):
        with pytest.raises(ValidationError, match="df"):
            CellMeans.from_summary([1.0, 2.0], [0.5, 0.5], df=0)

    def test_duplicate_labels(self):
        with pytest.raises(ValidationError, match="distinct"):
            CellMeans.from_summary([1.0, 2.0], [0.5, 0.5], df=10, labels=['x', 'x'])

    def test_from_groups_needs_residual_df(self):
        with pytest.raises(ValidationError):
            CellMeans.from_groups([1.0, 2.0], ['a', 'b'])

    def test_from_groups_length_mismatch(self):
        with pytest.raises(DimensionMismatchError, match="groups=2"):
            CellMeans.from_groups([1.0, 2.0, 3.0], ['a', 'b'])


# ═══════════════════════════════════════════════════════════════════════
# Contrasts over means
# ═══════════════════════════════════════════════════════════════════════


class TestMeansContrast:

    def test_weighted_difference(self, four_means):
        result = contrast(four_means, {'ab_vs_cd': [0.5, 0.5, -0.5, -0.5]})
        assert isinstance(result, ContrastResult)
        assert result.estimates[0] == pytest.approx(-20.0)
        assert result.standard_errors[0] == pytest.approx(1.0)
        assert result.t_values[0] == pytest.approx(-20.0)
        assert result.df == 20

    def test_named_weights(self, four_means):
        result = contrast(four_means, {'d_vs_a': {'d': 1, 'a': -1}})
        assert result['d_vs_a']['estimate'] == pytest.approx(30.0)

    def test_vector_and_matrix_forms(self, four_means):
        single = contrast(four_means, [1, -1, 0, 0])
        assert single.names == ('c1',)
        many = contrast(four_means, np.array([[1, -1, 0, 0], [0, 0, 1, -1]]))
        assert many.names == ('c1', 'c2')
        np.testing.assert_allclose(many.estimates, [-10.0, -10.0])

    def test_weights_not_summing_to_zero_warn(self, four_means):
        result = contrast(four_means, {'mean_ab': [0.5, 0.5, 0, 0]})
        assert result.estimates[0] == pytest.approx(15.0)
        assert any('sum to' in w for w in result.warnings)

    def test_interval(self, four_means):
        result = contrast(four_means, {'d_vs_c': [0, 0, -1, 1]}, conf_level=0.9)
        crit = sp_stats.t.ppf(0.95, 20)
        se = np.sqrt(2.0)
        np.testing.assert_allclose(result.conf_int[0], [10 - crit * se, 10 + crit * se])
        assert result.conf_level == 0.9

    def test_length_mismatch(self, four_means):
        with pytest.raises(DimensionMismatchError) as info:
            contrast(four_means, {'bad': [1, -1, 0]})
        assert info.value.expected == 4
        assert info.value.actual == 3

    def test_unknown_label(self, four_means):
        with pytest.raises(ValidationError, match="unknown names"):
            contrast(four_means, {'bad': {'z': 1}})

    def test_empty_weights(self, four_means):
        with pytest.raises(ValidationError):
            contrast(four_means, {})

    def test_non_finite_weights(self, four_means):
        with pytest.raises(ValidationError):
            contrast(four_means, [1, np.nan, 0, -1])

    def test_bad_source(self):
        with pytest.raises(ValidationError, match="source"):
            contrast(np.array([1.0, 2.0]), [1, -1])

    def test_bad_conf_level(self, four_means):
        with pytest.raises(ValidationError):
            contrast(four_means, [1, -1, 0, 0], conf_level=95)

    def test_missing_name_lookup(self, four_means):
        result = contrast(four_means, {'x': [1, -1, 0, 0]})
        with pytest.raises(KeyError):
            result['y']


# ═══════════════════════════════════════════════════════════════════════
# Contrasts over coefficients
# ═══════════════════════════════════════════════════════════════════════


class TestCoefficientContrast:

    def test_two_groups_match_t_test(self):
        ds = Dataset.from_columns(y=A + B, group=['A'] * 3 + ['B'] * 3)
        spec = ModelSpec(
            terms=['group'], contrasts={'group': Custom([[0.5], [-0.5]])}, response='y',
        )
        model = lm(spec, ds)
        result = contrast(model, {'A - B': {'group[C.1]': 1.0}})
        expected = sp_stats.ttest_ind(A, B)
        assert result.t_values[0] == pytest.approx(expected.statistic, abs=1e-6)
        assert result.p_values[0] == pytest.approx(expected.pvalue, abs=1e-6)
        assert result.estimates[0] == pytest.approx(np.mean(A) - np.mean(B))

    def test_single_coefficient_matches_model(self, simple_regression_data):
        model = lm(ModelSpec(terms=['x1', 'x2'], response='y'), simple_regression_data)
        result = contrast(model, {'x2': {'x2': 1.0}})
        assert result.estimates[0] == pytest.approx(model.coefficients[2])
        assert result.standard_errors[0] == pytest.approx(model.standard_errors[2])
        assert result.p_values[0] == pytest.approx(model.p_values[2])
        assert result.info['source'] == 'coefficients'

    def test_coefficient_difference(self, simple_regression_data):
        model = lm(ModelSpec(terms=['x1', 'x2'], response='y'), simple_regression_data)
        w = np.array([0.0, 1.0, -1.0])
        result = contrast(model, {'x1 - x2': w})
        assert result.estimates[0] == pytest.approx(w @ model.coefficients)
        assert result.standard_errors[0] == pytest.approx(np.sqrt(w @ model.vcov @ w))

    def test_wrong_length_for_model(self, simple_regression_data):
        model = lm(ModelSpec(terms=['x1'], response='y'), simple_regression_data)
        with pytest.raises(DimensionMismatchError):
            contrast(model, [0, 1, 0])


# ═══════════════════════════════════════════════════════════════════════
# Adjustment invariance
# ═══════════════════════════════════════════════════════════════════════


class TestAdjustment:

    @pytest.mark.parametrize("adjust", [
        'bonferroni', 'holm', 'BH', 'tukey', 'scheffe', PAdjust('hommel'), Tukey(n_means=4),
    ])
    def test_estimates_unchanged_by_policy(self, adjust):
        close = CellMeans.from_summary([10.0, 11.0, 12.5, 13.0], [1.0] * 4, df=20)
        weights = {'b-a': [-1, 1, 0, 0], 'c-a': [-1, 0, 1, 0], 'd-a': [-1, 0, 0, 1]}
        plain = contrast(close, weights, 'none')
        adjusted = contrast(close, weights, adjust)
        np.testing.assert_array_equal(adjusted.estimates, plain.estimates)
        np.testing.assert_array_equal(adjusted.standard_errors, plain.standard_errors)
        np.testing.assert_array_equal(adjusted.t_values, plain.t_values)
        np.testing.assert_array_equal(adjusted.p_values, plain.p_values)
        assert np.all(adjusted.adjusted_p_values >= plain.p_values - 1e-12)
        assert adjusted.critical_value >= plain.critical_value

    def test_bonferroni_values(self, four_means):
        weights = {'b-a': [-1, 1, 0, 0], 'c-b': [0, -1, 1, 0]}
        result = contrast(four_means, weights, 'bonferroni')
        np.testing.assert_allclose(
            result.adjusted_p_values, np.minimum(2 * result.p_values, 1.0),
        )
        assert result.adjustment == 'bonferroni'
        assert result.family_size == 2

    def test_unknown_policy(self, four_means):
        with pytest.raises(ValidationError):
            contrast(four_means, [1, -1, 0, 0], 'dunnett')

    def test_policy_returning_wrong_length(self, four_means):
        class Broken:
            name = 'broken'

            def adjust(self, family):
                return np.array([0.5, 0.5, 0.5])

            def critical_value(self, family, conf_level):
                return 2.0

        with pytest.raises(ValidationError, match="broken"):
            contrast(four_means, [1, -1, 0, 0], Broken())

    def test_summary(self, four_means):
        result = contrast(four_means, {'b-a': [-1, 1, 0, 0]}, 'holm')
        text = result.summary()
        assert 'b-a' in text
        assert 'holm' in text


# ═══════════════════════════════════════════════════════════════════════
# Pairwise
# ═══════════════════════════════════════════════════════════════════════


class TestPairwise:

    def test_names_and_count(self, four_means):
        result = pairwise(four_means, 'none')
        assert result.names == ('a - b', 'a - c', 'a - d', 'b - c', 'b - d', 'c - d')
        np.testing.assert_allclose(result.estimates, [-10, -20, -30, -10, -20, -10])

    def test_tukey_matches_scipy(self, oneway_balanced):
        y = oneway_balanced.numeric('y')
        labels = oneway_balanced['group'].labels()
        means = CellMeans.from_groups(y, labels)
        result = pairwise(means)
        codes = oneway_balanced['group'].values
        reference = sp_stats.tukey_hsd(*(y[codes == k] for k in range(3)))
        ci = reference.confidence_interval(0.95)
        pairs = [(0, 1), (0, 2), (1, 2)]
        for idx, (i, j) in enumerate(pairs):
            assert result.adjusted_p_values[idx] == pytest.approx(reference.pvalue[i, j], rel=1e-6, abs=1e-12)
            assert result.conf_int[idx, 0] == pytest.approx(ci.low[i, j], rel=1e-6)
            assert result.conf_int[idx, 1] == pytest.approx(ci.high[i, j], rel=1e-6)
        assert result.adjustment == 'tukey'

    def test_needs_cell_means(self, simple_regression_data):
        model = lm(ModelSpec(terms=['x1'], response='y'), simple_regression_data)
        with pytest.raises(ValidationError):
            pairwise(model)


# ═══════════════════════════════════════════════════════════════════════
# Package exports
# ═══════════════════════════════════════════════════════════════════════


class TestExports:

    def test_subpackage_not_shadowed(self):
        assert isinstance(pylmcompare.contrasts, types.ModuleType)
        assert pylmcompare.contrast is contrast
        assert 'contrasts' in pylmcompare.__all__
