"""
Tests for anova_table() with Type I, II and III sums of squares.

Validates:
    - Type I matches scipy one-way ANOVA and sums to TSS
    - Types agree on balanced designs with sum coding
    - Type II / III sums of squares equal the matching model comparisons
    - Treatment coding warning for Type III
"""

import warnings

import numpy as np
import pytest
from scipy import stats as sp_stats

from pylmcompare.core.compute.tolerances import REFERENCE_RTOL
from pylmcompare.core.dataset import Dataset
from pylmcompare.core.exceptions import ValidationError
from pylmcompare.design import ModelSpec, Sum
from pylmcompare.regression import lm
from pylmcompare.comparison import AnovaTable, anova_table, compare


def _lm(terms, dataset, **kwargs):
    return lm(ModelSpec(terms=terms, response='y', **kwargs), dataset)


@pytest.fixture
def factorial_balanced():
    """2x3 factorial, 4 replicates per cell."""
    rng = np.random.default_rng(11)
    a, b, y = [], [], []
    for i, la in enumerate(['lo', 'hi']):
        for j, lb in enumerate(['x', 'y', 'z']):
            a.extend([la] * 4)
            b.extend([lb] * 4)
            y.extend(3.0 + i + 0.5 * j + 0.4 * i * j + rng.normal(0.0, 1.0, 4))
    return Dataset.from_columns(y=y, a=a, b=b)


# ═══════════════════════════════════════════════════════════════════════
# Type I
# ═══════════════════════════════════════════════════════════════════════


class TestTypeI:

    def test_one_way_matches_scipy(self, oneway_balanced):
        table = anova_table(_lm(['group'], oneway_balanced))
        assert isinstance(table, AnovaTable)
        y = oneway_balanced.numeric('y')
        codes = oneway_balanced['group'].values
        expected = sp_stats.f_oneway(*(y[codes == k] for k in range(3)))
        row = table.row('group')
        assert row.df == 2
        assert row.f_value == pytest.approx(expected.statistic, rel=REFERENCE_RTOL)
        assert row.p_value == pytest.approx(expected.pvalue, rel=1e-8)

    def test_sums_to_total(self, factorial_unbalanced):
        model = _lm(['a', 'b', 'a:b', 'cov'], factorial_unbalanced)
        table = anova_table(model)
        assert sum(row.sum_sq for row in table.table) == pytest.approx(model.tss)
        assert table.residual_ss == pytest.approx(model.rss)
        assert table.residual_df == model.df_residual

    def test_order_dependent_when_unbalanced(self, factorial_unbalanced):
        ab = anova_table(_lm(['a', 'b'], factorial_unbalanced))
        ba = anova_table(_lm(['b', 'a'], factorial_unbalanced))
        assert ab.row('a').sum_sq != pytest.approx(ba.row('a').sum_sq)

    def test_last_term_matches_compare(self, factorial_unbalanced):
        full = _lm(['a', 'b', 'a:b'], factorial_unbalanced)
        reduced = _lm(['a', 'b'], factorial_unbalanced)
        table = anova_table(full)
        result = compare(reduced, full)
        assert table.row('a:b').sum_sq == pytest.approx(result.sum_sq)
        assert table.row('a:b').f_value == pytest.approx(result.f_value)


# ═══════════════════════════════════════════════════════════════════════
# Type II and III
# ═══════════════════════════════════════════════════════════════════════


class TestTypeIIandIII:

    def test_types_agree_when_balanced(self, factorial_balanced):
        model = _lm(['a', 'b', 'a:b'], factorial_balanced, contrasts={'a': Sum(), 'b': Sum()})
        tables = [anova_table(model, ss_type=t) for t in (1, 2, 3)]
        for term in ('a', 'b', 'a:b'):
            values = [t.row(term).sum_sq for t in tables]
            np.testing.assert_allclose(values, values[0], rtol=1e-10)

    def test_type2_main_effect_matches_compare(self, factorial_unbalanced):
        model = _lm(['a', 'b', 'a:b'], factorial_unbalanced)
        table = anova_table(model, ss_type=2)
        expected = compare(
            _lm(['b'], factorial_unbalanced), _lm(['a', 'b'], factorial_unbalanced),
        ).sum_sq
        assert table.row('a').sum_sq == pytest.approx(expected)

    def test_type3_sum_coding_no_warning(self, factorial_unbalanced):
        model = _lm(['a', 'b', 'a:b'], factorial_unbalanced, contrasts={'a': Sum(), 'b': Sum()})
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            table = anova_table(model, ss_type=3)
        assert table.warnings == ()
        assert table.ss_type == 3

    def test_type3_treatment_coding_warns(self, factorial_unbalanced):
        model = _lm(['a', 'b', 'a:b'], factorial_unbalanced)
        with pytest.warns(UserWarning, match="treatment"):
            table = anova_table(model, ss_type=3)
        assert any("Type III" in w for w in table.warnings)

    def test_type3_interaction_matches_type1(self, factorial_unbalanced):
        model = _lm(['a', 'b', 'a:b'], factorial_unbalanced, contrasts={'a': Sum(), 'b': Sum()})
        t1 = anova_table(model, ss_type=1)
        t3 = anova_table(model, ss_type=3)
        assert t3.row('a:b').sum_sq == pytest.approx(t1.row('a:b').sum_sq)

    def test_invalid_type(self, oneway_balanced):
        with pytest.raises(ValidationError, match="ss_type"):
            anova_table(_lm(['group'], oneway_balanced), ss_type=4)


# ═══════════════════════════════════════════════════════════════════════
# Effect sizes and output
# ═══════════════════════════════════════════════════════════════════════


class TestEffectSizes:

    def test_eta_squared(self, factorial_unbalanced):
        model = _lm(['a', 'b'], factorial_unbalanced)
        table = anova_table(model)
        total = sum(row.sum_sq for row in table.table)
        row = table.row('b')
        assert table.eta_squared['b'] == pytest.approx(row.sum_sq / total)
        assert table.partial_eta_squared['b'] == pytest.approx(
            row.sum_sq / (row.sum_sq + table.residual_ss)
        )

    def test_row_lookup(self, oneway_balanced):
        table = anova_table(_lm(['group'], oneway_balanced))
        assert table.params.ss_type == 1
        assert table.params.n_obs == 30
        assert table.row('Residuals').f_value is None
        with pytest.raises(KeyError):
            table.row('dose')

    def test_summary(self, factorial_unbalanced):
        table = anova_table(_lm(['a', 'b'], factorial_unbalanced), ss_type=2)
        text = table.summary()
        assert 'Type 2' in text
        assert 'Residuals' in text
        assert 'partial eta^2' in text
