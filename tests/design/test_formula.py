"""
Tests for the formula front end.
"""

import numpy as np
import pytest

from pylmcompare.core.exceptions import ValidationError
from pylmcompare.design import ModelSpec, Sum, build_design, parse_formula


class TestParseFormula:

    def test_main_effects(self):
        spec = parse_formula('y ~ a + b')
        assert spec.response == 'y'
        assert spec.term_names == ('a', 'b')
        assert spec.intercept

    def test_star_expansion(self):
        spec = parse_formula('y ~ a * b')
        assert spec.term_names == ('a', 'b', 'a:b')

    def test_three_way_star(self):
        spec = parse_formula('y ~ a * b * c')
        assert len(spec.terms) == 7
        assert 'a:b:c' in spec.term_names

    def test_star_with_interaction_operand(self):
        spec = parse_formula('y ~ a * b:c')
        assert spec.term_names == ('a', 'b:c', 'a:b:c')

    def test_removal(self):
        spec = parse_formula('y ~ a * b - a:b')
        assert spec.term_names == ('a', 'b')

    def test_removal_either_order(self):
        spec = parse_formula('y ~ a * b - b:a')
        assert spec.term_names == ('a', 'b')

    @pytest.mark.parametrize("formula", ['y ~ 0 + a', 'y ~ a - 1', 'y ~ a + 0'])
    def test_no_intercept(self, formula):
        assert not parse_formula(formula).intercept

    def test_intercept_only(self):
        spec = parse_formula('y ~ 1')
        assert spec.terms == ()
        assert spec.intercept

    def test_one_sided(self):
        spec = parse_formula('~ a + b')
        assert spec.response is None

    def test_dotted_names(self):
        spec = parse_formula('weight.kg ~ dose_1 + group.x')
        assert spec.response == 'weight.kg'
        assert spec.term_names == ('dose_1', 'group.x')

    def test_duplicate_terms_collapsed(self):
        spec = parse_formula('y ~ a + a + b:a + a:b')
        assert spec.term_names == ('a', 'b:a')

    def test_contrasts_carried(self):
        spec = parse_formula('y ~ g', contrasts={'g': Sum()}, default_coding=None)
        assert isinstance(spec.contrasts['g'], Sum)
        assert spec.default_coding is None

    @pytest.mark.parametrize("formula", [
        'y ~ a ~ b',
        'y ~ ',
        'y ~ a + 3x',
        'y ~ a + (b)',
        '2y ~ a',
    ])
    def test_malformed(self, formula):
        with pytest.raises(ValidationError):
            parse_formula(formula)

    def test_matches_explicit_spec(self, factorial_unbalanced):
        from_formula = build_design(parse_formula('y ~ a * b + cov'), factorial_unbalanced)
        explicit = build_design(
            ModelSpec(terms=['a', 'b', 'a:b', 'cov'], response='y'), factorial_unbalanced,
        )
        assert from_formula.column_names == explicit.column_names
        np.testing.assert_array_equal(from_formula.X, explicit.X)
