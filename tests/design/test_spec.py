"""
Tests for Term and ModelSpec.
"""

from dataclasses import FrozenInstanceError

import pytest

from pylmcompare.core.exceptions import ValidationError
from pylmcompare.design.contrasts import Sum
from pylmcompare.design.spec import ModelSpec, Term


class TestTerm:

    def test_parse(self):
        term = Term.parse('a:b')
        assert term.factors == ('a', 'b')
        assert term.name == 'a:b'
        assert term.order == 2
        assert term.is_interaction

    def test_single_string(self):
        assert Term('a').factors == ('a',)

    def test_contains(self):
        assert Term.parse('a:b:c').contains(Term.parse('a:c'))
        assert not Term.parse('a:b').contains(Term.parse('a:b'))
        assert not Term.parse('a:b').contains(Term.parse('c'))

    def test_repeated_predictor(self):
        with pytest.raises(ValidationError, match="repeats"):
            Term(('a', 'a'))

    def test_empty(self):
        with pytest.raises(ValidationError):
            Term(())


class TestModelSpec:

    def test_terms_from_strings(self):
        spec = ModelSpec(terms=['a', 'b', 'a:b'], response='y')
        assert spec.term_names == ('a', 'b', 'a:b')
        assert spec.predictors == ('a', 'b')

    def test_interaction_order_independent_duplicate(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            ModelSpec(terms=['a:b', 'b:a'])

    def test_no_terms_no_intercept(self):
        with pytest.raises(ValidationError, match="no terms and no intercept"):
            ModelSpec(terms=(), intercept=False)

    def test_intercept_only(self):
        spec = ModelSpec(terms=(), response='y')
        assert spec.predictors == ()
        assert str(spec) == 'y ~ 1'

    def test_response_as_predictor(self):
        with pytest.raises(ValidationError, match="also appears"):
            ModelSpec(terms=['y', 'x'], response='y')

    def test_ordered_terms(self):
        spec = ModelSpec(terms=['a:b:c', 'a', 'b:c', 'b', 'c'])
        assert [t.name for t in spec.ordered_terms()] == ['a', 'b', 'c', 'b:c', 'a:b:c']

    def test_coding_for(self):
        spec = ModelSpec(terms=['a', 'b'], contrasts={'a': 'sum'}, default_coding='helmert')
        assert spec.coding_for('a') == 'sum'
        assert spec.coding_for('b') == 'helmert'

    def test_contrasts_read_only(self):
        spec = ModelSpec(terms=['a'], contrasts={'a': 'sum'})
        with pytest.raises(TypeError):
            spec.contrasts['a'] = 'treatment'

    def test_drop_matches_interaction_in_either_order(self):
        spec = ModelSpec(terms=['a', 'b', 'a:b'])
        assert spec.drop(['b:a']).term_names == ('a', 'b')

    def test_drop_unknown(self):
        spec = ModelSpec(terms=['a'])
        with pytest.raises(ValidationError, match="not in model"):
            spec.drop(['b'])

    def test_add_and_with_contrasts(self):
        spec = ModelSpec(terms=['a']).add('b', 'a:b').with_contrasts(a=Sum())
        assert spec.term_names == ('a', 'b', 'a:b')
        assert isinstance(spec.contrasts['a'], Sum)

    def test_str(self):
        spec = ModelSpec(terms=['a', 'a:b'], intercept=False, response='y')
        assert str(spec) == 'y ~ a + a:b + 0'

    def test_frozen(self):
        spec = ModelSpec(terms=['a'])
        with pytest.raises(FrozenInstanceError):
            spec.intercept = False
