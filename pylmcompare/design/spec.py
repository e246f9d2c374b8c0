"""
Structured model specification.

A ModelSpec is the explicit, already-parsed description of a linear model:
which terms enter, how each categorical factor is coded, and whether an
intercept is fitted. It carries its contrast codings by value, so two
specs built from the same dataset can code the same factor differently
without any shared state.

Example:
    >>> spec = ModelSpec(
    ...     terms=[Term(('group',)), Term(('dose',)), Term(('group', 'dose'))],
    ...     contrasts={'group': Sum()},
    ...     response='y',
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Union

from pylmcompare.core.exceptions import ValidationError
from pylmcompare.design.contrasts import CodingLike


@dataclass(frozen=True)
class Term:
    """
    One model term: a main effect (one predictor) or an interaction.

    Attributes:
        factors: Predictor names, in order. The order sets the column
                 order of the interaction's product columns.
    """
    factors: tuple[str, ...]

    def __post_init__(self):
        factors = tuple(self.factors) if not isinstance(self.factors, str) else (self.factors,)
        object.__setattr__(self, 'factors', factors)
        if not factors:
            raise ValidationError("Term must name at least one predictor")
        if len(set(factors)) != len(factors):
            raise ValidationError(f"Term {':'.join(factors)} repeats a predictor")
        for name in factors:
            if not isinstance(name, str) or not name:
                raise ValidationError(f"Term predictor names must be non-empty strings, got {name!r}")

    @property
    def name(self) -> str:
        return ':'.join(self.factors)

    @property
    def order(self) -> int:
        return len(self.factors)

    @property
    def is_interaction(self) -> bool:
        return len(self.factors) > 1

    def contains(self, other: Term) -> bool:
        """True if `other` is a strict sub-term (marginal to this term)."""
        return other.order < self.order and set(other.factors) <= set(self.factors)

    @classmethod
    def parse(cls, text: str) -> Term:
        """Term from 'a' or 'a:b' notation."""
        return cls(tuple(part.strip() for part in text.split(':')))


TermLike = Union[Term, str, Sequence[str]]


@dataclass(frozen=True)
class ModelSpec:
    """
    Explicit linear model specification.

    Attributes:
        terms: Model terms. Main effects are placed before interactions in
            the design matrix regardless of the order given here.
        contrasts: factor name -> coding (name, coding object, or matrix)
        default_coding: Coding for categorical predictors without an entry
            in `contrasts`. None requires every factor to be listed.
        intercept: Whether to fit an intercept column. Explicit flag; never
            inferred.
        response: Name of the response column, used by lm()
    """
    terms: tuple[Term, ...]
    contrasts: Mapping[str, CodingLike] = field(default_factory=dict)
    default_coding: CodingLike | None = 'treatment'
    intercept: bool = True
    response: str | None = None

    def __post_init__(self):
        terms = tuple(_as_term(t) for t in self.terms)
        names = [t.name for t in terms]
        seen: set[frozenset[str]] = set()
        for term in terms:
            key = frozenset(term.factors)
            if key in seen:
                raise ValidationError(f"Duplicate term {term.name!r} in {names}")
            seen.add(key)
        if not terms and not self.intercept:
            raise ValidationError("Model has no terms and no intercept")

        object.__setattr__(self, 'terms', terms)
        if self.response is not None and self.response in self.predictors:
            raise ValidationError(f"Response {self.response!r} also appears as a predictor")
        object.__setattr__(self, 'contrasts', MappingProxyType(dict(self.contrasts)))

    @property
    def predictors(self) -> tuple[str, ...]:
        """Distinct predictor names in order of first appearance."""
        return tuple(dict.fromkeys(name for t in self.terms for name in t.factors))

    @property
    def term_names(self) -> tuple[str, ...]:
        return tuple(t.name for t in self.terms)

    @property
    def main_effects(self) -> tuple[Term, ...]:
        return tuple(t for t in self.terms if not t.is_interaction)

    @property
    def interactions(self) -> tuple[Term, ...]:
        """Interaction terms ordered by degree, stable within a degree."""
        return tuple(sorted(
            (t for t in self.terms if t.is_interaction), key=lambda t: t.order,
        ))

    def ordered_terms(self) -> tuple[Term, ...]:
        """Terms in design-matrix order: main effects, then interactions."""
        return self.main_effects + self.interactions

    def coding_for(self, factor: str) -> CodingLike | None:
        """Coding attached to a factor, or the default (may be None)."""
        if factor in self.contrasts:
            return self.contrasts[factor]
        return self.default_coding

    # === Derivation ===

    def drop(self, names: Iterable[str]) -> ModelSpec:
        """Spec without the named terms ('a', 'a:b')."""
        drop = {frozenset(_as_term(n).factors): _as_term(n).name for n in names}
        present = {frozenset(t.factors) for t in self.terms}
        unknown = sorted(name for key, name in drop.items() if key not in present)
        if unknown:
            raise ValidationError(f"Terms {unknown} not in model {list(self.term_names)}")
        return replace(
            self, terms=tuple(t for t in self.terms if frozenset(t.factors) not in drop),
        )

    def add(self, *terms: TermLike) -> ModelSpec:
        """Spec with extra terms appended."""
        return replace(self, terms=self.terms + tuple(_as_term(t) for t in terms))

    def with_contrasts(self, **codings: CodingLike) -> ModelSpec:
        """Spec with codings replaced or added for the named factors."""
        merged = dict(self.contrasts)
        merged.update(codings)
        return replace(self, contrasts=merged)

    def without_intercept(self) -> ModelSpec:
        return replace(self, intercept=False)

    def __str__(self) -> str:
        rhs = [t.name for t in self.terms]
        if not self.intercept:
            rhs.append('0')
        elif not rhs:
            rhs.append('1')
        lhs = self.response or ''
        return f"{lhs} ~ {' + '.join(rhs)}".strip()


def _as_term(term: TermLike) -> Term:
    if isinstance(term, Term):
        return term
    if isinstance(term, str):
        return Term.parse(term)
    return Term(tuple(term))
