"""
Formula front end.

Parses R-style model formulas once into a ModelSpec. Nothing downstream of
this module ever sees formula text.

Supported syntax:
    y ~ a + b           main effects
    y ~ a:b             a single interaction
    y ~ a * b * c       all main effects plus every interaction among them
    y ~ a + b - a       removal of a term
    y ~ 0 + a, y ~ a - 1  no intercept
    y ~ 1               intercept only
"""

from __future__ import annotations

from itertools import combinations
from typing import Mapping
import re

from pylmcompare.core.exceptions import ValidationError
from pylmcompare.design.contrasts import CodingLike
from pylmcompare.design.spec import ModelSpec, Term

_IDENT = r"[^\W\d][\w.]*"
_CHUNK = re.compile(r"([+-]?)([^+-]+)")


def parse_formula(
    formula: str,
    *,
    contrasts: Mapping[str, CodingLike] | None = None,
    default_coding: CodingLike | None = 'treatment',
) -> ModelSpec:
    """
    Parse an R-style formula into a ModelSpec.

    Args:
        formula: e.g. "y ~ group * dose - 1". The left-hand side is optional.
        contrasts: factor name -> coding, carried into the spec by value
        default_coding: Coding for factors not listed in `contrasts`

    Returns:
        ModelSpec with terms in order of first appearance

    Raises:
        ValidationError: Malformed formula
    """
    text = formula.replace(" ", "")
    if text.count("~") > 1:
        raise ValidationError(f"Formula has more than one '~': {formula!r}")
    if "~" in text:
        lhs, rhs = text.split("~", 1)
        response = lhs or None
        if response is not None and not re.fullmatch(_IDENT, response):
            raise ValidationError(f"Invalid response name {response!r} in {formula!r}")
    else:
        response, rhs = None, text

    if not rhs:
        raise ValidationError(f"Formula has an empty right-hand side: {formula!r}")
    if _CHUNK.sub("", rhs):
        raise ValidationError(f"Cannot parse formula {formula!r}")

    terms: list[Term] = []
    intercept = True
    for sign, chunk in _CHUNK.findall(rhs):
        if chunk in ("0", "1"):
            intercept = (chunk == "1") == (sign != "-")
            continue

        expanded = _expand(chunk, formula)
        if sign == "-":
            drop = {frozenset(t.factors) for t in expanded}
            terms = [t for t in terms if frozenset(t.factors) not in drop]
        else:
            present = {frozenset(t.factors) for t in terms}
            for term in expanded:
                if frozenset(term.factors) not in present:
                    terms.append(term)
                    present.add(frozenset(term.factors))

    return ModelSpec(
        terms=tuple(terms),
        contrasts=dict(contrasts or {}),
        default_coding=default_coding,
        intercept=intercept,
        response=response,
    )


def _expand(chunk: str, formula: str) -> list[Term]:
    """Terms generated by one additive chunk ('a', 'a:b', 'a*b*c')."""
    if "*" in chunk:
        factors = chunk.split("*")
        for name in factors:
            _check_term(name, formula)
        # a*b:c is (a) * (b:c); each product operand is a term
        operands = [tuple(f.split(":")) for f in factors]
        out: list[Term] = []
        for r in range(1, len(operands) + 1):
            for combo in combinations(operands, r):
                names = tuple(dict.fromkeys(n for op in combo for n in op))
                out.append(Term(names))
        return out

    _check_term(chunk, formula)
    return [Term(tuple(chunk.split(":")))]


def _check_term(text: str, formula: str) -> None:
    for name in text.split(":"):
        if not re.fullmatch(_IDENT, name):
            raise ValidationError(f"Invalid term {text!r} in formula {formula!r}")
