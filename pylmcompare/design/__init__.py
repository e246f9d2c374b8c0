"""
Design matrix construction.

Public API:
    ModelSpec, Term                 explicit model specification
    build_design(spec, dataset)     -> DesignMatrix
    parse_formula(text)             -> ModelSpec (optional front end)
    Treatment, Sum, Helmert, Poly, Custom, Hypothesis
                                    contrast codings, carried by value

Example:
    >>> from pylmcompare.design import ModelSpec, Sum, build_design
    >>> spec = ModelSpec(terms=['group', 'dose', 'group:dose'],
    ...                  contrasts={'group': Sum()}, response='y')
    >>> design = build_design(spec, ds)
    >>> design.column_names
"""

from pylmcompare.design.contrasts import (
    ContrastMatrix,
    Treatment,
    Sum,
    Helmert,
    Poly,
    Custom,
    Hypothesis,
    CODINGS,
    resolve_coding,
)
from pylmcompare.design.spec import ModelSpec, Term
from pylmcompare.design.builder import DesignMatrix, build_design, extract_response, INTERCEPT
from pylmcompare.design.formula import parse_formula

__all__ = [
    "ModelSpec",
    "Term",
    "DesignMatrix",
    "build_design",
    "extract_response",
    "parse_formula",
    "INTERCEPT",
    "ContrastMatrix",
    "Treatment",
    "Sum",
    "Helmert",
    "Poly",
    "Custom",
    "Hypothesis",
    "CODINGS",
    "resolve_coding",
]
