"""
Linear least-squares fitting.

Public API:
    fit(design, response, ...) -> FittedModel
    lm(spec, dataset, ...) -> FittedModel

fit() is the single entry point for numeric designs. It handles:
    - Response validation (length, finiteness)
    - Backend selection ('qr' reference, 'svd')
    - Rank check (RankDeficientError names the aliased columns)
    - Result wrapping

Example:
    >>> from pylmcompare.design import ModelSpec, build_design
    >>> from pylmcompare.regression import fit
    >>> design = build_design(ModelSpec(terms=['group'], response='y'), ds)
    >>> model = fit(design, ds.numeric('y'))
    >>> print(model.summary())
"""

from pylmcompare.regression.solution import FittedModel, LinearParams
from pylmcompare.regression.solvers import fit, lm

__all__ = [
    "fit",
    "lm",
    "FittedModel",
    "LinearParams",
]
