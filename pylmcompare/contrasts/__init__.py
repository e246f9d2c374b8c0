"""
Linear contrasts with multiplicity adjustment.

Public API:
    contrast(source, weights, adjust='none') -> ContrastResult
    marginal_means(model, factor) -> CellMeans
    pairwise(means, adjust='tukey') -> ContrastResult
    p_adjust(p, method='holm') -> ndarray

Adjustment policies are pluggable: pass a name or any object with
`adjust(family)` and `critical_value(family, conf_level)`.

Example:
    >>> from pylmcompare.contrasts import CellMeans, contrast
    >>> means = CellMeans.from_summary([10, 20, 30, 40], [1, 1, 1, 1], df=20)
    >>> contrast(means, {'AB vs CD': [.5, .5, -.5, -.5]}).estimates
    array([-20.])
"""

from pylmcompare.contrasts._adjust import (
    p_adjust,
    AdjustmentPolicy,
    ContrastFamily,
    NoAdjustment,
    Bonferroni,
    PAdjust,
    Tukey,
    Scheffe,
    POLICIES,
    resolve_policy,
)
from pylmcompare.contrasts._common import CellMeans, ContrastParams
from pylmcompare.contrasts.solution import ContrastResult
from pylmcompare.contrasts.solvers import contrast, marginal_means, pairwise

__all__ = [
    # Solvers
    "contrast",
    "marginal_means",
    "pairwise",
    "p_adjust",
    # Types
    "CellMeans",
    "ContrastResult",
    "ContrastParams",
    "ContrastFamily",
    # Policies
    "AdjustmentPolicy",
    "NoAdjustment",
    "Bonferroni",
    "PAdjust",
    "Tukey",
    "Scheffe",
    "POLICIES",
    "resolve_policy",
]
