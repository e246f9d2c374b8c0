"""
Nested linear model comparison.

Public API:
    compare(restricted, general) -> ComparisonResult
    compare_sequence(*models) -> ModelSequence
    anova_table(model, ss_type=1|2|3) -> AnovaTable
    bayes_factor(restricted, general, r_scale=...) -> BayesFactorResult
    compare_many(pairs, n_jobs=1) -> list[ComparisonResult]
    sweep_bayes_factor(restricted, general, r_scales, n_jobs=1)

Example:
    >>> from pylmcompare.comparison import compare
    >>> result = compare(reduced, full)
    >>> print(result.summary())
"""

from pylmcompare.comparison._common import (
    ComparisonParams,
    AnovaTableParams,
    AnovaTableRow,
    SequenceParams,
    SequenceRow,
    BayesFactorParams,
)
from pylmcompare.comparison.solution import (
    ComparisonResult,
    ModelSequence,
    AnovaTable,
    BayesFactorResult,
)
from pylmcompare.comparison.solvers import compare, compare_sequence, anova_table, bayes_factor
from pylmcompare.comparison.batch import compare_many, sweep_bayes_factor

__all__ = [
    # Solvers
    "compare",
    "compare_sequence",
    "anova_table",
    "bayes_factor",
    "compare_many",
    "sweep_bayes_factor",
    # Solutions
    "ComparisonResult",
    "ModelSequence",
    "AnovaTable",
    "BayesFactorResult",
    # Params
    "ComparisonParams",
    "AnovaTableParams",
    "AnovaTableRow",
    "SequenceParams",
    "SequenceRow",
    "BayesFactorParams",
]
