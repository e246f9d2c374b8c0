"""
pylmcompare: General Linear Model comparison.

Build design matrices from explicit model specifications, fit them by
least squares with a pivoted QR decomposition, compare nested models with
F tests (or default Bayes factors), and evaluate linear contrasts with
pluggable multiple-comparison adjustment.

Submodules:
    core: Dataset, exceptions, tolerances, linear algebra kernels
    design: ModelSpec, contrast codings, build_design, parse_formula
    regression: fit, lm, FittedModel
    comparison: compare, compare_sequence, anova_table, bayes_factor
    contrasts: contrast, marginal_means, pairwise, p_adjust
"""

__version__ = "0.1.0"

from pylmcompare import core, design, regression, comparison, contrasts
from pylmcompare.core import (
    Dataset,
    NumericTolerances,
    DEFAULT_TOLERANCES,
    PyLMCompareError,
    ValidationError,
    DimensionMismatchError,
    MissingValueError,
    ContrastError,
    MissingContrastError,
    RankDeficientError,
    InvalidComparisonError,
)
from pylmcompare.design import (
    ModelSpec,
    Term,
    DesignMatrix,
    build_design,
    parse_formula,
    Treatment,
    Sum,
    Helmert,
    Poly,
    Custom,
    Hypothesis,
)
from pylmcompare.regression import fit, lm, FittedModel
from pylmcompare.comparison import (
    compare,
    compare_sequence,
    anova_table,
    bayes_factor,
    compare_many,
    sweep_bayes_factor,
    ComparisonResult,
)
from pylmcompare.contrasts import (
    contrast,
    marginal_means,
    pairwise,
    p_adjust,
    CellMeans,
    ContrastResult,
    AdjustmentPolicy,
)

__all__ = [
    "__version__",
    # Submodules
    "core",
    "design",
    "regression",
    "comparison",
    "contrasts",
    # Data
    "Dataset",
    "NumericTolerances",
    "DEFAULT_TOLERANCES",
    # Design
    "ModelSpec",
    "Term",
    "DesignMatrix",
    "build_design",
    "parse_formula",
    "Treatment",
    "Sum",
    "Helmert",
    "Poly",
    "Custom",
    "Hypothesis",
    # Fitting
    "fit",
    "lm",
    "FittedModel",
    # Comparison
    "compare",
    "compare_sequence",
    "anova_table",
    "bayes_factor",
    "compare_many",
    "sweep_bayes_factor",
    "ComparisonResult",
    # Contrasts
    "contrast",
    "marginal_means",
    "pairwise",
    "p_adjust",
    "CellMeans",
    "ContrastResult",
    "AdjustmentPolicy",
    # Exceptions
    "PyLMCompareError",
    "ValidationError",
    "DimensionMismatchError",
    "MissingValueError",
    "ContrastError",
    "MissingContrastError",
    "RankDeficientError",
    "InvalidComparisonError",
]
