"""
Core infrastructure for pylmcompare.

Shared abstractions used by every domain sub-package (design, regression,
comparison, contrast).

Key components:
    dataset: Dataset / Column (read-only input table)
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    protocols: Backend protocol
    compute: Timing, tolerances, linear algebra kernels
"""

from pylmcompare.core.dataset import Dataset, Column, NUMERIC, CATEGORICAL
from pylmcompare.core.protocols import Backend
from pylmcompare.core.result import Result
from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES
from pylmcompare.core.exceptions import (
    PyLMCompareError,
    ValidationError,
    DimensionError,
    DimensionMismatchError,
    MissingValueError,
    ContrastError,
    MissingContrastError,
    NumericalError,
    RankDeficientError,
    InvalidComparisonError,
)

__all__ = [
    # Data
    "Dataset",
    "Column",
    "NUMERIC",
    "CATEGORICAL",
    # Protocols
    "Backend",
    # Result
    "Result",
    # Configuration
    "NumericTolerances",
    "DEFAULT_TOLERANCES",
    # Exceptions
    "PyLMCompareError",
    "ValidationError",
    "DimensionError",
    "DimensionMismatchError",
    "MissingValueError",
    "ContrastError",
    "MissingContrastError",
    "NumericalError",
    "RankDeficientError",
    "InvalidComparisonError",
]
