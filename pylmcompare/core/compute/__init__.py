"""
Shared compute infrastructure for pylmcompare.

Domain-specific backends live in {domain}/backends/. This module contains
shared numeric infrastructure only.

Submodules:
    timing: Execution timing utilities
    tolerances: Numeric tolerances (rank cut-off, nesting, RSS ordering)
    linalg: Linear algebra kernels (pivoted QR, thin SVD)
"""

from pylmcompare.core.compute.timing import Timer
from pylmcompare.core.compute.tolerances import (
    NumericTolerances,
    DEFAULT_TOLERANCES,
)

__all__ = [
    "Timer",
    "NumericTolerances",
    "DEFAULT_TOLERANCES",
]
