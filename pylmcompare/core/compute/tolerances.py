"""
Numeric tolerances for rank detection and model comparison.

This is the library's only configuration surface. Tolerances are a frozen
value passed explicitly to the operations that need them; there is no
process-wide setting to mutate.

Used by the regression backends (rank cut-off) and the comparator (nesting
and RSS-ordering checks). REFERENCE_RTOL is the agreement the tests require
between computed p-values and reference values.
"""

from dataclasses import dataclass, replace

import numpy as np


@dataclass(frozen=True)
class NumericTolerances:
    """
    Tolerance specification for numerical decisions.

    Attributes:
        rank_rtol: Relative cut-off for numerical rank. A QR diagonal entry
            (or singular value) counts toward the rank when it exceeds
            rank_rtol times the largest one. None selects
            max(n, p) * machine epsilon, the LAPACK convention.
        nesting_rtol: Largest relative projection residual of a restricted
            model's columns on the general model's column space that still
            counts as nested.
        rss_rtol: Relative amount by which the general model's RSS may exceed
            the restricted model's RSS (floating-point noise) before the
            comparison is rejected. Differences inside the tolerance are
            clamped to zero.
    """
    rank_rtol: float | None = None
    nesting_rtol: float = 1e-8
    rss_rtol: float = 1e-10

    def rank_cutoff(self, shape: tuple[int, int]) -> float:
        """Relative rank cut-off for a matrix of the given shape."""
        if self.rank_rtol is not None:
            return self.rank_rtol
        return max(shape) * float(np.finfo(np.float64).eps)

    def with_overrides(self, **changes: float | None) -> 'NumericTolerances':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_TOLERANCES = NumericTolerances()

# Agreement expected between this library's p-values and reference tables
REFERENCE_RTOL = 1e-10
