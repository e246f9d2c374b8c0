"""
SVD kernels.

The thin SVD gives the most robust rank estimate (ratio of singular values)
at roughly twice the cost of QR. Used by the 'svd' regression backend.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES


@dataclass(frozen=True)
class SVDResult:
    """Thin SVD X = U diag(s) Vt with numerical rank."""
    U: NDArray[np.floating[Any]]
    s: NDArray[np.floating[Any]]
    Vt: NDArray[np.floating[Any]]
    rank: int

    @property
    def condition_number(self) -> float:
        if self.rank == 0 or self.s[-1] == 0:
            return float('inf')
        return float(self.s[0] / self.s[-1])


def svd_thin(
    X: NDArray[np.floating[Any]],
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> SVDResult:
    """Thin SVD of X with rank from the relative singular-value cut-off."""
    n, p = X.shape
    U, s, Vt = np.linalg.svd(X, full_matrices=False)

    if len(s) > 0 and s[0] > 0:
        rank = int(np.sum(s > tolerances.rank_cutoff((n, p)) * s[0]))
    else:
        rank = 0

    return SVDResult(U=U, s=s, Vt=Vt, rank=rank)


def svd_solve(
    svd_result: SVDResult,
    y: NDArray[np.floating[Any]],
) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
    """
    Solve least squares from a full-rank thin SVD.

    beta = V diag(1/s) U'y, (X'X)^-1 = V diag(1/s^2) V'.
    """
    V = svd_result.Vt.T
    inv_s = 1.0 / svd_result.s
    beta = V @ (inv_s * (svd_result.U.T @ y))
    cov = (V * inv_s ** 2) @ V.T
    return beta, cov
