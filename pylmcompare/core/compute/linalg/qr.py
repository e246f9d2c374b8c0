"""
QR decomposition kernels.

Column-pivoted Householder QR (LAPACK geqp3 via SciPy) is the reference
least-squares path. Pivoting orders the columns so that the diagonal of R
is non-increasing in magnitude, which makes the numerical rank a simple
threshold count and identifies which columns are aliased.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import qr as scipy_qr, solve_triangular

from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES


@dataclass(frozen=True)
class QRResult:
    """
    Result of a column-pivoted QR decomposition X[:, pivot] = Q R.

    Attributes:
        Q: Orthonormal factor (n x k, k = min(n, p))
        R: Upper triangular factor (k x p)
        pivot: Column permutation applied to X
        rank: Numerical rank determined from the R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    pivot: NDArray[np.intp]
    rank: int

    @property
    def aliased(self) -> NDArray[np.intp]:
        """Original indices of the columns beyond the numerical rank."""
        return np.sort(self.pivot[self.rank:])

    @property
    def basis(self) -> NDArray[np.floating[Any]]:
        """Orthonormal basis of the column space of X (n x rank)."""
        return self.Q[:, :self.rank]


def qr_pivoted(
    X: NDArray[np.floating[Any]],
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> QRResult:
    """
    Column-pivoted QR decomposition with numerical rank.

    Args:
        X: Matrix to decompose (n x p)
        tolerances: Supplies the relative rank cut-off

    Returns:
        QRResult with Q, R, pivot and numerical rank
    """
    n, p = X.shape
    if n == 0 or p == 0:
        return QRResult(
            Q=np.zeros((n, 0)), R=np.zeros((0, p)),
            pivot=np.arange(p), rank=0,
        )

    Q, R, pivot = scipy_qr(X, mode='economic', pivoting=True)

    diag_R = np.abs(np.diag(R))
    if diag_R[0] > 0:
        cutoff = tolerances.rank_cutoff((n, p)) * diag_R[0]
        rank = int(np.sum(diag_R > cutoff))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, pivot=pivot, rank=rank)


def qr_solve(
    qr_result: QRResult,
    y: NDArray[np.floating[Any]],
) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
    """
    Solve min ||y - X beta||^2 from a full-rank pivoted QR.

    Computes beta = P R^-1 Q'y and the unscaled covariance
    (X'X)^-1 = P R^-1 R^-T P', both in the original column order.

    Args:
        qr_result: Decomposition of X; must have rank == p
        y: Response vector (n,)

    Returns:
        (beta, unscaled_cov)
    """
    p = qr_result.R.shape[1]
    R = qr_result.R[:p, :p]
    pivot = qr_result.pivot

    Qty = qr_result.Q[:, :p].T @ y
    beta_pivoted = solve_triangular(R, Qty, lower=False)

    R_inv = solve_triangular(R, np.eye(p), lower=False)
    cov_pivoted = R_inv @ R_inv.T

    beta = np.empty(p, dtype=np.float64)
    beta[pivot] = beta_pivoted

    cov = np.empty((p, p), dtype=np.float64)
    cov[np.ix_(pivot, pivot)] = cov_pivoted

    return beta, cov


def column_space_residual(
    basis: NDArray[np.floating[Any]],
    A: NDArray[np.floating[Any]],
) -> float:
    """
    Largest relative residual of A's columns after projection onto span(basis).

    For each column a of A, computes ||a - B B'a|| / ||a|| where B is an
    orthonormal basis. Zero columns contribute zero. A result near zero
    means every column of A lies in the column space spanned by B.

    Args:
        basis: Orthonormal basis (n x r)
        A: Matrix whose columns are tested (n x q)

    Returns:
        Maximum relative residual over the columns of A (0.0 if A has none)
    """
    if A.shape[1] == 0:
        return 0.0

    projected = basis @ (basis.T @ A)
    residual_norms = np.linalg.norm(A - projected, axis=0)
    column_norms = np.linalg.norm(A, axis=0)

    nonzero = column_norms > 0
    if not np.any(nonzero):
        return 0.0
    return float(np.max(residual_norms[nonzero] / column_norms[nonzero]))
