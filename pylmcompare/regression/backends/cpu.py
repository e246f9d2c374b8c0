"""
CPU backends for linear least squares.

CPUQRBackend uses column-pivoted Householder QR (LAPACK geqp3) and is the
reference implementation that replicates R's lm() estimates. CPUSVDBackend
uses the thin SVD, whose singular values give the most reliable rank
estimate and the condition number.

Neither backend drops aliased columns: a rank-deficient design raises
RankDeficientError naming the columns pivoting found dependent.
"""

from typing import Any
import logging

import numpy as np
from numpy.typing import NDArray

from pylmcompare.core.result import Result
from pylmcompare.core.exceptions import RankDeficientError
from pylmcompare.core.compute.timing import Timer
from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES
from pylmcompare.core.compute.linalg.qr import qr_pivoted, qr_solve
from pylmcompare.core.compute.linalg.svd import svd_thin, svd_solve
from pylmcompare.regression.solution import LinearParams

logger = logging.getLogger(__name__)


class CPUQRBackend:
    """
    CPU backend using column-pivoted QR decomposition.

    Implements the Backend protocol for (X, y) -> LinearParams.
    """

    def __init__(self, tolerances: NumericTolerances = DEFAULT_TOLERANCES):
        self._tolerances = tolerances

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(
        self,
        X: NDArray[np.floating[Any]],
        y: NDArray[np.floating[Any]],
        column_names: tuple[str, ...],
    ) -> Result[LinearParams]:
        """
        Solve OLS via pivoted QR.

        Algorithm:
            1. X P = Q R with |diag(R)| non-increasing
            2. rank = #{|R_ii| > tol * |R_11|}; rank < p raises
            3. beta = P R^-1 Q'y, (X'X)^-1 = P R^-1 R^-T P'

        Raises:
            RankDeficientError: If rank(X) < p
        """
        timer = Timer()
        timer.start()
        n, p = X.shape

        with timer.section('qr_decomposition'):
            qr_result = qr_pivoted(X, self._tolerances)

        if qr_result.rank < p:
            _raise_rank_deficient(qr_result.rank, p, qr_result.aliased, column_names)

        with timer.section('solve'):
            coefficients, unscaled_cov = qr_solve(qr_result, y)

        params = _finish(X, y, coefficients, unscaled_cov, qr_result.rank, timer)
        timer.stop()

        diag_R = np.abs(np.diag(qr_result.R))
        info: dict[str, Any] = {
            'method': 'qr',
            'rank': qr_result.rank,
            'pivot': qr_result.pivot.tolist(),
            'rank_cutoff': self._tolerances.rank_cutoff((n, p)),
            'r_diag_ratio': float(diag_R[-1] / diag_R[0]) if p and diag_R[0] > 0 else float('nan'),
        }
        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )


class CPUSVDBackend:
    """
    CPU backend using the thin singular value decomposition.

    Slower than QR; reports the condition number of X in `info`.
    """

    def __init__(self, tolerances: NumericTolerances = DEFAULT_TOLERANCES):
        self._tolerances = tolerances

    @property
    def name(self) -> str:
        return 'cpu_svd'

    def solve(
        self,
        X: NDArray[np.floating[Any]],
        y: NDArray[np.floating[Any]],
        column_names: tuple[str, ...],
    ) -> Result[LinearParams]:
        """
        Solve OLS via thin SVD.

        Raises:
            RankDeficientError: If rank(X) < p. Aliased columns are
                identified with a pivoted QR so the names match the QR
                backend.
        """
        timer = Timer()
        timer.start()
        n, p = X.shape

        with timer.section('svd'):
            svd_result = svd_thin(X, self._tolerances)

        if svd_result.rank < p:
            aliased = qr_pivoted(X, self._tolerances).aliased
            _raise_rank_deficient(svd_result.rank, p, aliased, column_names)

        with timer.section('solve'):
            coefficients, unscaled_cov = svd_solve(svd_result, y)

        params = _finish(X, y, coefficients, unscaled_cov, svd_result.rank, timer)
        timer.stop()

        info: dict[str, Any] = {
            'method': 'svd',
            'rank': svd_result.rank,
            'singular_values': svd_result.s.tolist(),
            'condition_number': svd_result.condition_number,
            'rank_cutoff': self._tolerances.rank_cutoff((n, p)),
        }
        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )


def _finish(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    coefficients: NDArray[np.floating[Any]],
    unscaled_cov: NDArray[np.floating[Any]],
    rank: int,
    timer: Timer,
) -> LinearParams:
    n = X.shape[0]
    with timer.section('residuals'):
        fitted_values = X @ coefficients
        residuals = y - fitted_values

    with timer.section('statistics'):
        rss = float(residuals @ residuals)
        centered = y - np.mean(y) if n else y
        tss = float(centered @ centered)

    return LinearParams(
        coefficients=coefficients,
        residuals=residuals,
        fitted_values=fitted_values,
        rss=rss,
        tss=tss,
        rank=rank,
        df_residual=n - rank,
        unscaled_cov=unscaled_cov,
    )


def _raise_rank_deficient(
    rank: int,
    p: int,
    aliased_index: NDArray[np.intp],
    column_names: tuple[str, ...],
) -> None:
    aliased = tuple(column_names[i] for i in aliased_index)
    logger.debug("Rank-deficient design: rank %d < %d, aliased %s", rank, p, aliased)
    raise RankDeficientError(
        f"Design matrix is rank deficient: rank {rank} < {p} columns. "
        f"Aliased (linearly dependent) columns: {list(aliased)}",
        rank=rank,
        expected_rank=p,
        aliased=aliased,
    )
