"""
Batch comparisons.

Comparisons of independent model pairs share no state, so they are
distributed over joblib workers. n_jobs=1 runs in-process; any n_jobs
returns results in input order.
"""

from typing import Iterable, Sequence
import logging

from joblib import Parallel, delayed

from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES
from pylmcompare.core.exceptions import ValidationError
from pylmcompare.regression.solution import FittedModel
from pylmcompare.comparison.solvers import compare, bayes_factor
from pylmcompare.comparison.solution import ComparisonResult, BayesFactorResult

logger = logging.getLogger(__name__)


def compare_many(
    pairs: Iterable[tuple[FittedModel, FittedModel]],
    *,
    n_jobs: int = 1,
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> list[ComparisonResult]:
    """
    compare() over many (restricted, general) pairs.

    Args:
        pairs: (restricted, general) model pairs
        n_jobs: joblib worker count (-1 = all cores)

    Returns:
        One ComparisonResult per pair, in input order. The first invalid
        pair raises, as compare() would.
    """
    pairs = list(pairs)
    _check_n_jobs(n_jobs)
    logger.debug("Comparing %d model pairs with n_jobs=%d", len(pairs), n_jobs)
    if n_jobs == 1:
        return [compare(r, g, tolerances=tolerances) for r, g in pairs]
    return list(Parallel(n_jobs=n_jobs, backend="loky", verbose=0)(
        delayed(compare)(r, g, tolerances=tolerances) for r, g in pairs
    ))


def sweep_bayes_factor(
    restricted: FittedModel,
    general: FittedModel,
    r_scales: Sequence[float],
    *,
    n_jobs: int = 1,
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> list[BayesFactorResult]:
    """
    bayes_factor() for one model pair over several prior scales.

    A robustness check: how the evidence changes with the prior width.

    Returns:
        One BayesFactorResult per scale, in input order
    """
    r_scales = [float(r) for r in r_scales]
    if not r_scales:
        raise ValidationError("sweep_bayes_factor() needs at least one r_scale")
    _check_n_jobs(n_jobs)
    if n_jobs == 1:
        return [
            bayes_factor(restricted, general, r_scale=r, tolerances=tolerances)
            for r in r_scales
        ]
    return list(Parallel(n_jobs=n_jobs, backend="loky", verbose=0)(
        delayed(bayes_factor)(restricted, general, r_scale=r, tolerances=tolerances)
        for r in r_scales
    ))


def _check_n_jobs(n_jobs: int) -> None:
    if not isinstance(n_jobs, int) or n_jobs == 0 or n_jobs < -1:
        raise ValidationError(f"n_jobs must be a positive integer or -1, got {n_jobs!r}")
