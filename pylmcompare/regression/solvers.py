"""
Solver dispatch for regression.

This module provides fit() and lm() (public API) and backend selection.
"""

from __future__ import annotations

from typing import Literal
import logging

from numpy.typing import ArrayLike

from pylmcompare.core.dataset import Dataset
from pylmcompare.core.protocols import Backend
from pylmcompare.core.exceptions import ValidationError
from pylmcompare.core.validation import check_array, check_finite, check_1d, check_length
from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES
from pylmcompare.design.builder import DesignMatrix, build_design, extract_response
from pylmcompare.design.spec import ModelSpec
from pylmcompare.regression.solution import FittedModel
from pylmcompare.regression.backends.cpu import CPUQRBackend, CPUSVDBackend

logger = logging.getLogger(__name__)

BackendChoice = Literal['qr', 'svd', 'cpu_qr', 'cpu_svd']


def fit(
    design: DesignMatrix,
    response: ArrayLike,
    *,
    backend: BackendChoice | Backend = 'qr',
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> FittedModel:
    """
    Fit a linear model by least squares.

    Solves min_beta ||y - X beta||^2 for a full-rank design. The result is
    deterministic: the same design and response give bit-identical output.

    Args:
        design: DesignMatrix from build_design()
        response: Response vector, one value per design row
        backend: 'qr' (column-pivoted Householder QR, reference), 'svd', or
            any object implementing the Backend protocol
        tolerances: Rank cut-off for the decomposition

    Returns:
        FittedModel with coefficients, residuals, RSS and diagnostics

    Raises:
        DimensionMismatchError: len(response) != design rows
        ValidationError: Response is not a finite numeric vector
        RankDeficientError: rank(X) < number of columns; carries the
            aliased column names

    Example:
        >>> design = build_design(spec, ds)
        >>> model = fit(design, ds.numeric('y'))
        >>> print(model.summary())
    """
    # This is the boundary - validate here, trust everywhere else
    y = check_array(response, 'response')
    if y.ndim == 2 and y.shape[1] == 1:
        y = y.ravel()
    check_1d(y, 'response')
    check_length(y, design.n, 'response')
    check_finite(y, 'response')
    y = y.copy()
    y.setflags(write=False)

    backend_impl = _get_backend(backend, tolerances)
    logger.debug(
        "Fitting %s: n=%d p=%d backend=%s", design.spec, design.n, design.p, backend_impl.name,
    )
    result = backend_impl.solve(design.X, y, design.column_names)
    return FittedModel(_result=result, design=design, response=y)


def lm(
    spec: ModelSpec,
    dataset: Dataset,
    *,
    backend: BackendChoice | Backend = 'qr',
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> FittedModel:
    """
    Build the design for `spec` and fit it to the spec's response column.

    Raises:
        ValidationError: spec.response is not set or not a numeric column
        (plus everything build_design() and fit() raise)
    """
    if spec.response is None:
        raise ValidationError("lm() requires a ModelSpec with a response column")
    design = build_design(spec, dataset, tolerances=tolerances)
    y = extract_response(dataset, spec.response)
    return fit(design, y, backend=backend, tolerances=tolerances)


def _get_backend(choice: BackendChoice | Backend, tolerances: NumericTolerances) -> Backend:
    """
    Instantiate the requested backend, or pass a Backend object through.

    Raises:
        ValueError: If unknown backend specified
    """
    if isinstance(choice, Backend):
        return choice
    if choice in ('qr', 'cpu_qr'):
        return CPUQRBackend(tolerances)
    if choice in ('svd', 'cpu_svd'):
        return CPUSVDBackend(tolerances)
    raise ValueError(
        f"Unknown backend: {choice!r}. Valid options: 'qr', 'svd'"
    )


__all__ = ['fit', 'lm', 'BackendChoice']
