"""
Contrast evaluation.

Public API:
    contrast(source, weights, adjust='none', ...) -> ContrastResult
    marginal_means(model, factor) -> CellMeans
    pairwise(means, adjust='tukey', ...) -> ContrastResult
"""

from __future__ import annotations

from itertools import product
from typing import Any, Mapping, Sequence, Union
import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats as sp_stats

from pylmcompare.core.result import Result
from pylmcompare.core.dataset import Dataset
from pylmcompare.core.exceptions import ValidationError, DimensionMismatchError
from pylmcompare.core.validation import check_array, check_finite, check_probability
from pylmcompare.core.compute.timing import Timer
from pylmcompare.regression.solution import FittedModel
from pylmcompare.contrasts._adjust import AdjustmentPolicy, ContrastFamily, resolve_policy
from pylmcompare.contrasts._common import CellMeans, ContrastParams
from pylmcompare.contrasts.solution import ContrastResult

logger = logging.getLogger(__name__)

WeightsLike = Union[
    ArrayLike,
    Mapping[str, Union[ArrayLike, Mapping[str, float]]],
]


def contrast(
    source: FittedModel | CellMeans,
    weights: WeightsLike,
    adjust: str | AdjustmentPolicy = 'none',
    *,
    conf_level: float = 0.95,
) -> ContrastResult:
    """
    Evaluate linear contrasts of coefficients or cell means.

    Each contrast is a weight vector w; its estimate is w'b with standard
    error sqrt(w' V w), where b and V are the model coefficients and
    sigma^2 (X'X)^-1, or the cell means and their covariance.

    Args:
        source: FittedModel (weights index coefficients) or CellMeans
            (weights index means)
        weights: {name: vector} (or {name: {column or label: weight}}), a
            single vector, or a 2D array with one contrast per row
        adjust: Policy name ('none', 'bonferroni', 'holm', 'tukey',
            'scheffe', 'hochberg', 'hommel', 'BH', 'fdr', 'BY') or an
            AdjustmentPolicy object
        conf_level: Confidence level of the intervals

    Returns:
        ContrastResult. The adjustment changes only adjusted p-values and
        interval width, never estimates, SEs or t.

    Raises:
        DimensionMismatchError: A weight vector's length differs from the
            number of coefficients (or means)
        ValidationError: Unknown names, empty or non-finite weights, bad
            adjustment
    """
    check_probability(conf_level, 'conf_level')
    policy = resolve_policy(adjust)

    if isinstance(source, FittedModel):
        targets = source.column_names
        b = source.coefficients
        V = source.vcov
        df = float(source.df_residual)
        n_means = None
        kind = 'coefficients'
        if df <= 0:
            raise ValidationError("Model has no residual degrees of freedom; contrasts need df > 0")
    elif isinstance(source, CellMeans):
        targets = source.labels
        b = source.means
        V = source.covariance
        df = float(source.df)
        n_means = source.n_means
        kind = 'means'
    else:
        raise ValidationError(
            f"source must be a FittedModel or CellMeans, got {type(source).__name__}"
        )

    names, W = _weight_matrix(weights, targets)

    timer = Timer()
    timer.start()
    with timer.section('estimates'):
        estimates = W @ b
        cov = W @ V @ W.T
        se = np.sqrt(np.clip(np.diag(cov), 0.0, None))
        with np.errstate(divide='ignore', invalid='ignore'):
            t_values = estimates / se
        p_values = 2.0 * sp_stats.t.sf(np.abs(t_values), df)

    family = ContrastFamily(
        t_values=t_values, p_values=p_values, df=df, weights=W, n_means=n_means,
    )
    with timer.section('adjustment'):
        adjusted = np.asarray(policy.adjust(family), dtype=np.float64)
        if adjusted.shape != p_values.shape:
            raise ValidationError(
                f"Adjustment policy {policy.name!r} returned {adjusted.shape[0] if adjusted.ndim else 0} "
                f"p-values for {len(p_values)} contrasts"
            )
        crit = float(policy.critical_value(family, conf_level))
    timer.stop()

    result_warnings: list[str] = []
    if kind == 'means':
        for name, row in zip(names, W):
            total = float(np.sum(row))
            if abs(total) > 1e-10 * max(float(np.max(np.abs(row))), 1.0):
                result_warnings.append(
                    f"Weights of contrast {name!r} sum to {total:g}, not 0; "
                    f"it estimates a weighted mean, not a comparison"
                )

    params = ContrastParams(
        names=names,
        estimates=estimates,
        standard_errors=se,
        t_values=t_values,
        df=df,
        p_values=p_values,
        adjusted_p_values=adjusted,
        ci_lower=estimates - crit * se,
        ci_upper=estimates + crit * se,
        critical_value=crit,
        conf_level=conf_level,
        adjustment=policy.name,
        family_size=len(names),
        weights=W,
    )
    logger.debug(
        "Evaluated %d contrasts of %s with %s adjustment", len(names), kind, policy.name,
    )
    result = Result(
        params=params,
        info={
            'source': kind,
            'targets': tuple(targets),
            'factor': source.factor if isinstance(source, CellMeans) else None,
        },
        timing=timer.result(),
        backend_name='cpu',
        warnings=tuple(result_warnings),
    )
    return ContrastResult(_result=result)


def marginal_means(model: FittedModel, factor: str) -> CellMeans:
    """
    Estimated marginal means of a factor's levels.

    The model is evaluated on a balanced reference grid: every combination
    of the levels of its categorical predictors, numeric predictors at
    their sample mean. Each level's mean averages the grid predictions for
    that level with equal weight.

    Returns:
        CellMeans over the factor's levels, with covariance from the
        model's coefficient covariance and df = residual df

    Raises:
        ValidationError: `factor` is not a categorical predictor of the model
    """
    design = model.design
    if factor not in design.codings:
        raise ValidationError(
            f"{factor!r} is not a categorical predictor of the model; "
            f"categorical predictors: {list(design.codings)}"
        )

    categorical = [name for name in design.spec.predictors if name in design.codings]
    level_sets = [design.codings[name].levels for name in categorical]
    cells = list(product(*level_sets))

    columns: dict[str, Any] = {
        name: [cell[i] for cell in cells] for i, name in enumerate(categorical)
    }
    for name, mean in design.numeric_means.items():
        columns[name] = np.full(len(cells), mean)
    grid = Dataset.from_columns(
        columns,
        categorical=categorical,
        levels={name: design.codings[name].levels for name in categorical},
    )
    X_grid = design.encode(grid)

    position = categorical.index(factor)
    levels = design.codings[factor].levels
    L = np.vstack([
        X_grid[[i for i, cell in enumerate(cells) if cell[position] == level]].mean(axis=0)
        for level in levels
    ])

    return CellMeans(
        labels=tuple(levels),
        means=L @ model.coefficients,
        covariance=L @ model.vcov @ L.T,
        df=float(model.df_residual),
        factor=factor,
    )


def pairwise(
    means: CellMeans,
    adjust: str | AdjustmentPolicy = 'tukey',
    *,
    conf_level: float = 0.95,
) -> ContrastResult:
    """
    All pairwise differences of cell means, 'a - b' for a listed before b.

    Tukey adjustment (the default) uses the number of means in `means`.
    """
    if not isinstance(means, CellMeans):
        raise ValidationError(f"pairwise() needs CellMeans, got {type(means).__name__}")
    m = means.n_means
    if m < 2:
        raise ValidationError(f"pairwise() needs at least 2 means, got {m}")

    weights: dict[str, NDArray[np.floating[Any]]] = {}
    for i in range(m):
        for j in range(i + 1, m):
            row = np.zeros(m)
            row[i], row[j] = 1.0, -1.0
            weights[f"{means.labels[i]} - {means.labels[j]}"] = row
    return contrast(means, weights, adjust, conf_level=conf_level)


# === Weight parsing ===

def _weight_matrix(
    weights: WeightsLike,
    targets: Sequence[str],
) -> tuple[tuple[str, ...], NDArray[np.floating[Any]]]:
    """Named (k, len(targets)) weight matrix from any accepted form."""
    p = len(targets)
    if isinstance(weights, Mapping):
        if not weights:
            raise ValidationError("weights: at least one contrast is required")
        names = tuple(str(k) for k in weights)
        rows = [_weight_row(name, row, targets) for name, row in zip(names, weights.values())]
        W = np.vstack(rows)
    else:
        W = check_array(weights, 'weights')
        if W.ndim == 1:
            W = W.reshape(1, -1)
        if W.ndim != 2 or W.shape[0] == 0:
            raise ValidationError(f"weights: expected a vector or 2D array, got shape {W.shape}")
        if W.shape[1] != p:
            raise DimensionMismatchError(
                f"weights: expected {p} entries per contrast, got {W.shape[1]}",
                expected=p, actual=W.shape[1],
            )
        check_finite(W, 'weights')
        names = tuple(f"c{i + 1}" for i in range(W.shape[0]))
    return names, W


def _weight_row(
    name: str,
    row: ArrayLike | Mapping[str, float],
    targets: Sequence[str],
) -> NDArray[np.floating[Any]]:
    p = len(targets)
    if isinstance(row, Mapping):
        index = {t: i for i, t in enumerate(targets)}
        unknown = sorted(str(k) for k in row if k not in index)
        if unknown:
            raise ValidationError(
                f"contrast {name!r}: unknown names {unknown}; available: {list(targets)}"
            )
        vec = np.zeros(p)
        for key, value in row.items():
            vec[index[key]] = float(value)
        check_finite(vec, f"contrast {name!r}")
        return vec

    vec = check_array(row, f"contrast {name!r}")
    if vec.ndim != 1:
        raise ValidationError(f"contrast {name!r}: expected a 1D weight vector, got {vec.ndim}D")
    if len(vec) != p:
        raise DimensionMismatchError(
            f"contrast {name!r}: expected {p} weights, got {len(vec)}",
            expected=p, actual=len(vec),
        )
    check_finite(vec, f"contrast {name!r}")
    return vec
