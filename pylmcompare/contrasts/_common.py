"""
Common data types for contrast evaluation.

CellMeans is an input source (a vector of means with their covariance);
ContrastParams is the frozen payload that goes inside a Result envelope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylmcompare.core.exceptions import ValidationError, DimensionMismatchError
from pylmcompare.core.validation import (
    check_array,
    check_1d,
    check_finite,
    check_length,
    check_consistent_length,
)


@dataclass(frozen=True, eq=False)
class CellMeans:
    """
    Cell means with their sampling covariance.

    Attributes:
        labels: One label per mean
        means: (m,) estimated means
        covariance: (m, m) covariance of the means
        df: Error degrees of freedom (np.inf for a known variance)
        factor: Name of the factor the means are over, if any

    Construction:
        CellMeans.from_summary(means, standard_errors, df)   independent means
        CellMeans.from_groups(values, groups)                pooled one-way means
        marginal_means(model, factor)                        model-based means
    """
    labels: tuple[str, ...]
    means: NDArray[np.floating[Any]]
    covariance: NDArray[np.floating[Any]]
    df: float
    factor: str | None = None

    def __post_init__(self):
        m = len(self.means)
        if len(self.labels) != m:
            raise DimensionMismatchError(
                f"labels: expected {m} labels for {m} means, got {len(self.labels)}",
                expected=m, actual=len(self.labels),
            )
        if self.covariance.shape != (m, m):
            raise DimensionMismatchError(
                f"covariance: expected shape ({m}, {m}), got {self.covariance.shape}",
                expected=m, actual=self.covariance.shape[0],
            )
        if len(set(self.labels)) != m:
            raise ValidationError(f"labels must be distinct, got {list(self.labels)}")
        if not self.df > 0:
            raise ValidationError(f"df must be positive, got {self.df}")

    @property
    def n_means(self) -> int:
        return len(self.means)

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        return np.sqrt(np.diag(self.covariance))

    @classmethod
    def from_summary(
        cls,
        means: ArrayLike,
        standard_errors: ArrayLike,
        df: float,
        *,
        labels: Sequence[str] | None = None,
        factor: str | None = None,
    ) -> CellMeans:
        """Independent means with known standard errors."""
        mu = check_array(means, 'means')
        check_1d(mu, 'means')
        check_finite(mu, 'means')
        se = check_array(standard_errors, 'standard_errors')
        check_1d(se, 'standard_errors')
        check_length(se, len(mu), 'standard_errors')
        check_finite(se, 'standard_errors')
        if np.any(se < 0):
            raise ValidationError("standard_errors must be non-negative")
        return cls(
            labels=_labels(labels, len(mu)),
            means=mu,
            covariance=np.diag(se ** 2),
            df=float(df),
            factor=factor,
        )

    @classmethod
    def from_groups(
        cls,
        values: ArrayLike,
        groups: ArrayLike,
        *,
        factor: str | None = None,
    ) -> CellMeans:
        """
        Group means with the pooled (one-way ANOVA) error variance.

        Var(mean_i) = MSE / n_i with df = N - k. Groups keep their order of
        first appearance.
        """
        y = check_array(values, 'values')
        check_1d(y, 'values')
        check_finite(y, 'values')
        g = np.asarray(groups, dtype=object)
        check_consistent_length(y, g, names=('values', 'groups'))

        labels = list(dict.fromkeys(str(v) for v in g))
        g_str = np.array([str(v) for v in g], dtype=object)
        means = np.empty(len(labels))
        sizes = np.empty(len(labels))
        sse = 0.0
        for i, lab in enumerate(labels):
            cell = y[g_str == lab]
            means[i] = cell.mean()
            sizes[i] = len(cell)
            sse += float(np.sum((cell - means[i]) ** 2))

        df = len(y) - len(labels)
        if df <= 0:
            raise ValidationError(
                f"from_groups() needs more observations ({len(y)}) than groups ({len(labels)})"
            )
        mse = sse / df
        return cls(
            labels=tuple(labels),
            means=means,
            covariance=np.diag(mse / sizes),
            df=float(df),
            factor=factor,
        )


def _labels(labels: Sequence[str] | None, m: int) -> tuple[str, ...]:
    if labels is None:
        return tuple(f"m{i + 1}" for i in range(m))
    return tuple(str(lab) for lab in labels)


@dataclass(frozen=True)
class ContrastParams:
    """Parameter payload for a family of linear contrasts."""
    names: tuple[str, ...]
    estimates: NDArray[np.floating[Any]]
    standard_errors: NDArray[np.floating[Any]]
    t_values: NDArray[np.floating[Any]]
    df: float
    p_values: NDArray[np.floating[Any]]            # unadjusted, two-sided
    adjusted_p_values: NDArray[np.floating[Any]]
    ci_lower: NDArray[np.floating[Any]]
    ci_upper: NDArray[np.floating[Any]]
    critical_value: float
    conf_level: float
    adjustment: str
    family_size: int
    weights: NDArray[np.floating[Any]] = field(repr=False)
