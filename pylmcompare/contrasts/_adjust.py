"""
Multiplicity adjustment for contrast families.

Two layers:

p_adjust(p, method)
    Adjusts a raw p-value vector. Matches R's p.adjust() for
    holm, hochberg, hommel, bonferroni, BH (fdr), BY and none.

Adjustment policies
    Objects applied to a whole ContrastFamily. A policy returns adjusted
    p-values and the critical value that scales the confidence intervals.
    Policies never touch estimates, standard errors or t statistics.

    NoAdjustment      per-contrast t
    Bonferroni        p * k, capped at 1; t at alpha / (2k)
    PAdjust(method)   any p_adjust method (holm, BH, ...); Bonferroni intervals
    Tukey(n_means)    studentized range on sqrt(2)|t|
    Scheffe()         F with the rank of the weight matrix

Any object with `name`, `adjust(family)` and `critical_value(family,
conf_level)` can be passed wherever a policy name is accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray, ArrayLike
from scipy import stats as sp_stats

from pylmcompare.core.exceptions import ValidationError

VALID_METHODS = (
    "holm", "hochberg", "hommel", "bonferroni", "BH", "BY", "fdr", "none"
)


# =====================================================================
# p_adjust
# =====================================================================


def p_adjust(
    p: ArrayLike,
    method: str = "holm",
    n: int | None = None,
) -> NDArray[np.floating]:
    """
    Adjust p-values for multiple comparisons. Matches R p.adjust().

    Parameters
    ----------
    p : array-like
        Vector of p-values.
    method : str
        One of "holm" (default), "hochberg", "hommel", "bonferroni",
        "BH", "BY", "fdr" (alias for BH), "none".
    n : int or None
        Family size. Default len(p); may exceed len(p) when some tests of
        the family are not listed.

    Returns
    -------
    ndarray
        Adjusted p-values in input order, clipped to [0, 1]. NaN inputs
        stay NaN and do not count towards the family size.
    """
    if method not in VALID_METHODS:
        raise ValidationError(
            f"method must be one of {VALID_METHODS}, got {method!r}"
        )

    p_arr = np.asarray(p, dtype=np.float64).ravel()
    nan_mask = np.isnan(p_arr)
    if np.any((p_arr[~nan_mask] < 0) | (p_arr[~nan_mask] > 1)):
        raise ValidationError("p-values must lie in [0, 1]")

    n_valid = int(np.sum(~nan_mask))
    if n is None:
        n_tests = n_valid
    elif n < n_valid:
        raise ValidationError(f"n ({n}) must be >= number of p-values ({n_valid})")
    else:
        n_tests = n

    result = p_arr.copy()
    if method == "none" or n_valid == 0:
        return result

    pv = p_arr[~nan_mask]
    adjusted = _METHODS[method](pv, n_tests)
    result[~nan_mask] = np.clip(adjusted, 0.0, 1.0)
    return result


def _bonferroni(pv: NDArray, n: int) -> NDArray:
    return pv * n


def _holm(pv: NDArray, n: int) -> NDArray:
    """Step-down: sorted p_(i) * (n - i + 1), cumulative max."""
    order = np.argsort(pv, kind='stable')
    scaled = pv[order] * np.arange(n, n - len(pv), -1, dtype=np.float64)
    return _unsort(np.maximum.accumulate(np.minimum(scaled, 1.0)), order)


def _hochberg(pv: NDArray, n: int) -> NDArray:
    """Step-up: from the largest p, p_(i) * (n - i + 1), cumulative min."""
    order = np.argsort(pv, kind='stable')[::-1]
    lp = len(pv)
    scaled = pv[order] * np.arange(n - lp + 1, n + 1, dtype=np.float64)
    return _unsort(np.minimum.accumulate(scaled), order)


def _hommel(pv: NDArray, n: int) -> NDArray:
    """Hommel's method, following the loop in R's stats::p.adjust."""
    lp = len(pv)
    if n == 1:
        return pv.copy()
    work = np.ones(n, dtype=np.float64)
    work[:lp] = pv

    order = np.argsort(work, kind='stable')
    sp = work[order]
    i = np.arange(1, n + 1, dtype=np.float64)

    q = np.full(n, np.min(n * sp / i))
    pa = q.copy()
    for j in range(n - 1, 1, -1):
        split = n - j + 1
        q1 = np.min(j * sp[split:] / np.arange(2, j + 1, dtype=np.float64))
        q[:split] = np.minimum(j * sp[:split], q1)
        q[split:] = q[split - 1]
        pa = np.maximum(pa, q)

    combined = np.maximum(pa, sp)
    result = np.empty(n, dtype=np.float64)
    result[order] = combined
    return result[:lp]


def _bh(pv: NDArray, n: int) -> NDArray:
    """Benjamini-Hochberg: from the largest p, p_(i) * n / i, cumulative min."""
    order = np.argsort(pv, kind='stable')[::-1]
    ranks = np.arange(len(pv), 0, -1, dtype=np.float64)
    return _unsort(np.minimum.accumulate(pv[order] * n / ranks), order)


def _by(pv: NDArray, n: int) -> NDArray:
    """Benjamini-Yekutieli: BH times sum_{i<=n} 1/i."""
    cm = np.sum(1.0 / np.arange(1, n + 1, dtype=np.float64))
    return _bh(pv, n) * cm


def _unsort(sorted_values: NDArray, order: NDArray) -> NDArray:
    result = np.empty(len(order), dtype=np.float64)
    result[order] = sorted_values
    return result


_METHODS = {
    "bonferroni": _bonferroni,
    "holm": _holm,
    "hochberg": _hochberg,
    "hommel": _hommel,
    "BH": _bh,
    "fdr": _bh,
    "BY": _by,
}


# =====================================================================
# Contrast families and policies
# =====================================================================


@dataclass(frozen=True, eq=False)
class ContrastFamily:
    """
    A family of contrasts evaluated together, as seen by a policy.

    Attributes:
        t_values: t statistic per contrast
        p_values: Unadjusted two-sided p-values
        df: Error degrees of freedom (np.inf for known variance)
        weights: (k, m) weight matrix, one row per contrast
        n_means: Number of means the family compares, when it is a
                 family over cell means (None for coefficient contrasts)
    """
    t_values: NDArray[np.floating[Any]]
    p_values: NDArray[np.floating[Any]]
    df: float
    weights: NDArray[np.floating[Any]]
    n_means: int | None = None

    @property
    def size(self) -> int:
        return len(self.t_values)

    @property
    def weight_rank(self) -> int:
        if self.weights.size == 0:
            return 0
        return int(np.linalg.matrix_rank(self.weights))


@runtime_checkable
class AdjustmentPolicy(Protocol):
    """Protocol for multiplicity adjustment policies."""

    @property
    def name(self) -> str:
        ...

    def adjust(self, family: ContrastFamily) -> NDArray[np.floating[Any]]:
        """Adjusted p-values, one per contrast, in family order."""
        ...

    def critical_value(self, family: ContrastFamily, conf_level: float) -> float:
        """Multiplier c such that estimate +/- c * SE is the interval."""
        ...


def _t_critical(df: float, alpha: float) -> float:
    return float(sp_stats.t.ppf(1.0 - alpha / 2.0, df))


@dataclass(frozen=True)
class NoAdjustment:
    name = 'none'

    def adjust(self, family: ContrastFamily) -> NDArray[np.floating[Any]]:
        return family.p_values.copy()

    def critical_value(self, family: ContrastFamily, conf_level: float) -> float:
        return _t_critical(family.df, 1.0 - conf_level)


@dataclass(frozen=True)
class Bonferroni:
    name = 'bonferroni'

    def adjust(self, family: ContrastFamily) -> NDArray[np.floating[Any]]:
        return p_adjust(family.p_values, 'bonferroni')

    def critical_value(self, family: ContrastFamily, conf_level: float) -> float:
        return _t_critical(family.df, (1.0 - conf_level) / max(family.size, 1))


@dataclass(frozen=True)
class PAdjust:
    """
    Any p_adjust() method applied to the family's raw p-values.

    Intervals use the Bonferroni critical value: step-wise and FDR
    procedures have no matching simultaneous interval.
    """
    method: str

    def __post_init__(self):
        if self.method not in VALID_METHODS:
            raise ValidationError(
                f"method must be one of {VALID_METHODS}, got {self.method!r}"
            )

    @property
    def name(self) -> str:
        return self.method

    def adjust(self, family: ContrastFamily) -> NDArray[np.floating[Any]]:
        return p_adjust(family.p_values, self.method)

    def critical_value(self, family: ContrastFamily, conf_level: float) -> float:
        if self.method == 'none':
            return NoAdjustment().critical_value(family, conf_level)
        return Bonferroni().critical_value(family, conf_level)


@dataclass(frozen=True)
class Tukey:
    """
    Tukey (studentized range) adjustment.

    |t| * sqrt(2) is referred to the studentized range distribution for
    `n_means` means. Exact for all pairwise differences of equally
    precise means, conservative otherwise.

    Attributes:
        n_means: Number of means in the family. None takes it from the
            family (cell means) or, for coefficient contrasts, the
            smallest m with m(m-1)/2 >= number of contrasts.
    """
    n_means: int | None = None
    name = 'tukey'

    def _m(self, family: ContrastFamily) -> int:
        if self.n_means is not None:
            m = self.n_means
        elif family.n_means is not None:
            m = family.n_means
        else:
            m = 2
            while m * (m - 1) // 2 < family.size:
                m += 1
        if m < 2:
            raise ValidationError(f"Tukey adjustment needs at least 2 means, got {m}")
        return m

    def adjust(self, family: ContrastFamily) -> NDArray[np.floating[Any]]:
        q = np.sqrt(2.0) * np.abs(family.t_values)
        p = sp_stats.studentized_range.sf(q, self._m(family), family.df)
        return np.clip(np.asarray(p, dtype=np.float64), 0.0, 1.0)

    def critical_value(self, family: ContrastFamily, conf_level: float) -> float:
        q = sp_stats.studentized_range.ppf(conf_level, self._m(family), family.df)
        return float(q / np.sqrt(2.0))


@dataclass(frozen=True)
class Scheffe:
    """
    Scheffe adjustment: t^2 / r referred to F(r, df), r = rank of the weights.

    Valid simultaneously for every contrast in the row space of the weight
    matrix, not only the ones listed.
    """
    name = 'scheffe'

    def adjust(self, family: ContrastFamily) -> NDArray[np.floating[Any]]:
        r = max(family.weight_rank, 1)
        p = sp_stats.f.sf(family.t_values ** 2 / r, r, family.df)
        return np.asarray(p, dtype=np.float64)

    def critical_value(self, family: ContrastFamily, conf_level: float) -> float:
        r = max(family.weight_rank, 1)
        return float(np.sqrt(r * sp_stats.f.ppf(conf_level, r, family.df)))


POLICIES: dict[str, AdjustmentPolicy] = {
    'none': NoAdjustment(),
    'bonferroni': Bonferroni(),
    'holm': PAdjust('holm'),
    'hochberg': PAdjust('hochberg'),
    'hommel': PAdjust('hommel'),
    'BH': PAdjust('BH'),
    'fdr': PAdjust('fdr'),
    'BY': PAdjust('BY'),
    'tukey': Tukey(),
    'scheffe': Scheffe(),
}


def resolve_policy(adjust: str | AdjustmentPolicy | None) -> AdjustmentPolicy:
    """
    Policy object for a name or a user-supplied policy.

    Raises:
        ValidationError: Unknown name, or an object missing the protocol
    """
    if adjust is None:
        return POLICIES['none']
    if isinstance(adjust, str):
        if adjust not in POLICIES:
            raise ValidationError(
                f"Unknown adjustment {adjust!r}; use one of {sorted(POLICIES)} "
                f"or an AdjustmentPolicy object"
            )
        return POLICIES[adjust]
    if isinstance(adjust, AdjustmentPolicy):
        return adjust
    raise ValidationError(
        f"adjust must be a policy name or implement adjust(family) and "
        f"critical_value(family, conf_level), got {type(adjust).__name__}"
    )
