"""
Regression solution types.

Contains the parameter payload computed by backends and the immutable
FittedModel users work with.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats as sp_stats

from pylmcompare.core.result import Result
from pylmcompare.core.dataset import Dataset
from pylmcompare.core.validation import check_array, check_2d, check_probability
from pylmcompare.core.exceptions import DimensionMismatchError
from pylmcompare.core.formatting import significance_stars, format_pvalue, SIGNIF_LEGEND

if TYPE_CHECKING:
    from pylmcompare.design.builder import DesignMatrix


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload for a least-squares fit.

    This is the immutable data computed by backends. `unscaled_cov` is
    (X'X)^-1 in the original column order; multiply by sigma^2 for the
    coefficient covariance.
    """
    coefficients: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    rss: float
    tss: float
    rank: int
    df_residual: int
    unscaled_cov: NDArray[np.floating[Any]]


@dataclass(frozen=True, eq=False)
class FittedModel:
    """
    A fitted linear model.

    Immutable: refitting the same design and response yields a new,
    bit-identical FittedModel. Keeps the design and response it was fit on
    so that comparisons can verify nesting and response identity.
    """
    _result: Result[LinearParams]
    design: 'DesignMatrix'
    response: NDArray[np.floating[Any]]

    # === Payload ===

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def coef(self) -> dict[str, float]:
        """Coefficients keyed by column name."""
        return dict(zip(self.column_names, self.coefficients.tolist()))

    @property
    def column_names(self) -> tuple[str, ...]:
        return self.design.column_names

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        """Centered total sum of squares of the response."""
        return self._result.params.tss

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def n(self) -> int:
        return self.design.n

    @property
    def unscaled_cov(self) -> NDArray[np.floating[Any]]:
        """(X'X)^-1."""
        return self._result.params.unscaled_cov

    # === Derived statistics ===

    @property
    def sigma(self) -> float:
        """Residual standard error sqrt(RSS / df)."""
        if self.df_residual <= 0:
            return float('nan')
        return float(np.sqrt(self.rss / self.df_residual))

    @property
    def residual_std_error(self) -> float:
        return self.sigma

    @cached_property
    def vcov(self) -> NDArray[np.floating[Any]]:
        """Coefficient covariance sigma^2 (X'X)^-1."""
        return self.sigma ** 2 * self.unscaled_cov

    @cached_property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        return np.sqrt(np.diag(self.vcov))

    @cached_property
    def t_statistics(self) -> NDArray[np.floating[Any]]:
        with np.errstate(divide='ignore', invalid='ignore'):
            return self.coefficients / self.standard_errors

    @cached_property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Two-sided p-values of the coefficient t tests."""
        if self.df_residual <= 0:
            return np.full(len(self.coefficients), np.nan)
        return 2.0 * sp_stats.t.sf(np.abs(self.t_statistics), self.df_residual)

    def conf_int(self, level: float = 0.95) -> NDArray[np.floating[Any]]:
        """
        Coefficient confidence intervals.

        Returns:
            (p, 2) array of lower and upper bounds
        """
        check_probability(level, 'level')
        q = sp_stats.t.ppf(0.5 + level / 2.0, self.df_residual) if self.df_residual > 0 else np.nan
        half = q * self.standard_errors
        return np.column_stack([self.coefficients - half, self.coefficients + half])

    @property
    def r_squared(self) -> float:
        """
        Coefficient of determination.

        Against the centered total sum of squares when the model has an
        intercept, the uncentered one otherwise (as R's summary.lm).
        """
        total = self.tss if self.design.has_intercept else float(self.response @ self.response)
        if total == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - self.rss / total

    @property
    def adjusted_r_squared(self) -> float:
        df_int = 1 if self.design.has_intercept else 0
        if self.df_residual <= 0:
            return self.r_squared
        return 1.0 - (1.0 - self.r_squared) * (self.n - df_int) / self.df_residual

    @property
    def f_statistic(self) -> tuple[float, int, int]:
        """
        Overall F test against the intercept-only (or empty) model.

        Returns:
            (F, numerator df, denominator df)
        """
        df_int = 1 if self.design.has_intercept else 0
        df1 = self.rank - df_int
        df2 = self.df_residual
        if df1 <= 0 or df2 <= 0:
            return float('nan'), df1, df2
        total = self.tss if df_int else float(self.response @ self.response)
        model_ss = max(total - self.rss, 0.0)
        with np.errstate(divide='ignore', invalid='ignore'):
            f = (model_ss / df1) / (self.rss / df2)
        return float(f), df1, df2

    @property
    def f_pvalue(self) -> float:
        f, df1, df2 = self.f_statistic
        if np.isnan(f):
            return float('nan')
        return float(sp_stats.f.sf(f, df1, df2))

    def predict(self, new: Dataset | ArrayLike | None = None) -> NDArray[np.floating[Any]]:
        """
        Predicted response.

        Args:
            new: Dataset encoded with this model's codings, a raw design
                 matrix with the same columns, or None for the fitted values
        """
        if new is None:
            return self.fitted_values
        if isinstance(new, Dataset):
            X = self.design.encode(new)
        else:
            X = check_array(new, 'X')
            if X.ndim == 1:
                X = X.reshape(1, -1)
            check_2d(X, 'X')
            if X.shape[1] != self.design.p:
                raise DimensionMismatchError(
                    f"X: expected {self.design.p} columns, got {X.shape[1]}",
                    expected=self.design.p,
                    actual=X.shape[1],
                )
        return X @ self.coefficients

    # === Envelope ===

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        """Generate R-style summary output."""
        width = max([len(name) for name in self.column_names] + [11])
        lines = [
            "Linear Model",
            "=" * 72,
            f"Model: {self.design.spec}",
            f"Observations: {self.n}",
            f"Rank: {self.rank}",
            "",
            "Coefficients:",
            f"{'':<{width}} {'Estimate':>12} {'Std. Error':>12} {'t value':>9} {'Pr(>|t|)':>10}",
        ]
        for i, name in enumerate(self.column_names):
            p = self.p_values[i]
            lines.append(
                f"{name:<{width}} {self.coefficients[i]:>12.6f} "
                f"{self.standard_errors[i]:>12.6f} {self.t_statistics[i]:>9.3f} "
                f"{format_pvalue(p):>10} {significance_stars(p)}"
            )
        lines.append("---")
        lines.append(SIGNIF_LEGEND)
        lines.append("")
        lines.append(
            f"Residual standard error: {self.sigma:.4f} on {self.df_residual} degrees of freedom"
        )
        lines.append(
            f"Multiple R-squared: {self.r_squared:.4f},\tAdjusted R-squared: "
            f"{self.adjusted_r_squared:.4f}"
        )
        f, df1, df2 = self.f_statistic
        if not np.isnan(f):
            lines.append(
                f"F-statistic: {f:.4f} on {df1} and {df2} DF,  p-value: "
                f"{format_pvalue(self.f_pvalue)}"
            )
        lines.append(f"Backend: {self.backend_name}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"FittedModel(n={self.n}, p={self.design.p}, rank={self.rank}, "
            f"rss={self.rss:.6g}, r_squared={self.r_squared:.4f})"
        )
