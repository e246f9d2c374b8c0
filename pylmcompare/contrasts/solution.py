"""
User-facing contrast results.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pylmcompare.core.result import Result
from pylmcompare.core.formatting import significance_stars, format_pvalue, SIGNIF_LEGEND
from pylmcompare.contrasts._common import ContrastParams


@dataclass(frozen=True)
class ContrastResult:
    """
    Result of contrast() or pairwise().

    Per contrast: estimate, SE, t, df, raw p, adjusted p and the interval
    estimate +/- critical_value * SE.
    """
    _result: Result[ContrastParams]

    @property
    def params(self) -> ContrastParams:
        return self._result.params

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.names

    @property
    def estimates(self) -> NDArray[np.floating[Any]]:
        return self._result.params.estimates

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        return self._result.params.standard_errors

    @property
    def t_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.t_values

    @property
    def df(self) -> float:
        return self._result.params.df

    @property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Unadjusted two-sided p-values."""
        return self._result.params.p_values

    @property
    def adjusted_p_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.adjusted_p_values

    @property
    def conf_int(self) -> NDArray[np.floating[Any]]:
        """(k, 2) array of interval bounds."""
        return np.column_stack([self._result.params.ci_lower, self._result.params.ci_upper])

    @property
    def critical_value(self) -> float:
        return self._result.params.critical_value

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def adjustment(self) -> str:
        return self._result.params.adjustment

    @property
    def family_size(self) -> int:
        return self._result.params.family_size

    @property
    def weights(self) -> NDArray[np.floating[Any]]:
        return self._result.params.weights

    def __getitem__(self, name: str) -> dict[str, float]:
        """One contrast's row as a dict."""
        try:
            i = self.names.index(name)
        except ValueError:
            raise KeyError(f"No contrast {name!r}; contrasts are {list(self.names)}") from None
        p = self._result.params
        return {
            'estimate': float(p.estimates[i]),
            'se': float(p.standard_errors[i]),
            't': float(p.t_values[i]),
            'df': float(p.df),
            'p': float(p.p_values[i]),
            'p_adj': float(p.adjusted_p_values[i]),
            'lower': float(p.ci_lower[i]),
            'upper': float(p.ci_upper[i]),
        }

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
        p = self._result.params
        width = max([len(n) for n in p.names] + [8])
        df_str = "Inf" if np.isinf(p.df) else f"{p.df:g}"
        lines = [
            "Linear Contrasts",
            "=" * 78,
            f"{'contrast':<{width}} {'estimate':>10} {'SE':>10} {'df':>6} "
            f"{'t.ratio':>8} {'p.value':>10} {'lower':>10} {'upper':>10}",
        ]
        for i, name in enumerate(p.names):
            lines.append(
                f"{name:<{width}} {p.estimates[i]:>10.4f} {p.standard_errors[i]:>10.4f} "
                f"{df_str:>6} {p.t_values[i]:>8.3f} {format_pvalue(p.adjusted_p_values[i]):>10} "
                f"{p.ci_lower[i]:>10.4f} {p.ci_upper[i]:>10.4f} "
                f"{significance_stars(p.adjusted_p_values[i])}"
            )
        lines.append("-" * 78)
        if p.adjustment == 'none':
            lines.append(f"Confidence level: {p.conf_level:.0%}; no multiplicity adjustment")
        else:
            lines.append(
                f"Confidence level: {p.conf_level:.0%}; P value adjustment: "
                f"{p.adjustment} method for {p.family_size} tests"
            )
        lines.append(SIGNIF_LEGEND)
        for message in self.warnings:
            lines.append(f"Warning: {message}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ContrastResult(n_contrasts={self.family_size}, "
            f"adjustment={self.adjustment!r})"
        )
