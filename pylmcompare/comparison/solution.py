"""
User-facing model comparison results.

Each solution wraps a Result[Params] and provides convenient accessors and
formatted summary output matching R conventions.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from pylmcompare.core.result import Result
from pylmcompare.core.formatting import significance_stars, format_pvalue, SIGNIF_LEGEND
from pylmcompare.comparison._common import (
    ComparisonParams,
    AnovaTableParams,
    AnovaTableRow,
    SequenceParams,
    SequenceRow,
    BayesFactorParams,
)


class _Envelope:
    """Accessors shared by every solution wrapper."""
    _result: Result[Any]

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


# =====================================================================
# ComparisonResult  (restricted vs general F test)
# =====================================================================


@dataclass(frozen=True)
class ComparisonResult(_Envelope):
    """
    Result of compare(restricted, general).

    F = ((RSS_R - RSS_G) / df1) / (RSS_G / df2), p = P(F(df1, df2) > F).
    """
    _result: Result[ComparisonParams]

    @property
    def params(self) -> ComparisonParams:
        return self._result.params

    @property
    def restricted_rss(self) -> float:
        return self._result.params.restricted_rss

    @property
    def general_rss(self) -> float:
        return self._result.params.general_rss

    @property
    def df1(self) -> int:
        return self._result.params.df1

    @property
    def df2(self) -> int:
        return self._result.params.df2

    @property
    def sum_sq(self) -> float:
        return self._result.params.sum_sq

    @property
    def f_value(self) -> float:
        return self._result.params.f_value

    @property
    def p_value(self) -> float:
        return self._result.params.p_value

    @property
    def partial_eta_squared(self) -> float:
        return self._result.params.partial_eta_squared

    @property
    def delta_r_squared(self) -> float:
        return self._result.params.delta_r_squared

    def summary(self) -> str:
        """R-style anova(restricted, general) table."""
        p = self._result.params
        lines = [
            "Analysis of Variance Table",
            "",
            f"Model 1: {self.info.get('restricted', '')}",
            f"Model 2: {self.info.get('general', '')}",
            f"  {'Res.Df':>7} {'RSS':>14} {'Df':>4} {'Sum of Sq':>14} {'F':>10} {'Pr(>F)':>10}",
            f"1 {p.restricted_df:>7} {p.restricted_rss:>14.4f}",
            f"2 {p.general_df:>7} {p.general_rss:>14.4f} {p.df1:>4} {p.sum_sq:>14.4f} "
            f"{p.f_value:>10.4f} {format_pvalue(p.p_value):>10} {significance_stars(p.p_value)}",
            "---",
            SIGNIF_LEGEND,
            "",
            f"partial eta^2 = {p.partial_eta_squared:.4f}, delta R^2 = {p.delta_r_squared:.4f}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ComparisonResult(F={self.f_value:.4f}, df1={self.df1}, "
            f"df2={self.df2}, p={self.p_value:.4g})"
        )


# =====================================================================
# ModelSequence  (anova(m1, m2, ...))
# =====================================================================


@dataclass(frozen=True)
class ModelSequence(_Envelope):
    """Result of compare_sequence(*models)."""
    _result: Result[SequenceParams]

    @property
    def params(self) -> SequenceParams:
        return self._result.params

    @property
    def rows(self) -> tuple[SequenceRow, ...]:
        return self._result.params.rows

    @property
    def scale(self) -> float:
        """Residual mean square of the largest model (the F denominator)."""
        return self._result.params.scale

    @property
    def f_values(self) -> list[float | None]:
        return [row.f_value for row in self.rows]

    @property
    def p_values(self) -> list[float | None]:
        return [row.p_value for row in self.rows]

    def summary(self) -> str:
        lines = ["Analysis of Variance Table", ""]
        for i, row in enumerate(self.rows, start=1):
            lines.append(f"Model {i}: {row.model}")
        lines.append(
            f"  {'Res.Df':>7} {'RSS':>14} {'Df':>4} {'Sum of Sq':>14} {'F':>10} {'Pr(>F)':>10}"
        )
        for i, row in enumerate(self.rows, start=1):
            line = f"{i:<2}{row.res_df:>7} {row.rss:>14.4f}"
            if row.df is not None:
                line += f" {row.df:>4} {row.sum_sq:>14.4f}"
                if row.f_value is not None:
                    line += (
                        f" {row.f_value:>10.4f} {format_pvalue(row.p_value):>10} "
                        f"{significance_stars(row.p_value)}"
                    )
            lines.append(line)
        lines.append("---")
        lines.append(SIGNIF_LEGEND)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"ModelSequence(n_models={len(self.rows)})"


# =====================================================================
# AnovaTable  (term-wise table of one model)
# =====================================================================


@dataclass(frozen=True)
class AnovaTable(_Envelope):
    """Result of anova_table(model, ss_type=...)."""
    _result: Result[AnovaTableParams]

    @property
    def params(self) -> AnovaTableParams:
        return self._result.params

    @property
    def table(self) -> tuple[AnovaTableRow, ...]:
        """ANOVA table (rows: term, df, SS, MS, F, p; last row Residuals)."""
        return self._result.params.table

    @property
    def ss_type(self) -> int:
        return self._result.params.ss_type

    @property
    def n_obs(self) -> int:
        return self._result.params.n_obs

    @property
    def residual_df(self) -> int:
        return self._result.params.residual_df

    @property
    def residual_ss(self) -> float:
        return self._result.params.residual_ss

    @property
    def residual_ms(self) -> float:
        return self._result.params.residual_ms

    @property
    def eta_squared(self) -> dict[str, float]:
        return self._result.params.eta_squared

    @property
    def partial_eta_squared(self) -> dict[str, float]:
        return self._result.params.partial_eta_squared

    def row(self, term: str) -> AnovaTableRow:
        for row in self.table:
            if row.term == term:
                return row
        raise KeyError(f"No row {term!r}; terms are {[r.term for r in self.table]}")

    def summary(self) -> str:
        """Generate R-style ANOVA summary table."""
        lines = [
            f"Analysis of Variance Table (Type {self.ss_type} SS)",
            "=" * 72,
            f"Model: {self.info.get('model', '')}",
            f"Observations: {self.n_obs}",
            "",
            f"{'Source':<20} {'Df':>6} {'Sum Sq':>14} {'Mean Sq':>14} {'F value':>10} {'Pr(>F)':>12}",
            "-" * 72,
        ]

        for row in self.table:
            if row.f_value is not None:
                lines.append(
                    f"{row.term:<20} {row.df:>6} {row.sum_sq:>14.4f} "
                    f"{row.mean_sq:>14.4f} {row.f_value:>10.4f} "
                    f"{format_pvalue(row.p_value):>12} {significance_stars(row.p_value)}"
                )
            else:
                lines.append(
                    f"{row.term:<20} {row.df:>6} {row.sum_sq:>14.4f} "
                    f"{row.mean_sq:>14.4f}"
                )

        lines.append("-" * 72)
        lines.append(SIGNIF_LEGEND)

        if self.eta_squared:
            lines.append("")
            lines.append("Effect sizes:")
            for term, eta in self.eta_squared.items():
                partial = self.partial_eta_squared[term]
                lines.append(f"  {term:<20} eta^2 = {eta:.4f}  partial eta^2 = {partial:.4f}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"AnovaTable(ss_type={self.ss_type}, n_terms={len(self.table) - 1})"


# =====================================================================
# BayesFactorResult
# =====================================================================


@dataclass(frozen=True)
class BayesFactorResult(_Envelope):
    """Result of bayes_factor(restricted, general, r_scale=...)."""
    _result: Result[BayesFactorParams]

    @property
    def params(self) -> BayesFactorParams:
        return self._result.params

    @property
    def bf10(self) -> float:
        """Evidence for the general model over the restricted model."""
        return self._result.params.bf10

    @property
    def bf01(self) -> float:
        return float(np.exp(-self._result.params.log_bf10))

    @property
    def log_bf10(self) -> float:
        return self._result.params.log_bf10

    @property
    def r_scale(self) -> float:
        return self._result.params.r_scale

    @property
    def rel_error(self) -> float:
        return self._result.params.rel_error

    def summary(self) -> str:
        p = self._result.params
        lines = [
            "Bayes factor analysis",
            "-" * 60,
            f"[1] {self.info.get('general', '')}",
            f"    against {self.info.get('restricted', '')}",
            f"    BF10 = {p.bf10:.6g} ±{100 * p.rel_error:.2g}%",
            "",
            f"Against denominator: restricted model ({p.restricted_n_predictors} predictors, "
            f"R^2 = {p.restricted_r_squared:.4f})",
            f"Bayes factor type: JZS g-prior, r scale = {p.r_scale:.6g}, N = {p.n_obs}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"BayesFactorResult(bf10={self.bf10:.6g}, r_scale={self.r_scale:.6g})"
