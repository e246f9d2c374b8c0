"""
Sums of squares for term-wise ANOVA tables.

All three SS types work by fitting sub-models of one design through the
regression backend and comparing residual sums of squares. No new solver
math, just model comparisons.

Type I (Sequential):
    Add terms one at a time. SS(term) = RSS(without) - RSS(with).

Type II (Marginal, respects marginality):
    SS(A) = RSS(everything not containing A) - RSS(that plus A).
    An interaction A:B contains both A and B, so when computing SS(A),
    A:B is also dropped.

Type III (Each term last):
    SS(term) = RSS(full minus just that term) - RSS(full).
    Only meaningful with sum-to-zero style codings; treatment coding makes
    the main-effect tests depend on the reference level.
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy import stats as sp_stats

from pylmcompare.core.compute.tolerances import NumericTolerances
from pylmcompare.design.builder import DesignMatrix, INTERCEPT
from pylmcompare.regression.backends.cpu import CPUQRBackend
from pylmcompare.comparison._common import AnovaTableRow


def _fit_rss(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    tolerances: NumericTolerances,
) -> float:
    """
    Fit OLS through the QR backend and return RSS.

    A sub-model without columns predicts zero, so its RSS is y'y.
    """
    if X.shape[1] == 0:
        return float(y @ y)
    names = tuple(f"x{j}" for j in range(X.shape[1]))
    return CPUQRBackend(tolerances).solve(X, y, names).params.rss


def _compute_f_and_p(
    ss: float,
    df: int,
    rss_error: float,
    df_error: int,
) -> tuple[float | None, float | None]:
    """Compute F statistic and p-value from SS components."""
    if df <= 0 or df_error <= 0 or rss_error <= 0:
        return None, None

    f_val = (ss / df) / (rss_error / df_error)
    p_val = float(sp_stats.f.sf(f_val, df, df_error))
    return f_val, p_val


def _columns(design: DesignMatrix, terms: list[str]) -> NDArray[np.floating[Any]]:
    if not terms:
        return np.empty((design.n, 0), dtype=np.float64)
    return np.hstack([design.X[:, design.term_slices[t]] for t in terms])


def _term_row(term: str, df: int, ss: float, rss_full: float, df_residual: int) -> AnovaTableRow:
    ss = max(ss, 0.0)
    f_val, p_val = _compute_f_and_p(ss, df, rss_full, df_residual)
    return AnovaTableRow(
        term=term,
        df=df,
        sum_sq=ss,
        mean_sq=ss / df if df > 0 else 0.0,
        f_value=f_val,
        p_value=p_val,
    )


def _residual_row(rss_full: float, df_residual: int) -> AnovaTableRow:
    return AnovaTableRow(
        term='Residuals',
        df=df_residual,
        sum_sq=rss_full,
        mean_sq=rss_full / df_residual if df_residual > 0 else 0.0,
        f_value=None,
        p_value=None,
    )


def compute_ss_type1(
    y: NDArray[np.floating[Any]],
    design: DesignMatrix,
    tolerances: NumericTolerances,
) -> list[AnovaTableRow]:
    """
    Type I (Sequential) Sums of Squares.

    Terms are added in design order. SS(term_k) = RSS(terms 1..k-1) -
    RSS(terms 1..k). Order-dependent for unbalanced designs.

    This matches R's default: anova(lm(y ~ A * B)).
    """
    terms = [t for t in design.term_names if t != INTERCEPT]
    included = [INTERCEPT] if design.has_intercept else []
    rss_prev = _fit_rss(_columns(design, included), y, tolerances)

    sequential: list[tuple[str, float]] = []
    for term in terms:
        included.append(term)
        rss_current = _fit_rss(_columns(design, included), y, tolerances)
        sequential.append((term, rss_prev - rss_current))
        rss_prev = rss_current

    rss_full = rss_prev
    df_residual = design.n - design.rank
    rows = [
        _term_row(term, design.term_df[term], ss, rss_full, df_residual)
        for term, ss in sequential
    ]
    rows.append(_residual_row(rss_full, df_residual))
    return rows


def compute_ss_type2(
    y: NDArray[np.floating[Any]],
    design: DesignMatrix,
    tolerances: NumericTolerances,
) -> list[AnovaTableRow]:
    """
    Type II (Marginal) Sums of Squares.

    For each term, SS compares two models:
        - "reduced": all terms that don't contain the target
        - "augmented": the reduced terms plus the target
        SS(term) = RSS(reduced) - RSS(augmented)

    This matches R's: car::Anova(lm(y ~ A * B), type="II").
    """
    terms = [t for t in design.term_names if t != INTERCEPT]
    rss_full = _fit_rss(design.X, y, tolerances)
    df_residual = design.n - design.rank

    rows: list[AnovaTableRow] = []
    for term in terms:
        base = [
            other for other in design.term_names
            if other != term and not _term_contains(other, term)
        ]
        rss_reduced = _fit_rss(_columns(design, base), y, tolerances)
        rss_augmented = _fit_rss(_columns(design, base + [term]), y, tolerances)
        rows.append(_term_row(
            term, design.term_df[term], rss_reduced - rss_augmented, rss_full, df_residual,
        ))

    rows.append(_residual_row(rss_full, df_residual))
    return rows


def compute_ss_type3(
    y: NDArray[np.floating[Any]],
    design: DesignMatrix,
    tolerances: NumericTolerances,
) -> list[AnovaTableRow]:
    """
    Type III Sums of Squares.

    SS(term) = RSS(full minus just that term) - RSS(full). Each term is
    tested as if it were the last one added.

    This matches R's: car::Anova(lm(y ~ A * B), type="III") with contr.sum.
    """
    terms = [t for t in design.term_names if t != INTERCEPT]
    rss_full = _fit_rss(design.X, y, tolerances)
    df_residual = design.n - design.rank

    rows: list[AnovaTableRow] = []
    for term in terms:
        reduced = [other for other in design.term_names if other != term]
        rss_reduced = _fit_rss(_columns(design, reduced), y, tolerances)
        rows.append(_term_row(
            term, design.term_df[term], rss_reduced - rss_full, rss_full, df_residual,
        ))

    rows.append(_residual_row(rss_full, df_residual))
    return rows


def _term_contains(candidate: str, target: str) -> bool:
    """
    Check if candidate term contains target term.

    'A:B' contains 'A' and 'B'; 'A:B:C' contains 'A:B'. A term does not
    contain itself and the Intercept contains nothing.

    Used by Type II to respect marginality: when testing A, also drop A:B.
    """
    if candidate == INTERCEPT or target == INTERCEPT:
        return False
    cand = set(candidate.split(':'))
    targ = set(target.split(':'))
    return targ < cand
