"""
Common data types for model comparison.

Contains the frozen parameter payloads that go inside Result[P] envelopes.
Each payload is a pure data container: no methods, no computation.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ComparisonParams:
    """Parameter payload for one restricted-vs-general F test."""
    n_obs: int
    restricted_rss: float
    general_rss: float
    restricted_df: int           # residual df of the restricted model
    general_df: int              # residual df of the general model
    df1: int                     # rank(G) - rank(R)
    df2: int                     # n - rank(G)
    sum_sq: float                # RSS_R - RSS_G, clamped at 0
    f_value: float
    p_value: float
    partial_eta_squared: float   # SS / (SS + RSS_G)
    delta_r_squared: float       # SS / TSS


@dataclass(frozen=True)
class AnovaTableRow:
    """One row of an ANOVA table (one term or residuals)."""
    term: str
    df: int
    sum_sq: float
    mean_sq: float
    f_value: float | None    # None for Residuals row
    p_value: float | None    # None for Residuals row


@dataclass(frozen=True)
class AnovaTableParams:
    """Parameter payload for a term-wise ANOVA table of one model."""
    table: tuple[AnovaTableRow, ...]
    ss_type: int                                   # 1, 2, or 3
    n_obs: int
    residual_df: int
    residual_ss: float
    residual_ms: float
    eta_squared: dict[str, float]                  # term -> eta^2
    partial_eta_squared: dict[str, float]          # term -> partial eta^2


@dataclass(frozen=True)
class SequenceRow:
    """One model in an anova(m1, m2, ...) style comparison table."""
    model: str
    res_df: int
    rss: float
    df: int | None           # None for the first model
    sum_sq: float | None
    f_value: float | None
    p_value: float | None


@dataclass(frozen=True)
class SequenceParams:
    """Parameter payload for a chain of nested model comparisons."""
    rows: tuple[SequenceRow, ...]
    scale: float             # residual mean square of the largest model
    scale_df: int


@dataclass(frozen=True)
class BayesFactorParams:
    """Parameter payload for a default Bayes factor of nested linear models."""
    bf10: float              # evidence for the general over the restricted model
    log_bf10: float
    r_scale: float
    n_obs: int
    restricted_r_squared: float
    general_r_squared: float
    restricted_n_predictors: int
    general_n_predictors: int
    rel_error: float         # relative quadrature error of the log BF
