"""
Model comparison solver dispatch.

Public API:
    compare(restricted, general) -> ComparisonResult
    compare_sequence(*models) -> ModelSequence
    anova_table(model, ss_type=1) -> AnovaTable
    bayes_factor(restricted, general, r_scale=...) -> BayesFactorResult
"""

import logging
import warnings

import numpy as np
from scipy import stats as sp_stats

from pylmcompare.core.result import Result
from pylmcompare.core.exceptions import (
    ValidationError,
    DimensionMismatchError,
    InvalidComparisonError,
)
from pylmcompare.core.compute.timing import Timer
from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES
from pylmcompare.core.compute.linalg.qr import qr_pivoted, column_space_residual
from pylmcompare.regression.solution import FittedModel
from pylmcompare.comparison._common import (
    ComparisonParams,
    AnovaTableParams,
    SequenceParams,
    SequenceRow,
    BayesFactorParams,
)
from pylmcompare.comparison._ss import compute_ss_type1, compute_ss_type2, compute_ss_type3
from pylmcompare.comparison._bayes import log_bf_against_null
from pylmcompare.comparison.solution import (
    ComparisonResult,
    AnovaTable,
    ModelSequence,
    BayesFactorResult,
)

logger = logging.getLogger(__name__)


def compare(
    restricted: FittedModel,
    general: FittedModel,
    *,
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> ComparisonResult:
    """
    F test of a restricted model against a general model it is nested in.

    Checks, in order:
        1. same number of observations
        2. identical response vector
        3. df1 = rank(G) - rank(R) > 0
        4. df2 = n - rank(G) > 0
        5. every column of R lies in the column space of G
        6. RSS_G <= RSS_R within tolerance

    An RSS difference below zero but inside tolerance is clamped to zero, so
    F is never negative.

    Args:
        restricted: Fitted restricted model (R)
        general: Fitted general model (G)
        tolerances: nesting_rtol and rss_rtol used by checks 5 and 6

    Returns:
        ComparisonResult with SS, F, p, partial eta^2 and delta R^2

    Raises:
        DimensionMismatchError: Observation counts differ
        InvalidComparisonError: Any other check fails; `reason` names it

    Example:
        >>> full = lm(ModelSpec(terms=['a', 'b'], response='y'), ds)
        >>> reduced = lm(ModelSpec(terms=['a'], response='y'), ds)
        >>> compare(reduced, full).p_value
    """
    timer = Timer()
    timer.start()

    with timer.section('validation'):
        df1, df2 = _validate_pair(restricted, general, tolerances)

    with timer.section('statistics'):
        ss = _clamped_ss(restricted, general, tolerances, df1, df2)
        f_value, p_value, f_warnings = _f_test(ss, df1, general.rss, df2)
        denom = ss + general.rss
        partial_eta = ss / denom if denom > 0 else float('nan')
        delta_r2 = ss / general.tss if general.tss > 0 else float('nan')

    timer.stop()

    params = ComparisonParams(
        n_obs=general.n,
        restricted_rss=restricted.rss,
        general_rss=general.rss,
        restricted_df=restricted.df_residual,
        general_df=general.df_residual,
        df1=df1,
        df2=df2,
        sum_sq=ss,
        f_value=f_value,
        p_value=p_value,
        partial_eta_squared=partial_eta,
        delta_r_squared=delta_r2,
    )
    logger.debug(
        "Compared %s vs %s: F(%d, %d) = %.6g, p = %.6g",
        restricted.design.spec, general.design.spec, df1, df2, f_value, p_value,
    )
    for message in f_warnings:
        warnings.warn(message, RuntimeWarning, stacklevel=2)

    result = Result(
        params=params,
        info={
            'method': 'nested_f',
            'restricted': str(restricted.design.spec),
            'general': str(general.design.spec),
            'nesting_rtol': tolerances.nesting_rtol,
            'rss_rtol': tolerances.rss_rtol,
        },
        timing=timer.result(),
        backend_name='cpu',
        warnings=tuple(f_warnings),
    )
    return ComparisonResult(_result=result)


def compare_sequence(
    *models: FittedModel,
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> ModelSequence:
    """
    Sequential comparison of a chain of nested models (R's anova(m1, m2, ...)).

    Each model is compared with the one before it. As in R, every F test is
    scaled by the residual mean square of the largest model.

    Args:
        *models: At least two fitted models, smallest first, each nested in
            the next

    Raises:
        ValidationError: Fewer than two models
        DimensionMismatchError, InvalidComparisonError: As compare(), for
            each consecutive pair
    """
    if len(models) < 2:
        raise ValidationError(f"compare_sequence() needs at least 2 models, got {len(models)}")

    timer = Timer()
    timer.start()
    with timer.section('validation'):
        for restricted, general in zip(models, models[1:]):
            _validate_pair(restricted, general, tolerances)

    largest = models[-1]
    scale_df = largest.df_residual
    scale = largest.rss / scale_df

    rows = [SequenceRow(
        model=str(models[0].design.spec), res_df=models[0].df_residual,
        rss=models[0].rss, df=None, sum_sq=None, f_value=None, p_value=None,
    )]
    with timer.section('statistics'):
        for restricted, general in zip(models, models[1:]):
            df = general.rank - restricted.rank
            ss = max(restricted.rss - general.rss, 0.0)
            if scale > 0:
                f_value = (ss / df) / scale
                p_value = float(sp_stats.f.sf(f_value, df, scale_df))
            else:
                f_value = p_value = None
            rows.append(SequenceRow(
                model=str(general.design.spec), res_df=general.df_residual,
                rss=general.rss, df=df, sum_sq=ss, f_value=f_value, p_value=p_value,
            ))
    timer.stop()

    result = Result(
        params=SequenceParams(rows=tuple(rows), scale=scale, scale_df=scale_df),
        info={'method': 'nested_f_sequence', 'n_models': len(models)},
        timing=timer.result(),
        backend_name='cpu',
        warnings=(),
    )
    return ModelSequence(_result=result)


def anova_table(
    model: FittedModel,
    *,
    ss_type: int = 1,
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> AnovaTable:
    """
    Term-wise ANOVA table of one fitted model.

    Args:
        model: Fitted model; its design's terms are the table rows
        ss_type: 1 (sequential, R's anova()), 2 (marginal) or 3 (each term
            last, car::Anova type III)

    Returns:
        AnovaTable with rows, eta^2 and partial eta^2

    Raises:
        ValidationError: ss_type not in {1, 2, 3}
    """
    if ss_type not in (1, 2, 3):
        raise ValidationError(f"ss_type must be 1, 2, or 3, got {ss_type}")

    design = model.design
    result_warnings: list[str] = []
    if ss_type == 3:
        treatment = sorted(
            factor for factor, coding in design.codings.items()
            if coding.coding == 'treatment'
        )
        if treatment:
            message = (
                f"Type III sums of squares with treatment-coded factors {treatment}; "
                f"main-effect tests depend on the reference level. "
                f"Use Sum() or Helmert() coding."
            )
            warnings.warn(message, UserWarning, stacklevel=2)
            result_warnings.append(message)

    timer = Timer()
    timer.start()
    with timer.section('sums_of_squares'):
        compute = {1: compute_ss_type1, 2: compute_ss_type2, 3: compute_ss_type3}[ss_type]
        rows = compute(model.response, design, tolerances)
    timer.stop()

    residual_row = rows[-1]
    total_ss = sum(row.sum_sq for row in rows)
    eta_sq: dict[str, float] = {}
    partial_eta_sq: dict[str, float] = {}
    for row in rows[:-1]:
        eta_sq[row.term] = row.sum_sq / total_ss if total_ss > 0 else 0.0
        partial_eta_sq[row.term] = (
            row.sum_sq / (row.sum_sq + residual_row.sum_sq)
            if (row.sum_sq + residual_row.sum_sq) > 0 else 0.0
        )

    params = AnovaTableParams(
        table=tuple(rows),
        ss_type=ss_type,
        n_obs=model.n,
        residual_df=residual_row.df,
        residual_ss=residual_row.sum_sq,
        residual_ms=residual_row.mean_sq,
        eta_squared=eta_sq,
        partial_eta_squared=partial_eta_sq,
    )
    result = Result(
        params=params,
        info={'ss_type': ss_type, 'model': str(design.spec)},
        timing=timer.result(),
        backend_name='cpu_qr',
        warnings=tuple(result_warnings),
    )
    return AnovaTable(_result=result)


def bayes_factor(
    restricted: FittedModel,
    general: FittedModel,
    *,
    r_scale: float,
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> BayesFactorResult:
    """
    Default Bayes factor of the general model against the restricted one.

    Uses the Zellner-Siow (JZS) mixture of g-priors on the standardized
    effects, computed from each model's R^2. The prior scale has no default:
    conventions differ between t tests, ANOVA and regression, so the caller
    states it (sqrt(2)/4 'medium', 1/2 'wide', sqrt(2)/2 'ultrawide' are the
    usual regression choices).

    Args:
        restricted: Fitted restricted model (intercept required)
        general: Fitted general model it is nested in (intercept required)
        r_scale: Prior scale r > 0 on the effect size

    Returns:
        BayesFactorResult; bf10 > 1 favours the general model

    Raises:
        ValidationError: r_scale not positive and finite, or a model has no
            intercept
        DimensionMismatchError, InvalidComparisonError: As compare()
    """
    if not (np.isfinite(r_scale) and r_scale > 0):
        raise ValidationError(f"r_scale must be a positive finite number, got {r_scale}")
    for label, model in (('restricted', restricted), ('general', general)):
        if not model.design.has_intercept:
            raise ValidationError(
                f"bayes_factor() requires an intercept in both models; the {label} "
                f"model has none"
            )

    timer = Timer()
    timer.start()
    with timer.section('validation'):
        _validate_pair(restricted, general, tolerances)

    n = general.n
    p_r = restricted.rank - 1
    p_g = general.rank - 1
    r2_r = restricted.r_squared
    r2_g = general.r_squared
    result_warnings: list[str] = []

    with timer.section('integration'):
        if r2_g >= 1.0:
            log_bf, rel_error = float('inf'), 0.0
            result_warnings.append("General model fits perfectly (R^2 = 1); Bayes factor is infinite")
        else:
            log_g, err_g = log_bf_against_null(n, p_g, r2_g, r_scale)
            log_r, err_r = log_bf_against_null(n, p_r, r2_r, r_scale)
            log_bf = log_g - log_r
            rel_error = float(np.hypot(err_g, err_r))
    timer.stop()

    for message in result_warnings:
        warnings.warn(message, RuntimeWarning, stacklevel=2)

    params = BayesFactorParams(
        bf10=float(np.exp(log_bf)),
        log_bf10=log_bf,
        r_scale=float(r_scale),
        n_obs=n,
        restricted_r_squared=r2_r,
        general_r_squared=r2_g,
        restricted_n_predictors=p_r,
        general_n_predictors=p_g,
        rel_error=rel_error,
    )
    logger.debug("Bayes factor r=%g: log BF10 = %.6g", r_scale, log_bf)
    result = Result(
        params=params,
        info={
            'method': 'jzs_g_prior',
            'restricted': str(restricted.design.spec),
            'general': str(general.design.spec),
        },
        timing=timer.result(),
        backend_name='cpu',
        warnings=tuple(result_warnings),
    )
    return BayesFactorResult(_result=result)


# === Checks ===

def _validate_pair(
    restricted: FittedModel,
    general: FittedModel,
    tolerances: NumericTolerances,
) -> tuple[int, int]:
    """Run checks 1-5 of compare(); returns (df1, df2)."""
    if restricted.n != general.n:
        raise DimensionMismatchError(
            f"Models were fit to different numbers of observations: "
            f"restricted n={restricted.n}, general n={general.n}",
            expected=general.n,
            actual=restricted.n,
        )
    if not np.array_equal(restricted.response, general.response):
        raise InvalidComparisonError(
            "Models were fit to different response vectors",
            reason='response',
        )

    df1 = general.rank - restricted.rank
    df2 = general.n - general.rank
    if df1 <= 0:
        raise InvalidComparisonError(
            f"General model must have more parameters than the restricted model: "
            f"rank(G) - rank(R) = {general.rank} - {restricted.rank} = {df1}",
            reason='df1', df1=df1, df2=df2,
        )
    if df2 <= 0:
        raise InvalidComparisonError(
            f"General model leaves no residual degrees of freedom "
            f"(n = {general.n}, rank = {general.rank})",
            reason='df2', df1=df1, df2=df2,
        )

    basis = qr_pivoted(general.design.X, tolerances).basis
    residual = column_space_residual(basis, restricted.design.X)
    if residual > tolerances.nesting_rtol:
        raise InvalidComparisonError(
            f"Restricted model is not nested in the general model: a restricted "
            f"column lies outside the general column space (relative residual "
            f"{residual:.3g} > {tolerances.nesting_rtol:.3g})",
            reason='nesting', df1=df1, df2=df2,
        )
    return df1, df2


def _clamped_ss(
    restricted: FittedModel,
    general: FittedModel,
    tolerances: NumericTolerances,
    df1: int,
    df2: int,
) -> float:
    """RSS_R - RSS_G, clamped at zero inside tolerance (check 6)."""
    diff = restricted.rss - general.rss
    if diff >= 0:
        return diff

    y = general.response
    scale = max(restricted.rss, np.finfo(np.float64).eps * float(y @ y))
    if -diff > tolerances.rss_rtol * scale:
        raise InvalidComparisonError(
            f"General model has a larger residual sum of squares than the "
            f"restricted model it contains: RSS_G = {general.rss:.10g} > "
            f"RSS_R = {restricted.rss:.10g}",
            reason='rss', df1=df1, df2=df2,
        )
    return 0.0


def _f_test(
    ss: float,
    df1: int,
    rss_general: float,
    df2: int,
) -> tuple[float, float, list[str]]:
    """F and its upper-tail p-value; handles an exact general fit."""
    if rss_general > 0:
        f_value = (ss / df1) / (rss_general / df2)
        return f_value, float(sp_stats.f.sf(f_value, df1, df2)), []
    if ss > 0:
        return float('inf'), 0.0, []
    return float('nan'), float('nan'), [
        "Both models fit the response exactly (RSS = 0); F is undefined"
    ]


__all__ = ['compare', 'compare_sequence', 'anova_table', 'bayes_factor']
