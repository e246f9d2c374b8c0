"""
Default Bayes factors for linear models from R^2.

Zellner-Siow mixture of g-priors (the JZS prior): with g ~ InvGamma(1/2,
r^2 N / 2), the Bayes factor of a model with p predictors and coefficient
of determination R^2 against the intercept-only model is

    BF = integral_0^inf (1 + g)^((N - p - 1) / 2)
                        (1 + g (1 - R^2))^(-(N - 1) / 2)  IG(g) dg

The integral is evaluated on u = log(g) after shifting by the integrand's
maximum, so it stays finite for large N and strong effects. Nested models
are compared through their BFs against the common intercept-only model.
"""

from typing import Any

import numpy as np
from scipy import integrate, optimize
from scipy.special import gammaln

_HALF = 0.5


def _log_integrand(u: float, n: int, p: int, r2: float, r_scale: float) -> float:
    """log of the integrand on the log(g) scale, including the Jacobian g."""
    g = np.exp(u)
    log_lik = _HALF * ((n - p - 1) * np.log1p(g) - (n - 1) * np.log1p(g * (1.0 - r2)))
    b = r_scale ** 2 * n / 2.0
    log_prior = _HALF * np.log(b) - gammaln(_HALF) - (_HALF + 1.0) * u - b / g
    return float(log_lik + log_prior + u)


def log_bf_against_null(n: int, p: int, r2: float, r_scale: float) -> tuple[float, float]:
    """
    log BF of a p-predictor model with R^2 against the intercept-only model.

    Returns:
        (log BF, relative quadrature error)
    """
    if p == 0:
        return 0.0, 0.0

    args: tuple[Any, ...] = (n, p, r2, r_scale)
    found = optimize.minimize_scalar(
        lambda u: -_log_integrand(u, *args), bounds=(-40.0, 60.0), method='bounded',
    )
    umax = float(found.x)
    hmax = _log_integrand(umax, *args)

    value, abserr = integrate.quad(
        lambda u: np.exp(_log_integrand(u, *args) - hmax),
        umax - 60.0, umax + 200.0, points=[umax], limit=200,
    )
    return hmax + float(np.log(value)), float(abserr / value) if value > 0 else float('inf')
