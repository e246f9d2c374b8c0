"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pylmcompare.core.dataset import Dataset


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Two numeric predictors and a noisy linear response."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    y = 1.0 - 2.0 * x1 + 0.5 * x2 + rng.standard_normal(n) * 0.1
    return Dataset.from_columns(y=y, x1=x1, x2=x2)


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity: x3 = x1 + x2."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    return Dataset.from_columns(
        y=rng.standard_normal(n), x1=x1, x2=x2, x3=x1 + x2,
    )


# =====================================================================
# Factor fixtures
# =====================================================================


@pytest.fixture
def oneway_balanced():
    """3-group balanced design (n=10 each), clear group differences."""
    rng = np.random.default_rng(42)
    n_per_group = 10
    y = np.concatenate([
        rng.normal(10.0, 2.0, n_per_group),
        rng.normal(15.0, 2.0, n_per_group),
        rng.normal(20.0, 2.0, n_per_group),
    ])
    group = ['A'] * n_per_group + ['B'] * n_per_group + ['C'] * n_per_group
    return Dataset.from_columns(y=y, group=group)


@pytest.fixture
def two_groups():
    """Two small groups with a clear mean difference."""
    return Dataset.from_columns(
        y=[10.0, 12.0, 11.0, 20.0, 22.0, 19.0],
        group=['A', 'A', 'A', 'B', 'B', 'B'],
    )


@pytest.fixture
def factorial_unbalanced():
    """2x3 factorial with unequal cell sizes and a numeric covariate."""
    rng = np.random.default_rng(7)
    a_levels = ['lo', 'hi']
    b_levels = ['x', 'y', 'z']
    sizes = [[4, 6, 5], [7, 3, 5]]
    a, b, y, cov = [], [], [], []
    for i, la in enumerate(a_levels):
        for j, lb in enumerate(b_levels):
            k = sizes[i][j]
            a.extend([la] * k)
            b.extend([lb] * k)
            c = rng.normal(0.0, 1.0, k)
            cov.extend(c)
            y.extend(5.0 + 2.0 * i + 1.5 * j + 0.8 * i * j + 0.7 * c + rng.normal(0.0, 1.0, k))
    return Dataset.from_columns(y=y, a=a, b=b, cov=cov)
