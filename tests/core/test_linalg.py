"""
Tests for the linear algebra kernels and numeric tolerances.

Validates:
    - Pivoted QR rank and aliased columns
    - qr_solve / svd_solve agree with numpy lstsq
    - column_space_residual detects nesting
    - NumericTolerances cut-offs and overrides
"""

import numpy as np
import pytest

from pylmcompare.core.compute.linalg.qr import qr_pivoted, qr_solve, column_space_residual
from pylmcompare.core.compute.linalg.svd import svd_thin, svd_solve
from pylmcompare.core.compute.tolerances import DEFAULT_TOLERANCES, NumericTolerances
from pylmcompare.core.compute.timing import Timer


class TestQR:

    def test_full_rank(self, rng):
        X = rng.standard_normal((30, 4))
        qr = qr_pivoted(X)
        assert qr.rank == 4
        assert len(qr.aliased) == 0
        assert qr.basis.shape == (30, 4)

    def test_collinear_column_aliased(self, rng):
        x1 = rng.standard_normal(30)
        x2 = rng.standard_normal(30)
        X = np.column_stack([x1, x2, x1 + x2])
        qr = qr_pivoted(X)
        assert qr.rank == 2
        assert len(qr.aliased) == 1

    def test_zero_matrix(self):
        qr = qr_pivoted(np.zeros((5, 2)))
        assert qr.rank == 0

    def test_empty_matrix(self):
        qr = qr_pivoted(np.zeros((5, 0)))
        assert qr.rank == 0
        assert qr.basis.shape == (5, 0)

    def test_solve_matches_lstsq(self, rng):
        X = rng.standard_normal((50, 3))
        y = rng.standard_normal(50)
        beta, cov = qr_solve(qr_pivoted(X), y)
        expected, *_ = np.linalg.lstsq(X, y, rcond=None)
        np.testing.assert_allclose(beta, expected, rtol=1e-10)
        np.testing.assert_allclose(cov, np.linalg.inv(X.T @ X), rtol=1e-10)


class TestSVD:

    def test_solve_matches_lstsq(self, rng):
        X = rng.standard_normal((50, 3))
        y = rng.standard_normal(50)
        beta, _ = svd_solve(svd_thin(X), y)
        expected, *_ = np.linalg.lstsq(X, y, rcond=None)
        np.testing.assert_allclose(beta, expected, rtol=1e-10)

    def test_condition_number(self):
        X = np.diag([10.0, 1.0])
        assert svd_thin(X).condition_number == pytest.approx(10.0)

    def test_rank_deficient(self, rng):
        x = rng.standard_normal(20)
        assert svd_thin(np.column_stack([x, 2 * x])).rank == 1


class TestColumnSpaceResidual:

    def test_nested_columns(self, rng):
        X = rng.standard_normal((40, 3))
        basis = qr_pivoted(X).basis
        A = X[:, :2] @ np.array([[1.0, 2.0], [0.5, -1.0]])
        assert column_space_residual(basis, A) < 1e-12

    def test_outside_column_space(self, rng):
        X = rng.standard_normal((40, 2))
        basis = qr_pivoted(X).basis
        other = rng.standard_normal((40, 1))
        assert column_space_residual(basis, other) > 0.1

    def test_no_columns(self, rng):
        basis = qr_pivoted(rng.standard_normal((10, 2))).basis
        assert column_space_residual(basis, np.zeros((10, 0))) == 0.0


class TestTolerances:

    def test_default_rank_cutoff_scales_with_shape(self):
        eps = np.finfo(np.float64).eps
        assert DEFAULT_TOLERANCES.rank_cutoff((100, 3)) == pytest.approx(100 * eps)

    def test_explicit_rank_rtol(self):
        tol = NumericTolerances(rank_rtol=1e-6)
        assert tol.rank_cutoff((100, 3)) == 1e-6

    def test_with_overrides(self):
        tol = DEFAULT_TOLERANCES.with_overrides(nesting_rtol=1e-4)
        assert tol.nesting_rtol == 1e-4
        assert DEFAULT_TOLERANCES.nesting_rtol == 1e-8


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        with timer.section('a'):
            pass
        with timer.section('a'):
            pass
        timer.stop()
        result = timer.result()
        assert 'total_seconds' in result
        assert 'a' in result

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError):
            timer.result()

    def test_context_manager(self):
        with Timer() as timer:
            with timer.section('work'):
                pass
        assert set(timer.result()) == {'total_seconds', 'work'}
