# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pytest

from numlapack.eigen import eigh_tridiagonal, eigvalsh_tridiagonal
from numlapack.enums import EigComp
from numlapack.errors import ConvergenceError, PreconditionError
from numlapack.native import Implementation
from numlapack.utils import random_tridiagonal

impl = Implementation()

KNOWN_D = [1.0, 3.0, 4.0, 6.0]
KNOWN_E = [2.0, 4.0, 5.0]
KNOWN_W = [
    -2.546379458290125,
    0.704229756383872,
    4.795922173417400,
    11.046227528488854,
]


def test_dsterf_known_eigenvalues():
    d = np.array(KNOWN_D)
    e = np.array(KNOWN_E)
    assert impl.dsterf(4, d, e)
    np.testing.assert_allclose(d, KNOWN_W, rtol=1e-12, atol=1e-12)


def test_dsteqr_known_eigenpairs():
    d = np.array(KNOWN_D)
    e = np.array(KNOWN_E)
    z = np.zeros(16)
    assert impl.dsteqr(EigComp.TRIDIAGONAL, 4, d, e, z, 4, np.zeros(6))
    np.testing.assert_allclose(d, KNOWN_W, rtol=1e-12, atol=1e-12)

    T = np.diag(KNOWN_D) + np.diag(KNOWN_E, 1) + np.diag(KNOWN_E, -1)
    Z = z.reshape(4, 4)
    np.testing.assert_allclose(T @ Z, Z * d, atol=1e-12)
    np.testing.assert_allclose(Z.T @ Z, np.eye(4), atol=1e-12)


@pytest.mark.parametrize("n", [1, 2, 3, 10, 47])
def test_eigh_tridiagonal_matches_numpy(n):
    d, e, T = random_tridiagonal(n, seed=n)
    w, Z = eigh_tridiagonal(d, e)
    w_np = np.linalg.eigvalsh(T)

    np.testing.assert_allclose(w, w_np, rtol=1e-10, atol=1e-12)
    assert np.all(np.diff(w) >= 0)
    np.testing.assert_allclose(Z.T @ Z, np.eye(n), atol=1e-12)
    np.testing.assert_allclose(T @ Z, Z * w, atol=1e-11)


@pytest.mark.parametrize("n", [1, 2, 5, 30])
def test_eigvalsh_tridiagonal_matches_dsteqr(n):
    d, e, T = random_tridiagonal(n, seed=100 + n)
    w_pwk = eigvalsh_tridiagonal(d, e)
    w_ql = eigh_tridiagonal(d, e, eigvals_only=True)
    np.testing.assert_allclose(w_pwk, w_ql, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(w_pwk, np.linalg.eigvalsh(T), rtol=1e-10, atol=1e-12)


def test_inputs_are_not_modified():
    d, e, _ = random_tridiagonal(6, seed=3)
    d0, e0 = d.copy(), e.copy()
    eigh_tridiagonal(d, e)
    eigvalsh_tridiagonal(d, e)
    assert np.array_equal(d, d0)
    assert np.array_equal(e, e0)


def test_reversed_matrix_takes_the_other_sweep_direction():
    """QL (top) and QR (bottom) chasing must give the same spectrum."""
    d = np.array([10.0, 4.0, 2.0, 1.0, 0.5])
    e = np.array([1.0, 0.7, 0.3, 0.2])
    forward = eigvalsh_tridiagonal(d, e)
    backward = eigvalsh_tridiagonal(d[::-1], e[::-1])
    np.testing.assert_allclose(forward, backward, rtol=1e-13)

    w1, Z1 = eigh_tridiagonal(d, e)
    w2, Z2 = eigh_tridiagonal(d[::-1], e[::-1])
    np.testing.assert_allclose(w1, w2, rtol=1e-13)
    # Reversing the matrix reverses the components of every eigenvector.
    np.testing.assert_allclose(np.abs(Z1), np.abs(Z2[::-1]), atol=1e-12)


def test_sorted_diagonal_matrix_is_exact():
    w, Z = eigh_tridiagonal([1.0, 2.0, 3.0], [0.0, 0.0])
    assert np.array_equal(w, [1.0, 2.0, 3.0])
    assert np.array_equal(Z, np.eye(3))
    assert np.array_equal(eigvalsh_tridiagonal([1.0, 2.0, 3.0], [0.0, 0.0]), [1.0, 2.0, 3.0])


def test_diagonal_matrix_is_exact():
    w, Z = eigh_tridiagonal([3.0, 1.0, 2.0], [0.0, 0.0])
    assert np.array_equal(w, [1.0, 2.0, 3.0])
    assert np.array_equal(np.abs(Z), np.eye(3)[[1, 2, 0]].T)


def test_split_matrix():
    # A zero off-diagonal splits T into independent blocks.
    d = [2.0, 1.0, 5.0, 4.0]
    e = [1.0, 0.0, 1.0]
    T = np.diag(d) + np.diag(e, 1) + np.diag(e, -1)
    np.testing.assert_allclose(eigvalsh_tridiagonal(d, e), np.linalg.eigvalsh(T), rtol=1e-13)
    w, Z = eigh_tridiagonal(d, e)
    np.testing.assert_allclose(T @ Z, Z * w, atol=1e-13)


@pytest.mark.parametrize("factor", [1e160, 1e-130])
def test_extreme_magnitudes_are_rescaled(factor):
    base = np.array(KNOWN_W)
    d = np.array(KNOWN_D) * factor
    e = np.array(KNOWN_E) * factor
    np.testing.assert_allclose(eigvalsh_tridiagonal(d, e) / factor, base, rtol=1e-12)
    w, Z = eigh_tridiagonal(d, e)
    np.testing.assert_allclose(w / factor, base, rtol=1e-12)
    np.testing.assert_allclose(Z.T @ Z, np.eye(4), atol=1e-12)


def test_dsteqr_original_accumulates_into_z():
    """With EigComp.ORIGINAL, z = Q on entry yields the eigenvectors of Q T Qᵀ."""
    n = 8
    d, e, T = random_tridiagonal(n, seed=12)
    Q, _ = np.linalg.qr(np.random.default_rng(12).standard_normal((n, n)))
    A = Q @ T @ Q.T

    z = Q.copy().ravel()
    dd, ee = d.copy(), e.copy()
    assert impl.dsteqr(EigComp.ORIGINAL, n, dd, ee, z, n, np.zeros(2 * n - 2))
    Z = z.reshape(n, n)
    np.testing.assert_allclose(A @ Z, Z * dd, atol=1e-11)


def test_nan_input_reports_non_convergence():
    d = np.array([1.0, np.nan, 2.0])
    e = np.array([1.0, 1.0])
    assert not impl.dsterf(3, d.copy(), e.copy())
    assert not impl.dsteqr(EigComp.VALUES_ONLY, 3, d.copy(), e.copy(), np.zeros(1), 1, np.zeros(1))

    with pytest.raises(ConvergenceError) as info:
        eigvalsh_tridiagonal(d, e)
    assert info.value.routine == "dsterf"
    assert info.value.iterations == 90


def test_non_convergence_is_logged(caplog):
    class Stuck(Implementation):
        def dsteqr(self, *args):
            return False

    with pytest.raises(ConvergenceError) as info:
        eigh_tridiagonal([1.0, 2.0], [1.0], impl=Stuck())
    assert info.value.routine == "dsteqr"
    assert "failed to converge" in caplog.text


def test_bad_arguments():
    with pytest.raises(PreconditionError):
        eigh_tridiagonal([1.0, 2.0, 3.0], [1.0])
    with pytest.raises(PreconditionError, match="EigComp"):
        impl.dsteqr("X", 2, np.ones(2), np.ones(1), np.zeros(4), 2, np.zeros(2))
    with pytest.raises(PreconditionError, match="leading dimension of Z"):
        impl.dsteqr("I", 3, np.ones(3), np.ones(2), np.zeros(9), 2, np.zeros(4))
    with pytest.raises(PreconditionError, match="working memory"):
        impl.dsteqr("I", 3, np.ones(3), np.ones(2), np.zeros(9), 3, np.zeros(3))
    with pytest.raises(PreconditionError, match="e has insufficient length"):
        impl.dsterf(3, np.ones(3), np.ones(1))


class Capped(Implementation):
    max_sweeps = 0


GRADED_D = [1e4, 1e3, 1e2, 10.0, 1.0, 0.1]
GRADED_E = [1.0, 1.0, 1.0, 1.0, 1.0]


def test_sweep_limit_leaves_partial_results():
    capped = Capped()
    d = np.array(GRADED_D)
    e = np.array(GRADED_E)
    assert not capped.dsteqr(EigComp.VALUES_ONLY, 6, d, e, np.zeros(1), 1, np.zeros(1))
    assert np.count_nonzero(e) == 5
    # No final sort happens, so the graded diagonal keeps its order.
    assert np.array_equal(d, GRADED_D)

    d = np.array(GRADED_D)
    e = np.array(GRADED_E)
    assert not capped.dsterf(6, d, e)
    assert np.count_nonzero(e) == 5
    assert np.array_equal(d, GRADED_D)

    # The same matrix converges under the default limit.
    np.testing.assert_allclose(
        eigvalsh_tridiagonal(GRADED_D, GRADED_E),
        np.linalg.eigvalsh(np.diag(GRADED_D) + np.diag(GRADED_E, 1) + np.diag(GRADED_E, -1)),
        rtol=1e-10,
        atol=1e-9,
    )


@pytest.mark.parametrize("routine", ["dsteqr", "dsterf"])
def test_sweep_limit_raises_with_iteration_count(routine):
    call = eigh_tridiagonal if routine == "dsteqr" else eigvalsh_tridiagonal
    with pytest.raises(ConvergenceError) as info:
        call(GRADED_D, GRADED_E, impl=Capped())
    assert info.value.routine == routine
    assert info.value.iterations == 0
    assert info.value.unconverged == 5
