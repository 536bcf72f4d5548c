# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from numlapack.enums import ApplyOrtho, Uplo
from numlapack.errors import PreconditionError
from numlapack.native import BlockConfig, Implementation

logger = logging.getLogger(__name__)

default = Implementation()
small = Implementation(config=BlockConfig(nb=4, nbmin=2, nx=8))


def _query(routine, *args):
    work = np.zeros(1)
    routine(*args, work, -1)
    return np.zeros(int(work[0]))


def _bidiagonalize(impl, A):
    m, n = A.shape
    k = min(m, n)
    a = A.copy().ravel()
    d, e = np.zeros(k), np.zeros(max(1, k - 1))
    tauq, taup = np.zeros(k), np.zeros(k)
    work = _query(impl.dgebrd, m, n, a, n, d, e, tauq, taup)
    impl.dgebrd(m, n, a, n, d, e, tauq, taup, work, len(work))
    return a, d, e, tauq, taup


def _dense_bidiagonal(d, e, upper):
    k = len(d)
    B = np.diag(d)
    if k > 1:
        B += np.diag(e[: k - 1], 1 if upper else -1)
    return B


@pytest.mark.parametrize("m,n", [(30, 20), (20, 30), (24, 24)])
def test_dgebrd_blocked_matches_unblocked(m, n):
    rng = np.random.default_rng(seed=m * n)
    A = rng.standard_normal((m, n))
    a_b, d_b, e_b, tq_b, tp_b = _bidiagonalize(small, A)

    k = min(m, n)
    a_u = A.copy().ravel()
    d_u, e_u = np.zeros(k), np.zeros(k - 1)
    tq_u, tp_u = np.zeros(k), np.zeros(k)
    small.dgebd2(m, n, a_u, n, d_u, e_u, tq_u, tp_u, np.zeros(max(m, n)))

    assert np.allclose(d_b, d_u, atol=1e-10)
    assert np.allclose(e_b[: k - 1], e_u, atol=1e-10)
    assert np.allclose(tq_b, tq_u, atol=1e-10)
    assert np.allclose(tp_b, tp_u, atol=1e-10)
    assert np.allclose(a_b, a_u, atol=1e-10)


@pytest.mark.parametrize("impl", [default, small], ids=["default", "small-blocks"])
@pytest.mark.parametrize("m,n", [(9, 6), (20, 12), (12, 12), (1, 1)])
def test_dorgbr_reconstructs_tall(impl, m, n):
    """A = Q B Pᵀ with B upper bidiagonal when m >= n."""
    rng = np.random.default_rng(seed=m + 3 * n)
    A = rng.standard_normal((m, n))
    a, d, e, tauq, taup = _bidiagonalize(impl, A)

    q = a.copy()
    work = _query(impl.dorgbr, ApplyOrtho.APPLY_Q, m, n, n, q, n, tauq)
    impl.dorgbr(ApplyOrtho.APPLY_Q, m, n, n, q, n, tauq, work, len(work))
    Q = q.reshape(m, n)

    pt = a[: n * n].copy()
    work = _query(impl.dorgbr, ApplyOrtho.APPLY_P, n, n, m, pt, n, taup)
    impl.dorgbr(ApplyOrtho.APPLY_P, n, n, m, pt, n, taup, work, len(work))
    PT = pt.reshape(n, n)

    B = _dense_bidiagonal(d, e, upper=True)
    assert np.allclose(Q.T @ Q, np.eye(n), atol=1e-12)
    assert np.allclose(PT @ PT.T, np.eye(n), atol=1e-12)
    assert np.allclose(Q @ B @ PT, A, atol=1e-11)


@pytest.mark.parametrize("impl", [default, small], ids=["default", "small-blocks"])
@pytest.mark.parametrize("m,n", [(6, 9), (12, 20)])
def test_dorgbr_reconstructs_wide(impl, m, n):
    """A = Q B Pᵀ with B lower bidiagonal when m < n."""
    rng = np.random.default_rng(seed=5 * m + n)
    A = rng.standard_normal((m, n))
    a, d, e, tauq, taup = _bidiagonalize(impl, A)

    q = a.reshape(m, n)[:, :m].copy().ravel()
    work = _query(impl.dorgbr, ApplyOrtho.APPLY_Q, m, m, n, q, m, tauq)
    impl.dorgbr(ApplyOrtho.APPLY_Q, m, m, n, q, m, tauq, work, len(work))
    Q = q.reshape(m, m)

    pt = a.copy()
    work = _query(impl.dorgbr, ApplyOrtho.APPLY_P, m, n, m, pt, n, taup)
    impl.dorgbr(ApplyOrtho.APPLY_P, m, n, m, pt, n, taup, work, len(work))
    PT = pt.reshape(m, n)

    B = _dense_bidiagonal(d, e, upper=False)
    assert np.allclose(Q.T @ Q, np.eye(m), atol=1e-12)
    assert np.allclose(PT @ PT.T, np.eye(m), atol=1e-12)
    assert np.allclose(Q @ B @ PT, A, atol=1e-11)


def test_dgebrd_minimal_workspace():
    rng = np.random.default_rng(2)
    m, n = 30, 20
    A = rng.standard_normal((m, n))
    a_opt, d_opt, *_ = _bidiagonalize(small, A)

    a = A.copy().ravel()
    d, e = np.zeros(n), np.zeros(n - 1)
    tauq, taup = np.zeros(n), np.zeros(n)
    small.dgebrd(m, n, a, n, d, e, tauq, taup, np.zeros(m), m)
    assert np.allclose(d, d_opt, atol=1e-10)
    assert np.allclose(a, a_opt, atol=1e-10)


def test_dorgbr_rejects_bad_shapes():
    with pytest.raises(PreconditionError, match="m < n"):
        default.dorgbr("Q", 3, 5, 3, np.zeros(15), 5, np.zeros(3), np.zeros(5), 5)
    with pytest.raises(PreconditionError, match="n < m"):
        default.dorgbr("P", 5, 3, 3, np.zeros(15), 3, np.zeros(3), np.zeros(5), 5)
    with pytest.raises(PreconditionError, match="ApplyOrtho"):
        default.dorgbr("X", 3, 3, 3, np.zeros(9), 3, np.zeros(3), np.zeros(3), 3)


# ----- dbdsqr -----


@pytest.mark.parametrize("uplo", [Uplo.UPPER, Uplo.LOWER])
@pytest.mark.parametrize("n", [1, 2, 5, 16])
def test_dbdsqr_accumulates_rotations(uplo, n):
    """u diag(d) vt rebuilds B when U, VT and C start as the identity."""
    rng = np.random.default_rng(seed=n)
    d = rng.standard_normal(n)
    e = rng.standard_normal(max(1, n - 1))
    B = _dense_bidiagonal(d, e, upper=uplo is Uplo.UPPER)

    vt = np.eye(n).ravel()
    u = np.eye(n).ravel()
    c = np.eye(n).ravel()
    ok = default.dbdsqr(
        uplo, n, n, n, n, d, e, vt, n, u, n, c, n, np.zeros(max(1, 4 * (n - 1)))
    )
    assert ok

    U, VT, C = u.reshape(n, n), vt.reshape(n, n), c.reshape(n, n)
    assert np.all(d >= 0)
    assert np.all(np.diff(d) <= 0)
    assert np.allclose(d, np.linalg.svd(B, compute_uv=False), atol=1e-12)
    assert np.allclose(U @ np.diag(d) @ VT, B, atol=1e-12)
    assert np.allclose(C, U.T, atol=1e-12)


def test_dbdsqr_values_only_matches_numpy():
    rng = np.random.default_rng(8)
    n = 25
    d = rng.standard_normal(n)
    e = rng.standard_normal(n - 1)
    B = _dense_bidiagonal(d, e, upper=True)
    dummy = np.zeros(1)
    ok = default.dbdsqr(Uplo.UPPER, n, 0, 0, 0, d, e, dummy, 1, dummy, 1, dummy, 1,
                        np.zeros(4 * (n - 1)))
    assert ok
    assert np.allclose(d, np.linalg.svd(B, compute_uv=False), atol=1e-12)


def test_dbdsqr_graded_matrix_keeps_relative_accuracy():
    # Entries spanning many orders of magnitude: the small singular values
    # must come out with high relative accuracy.
    n = 6
    d = 10.0 ** -np.arange(0, 2 * n, 2, dtype=float)
    e = 0.5 * 10.0 ** -np.arange(1, 2 * n - 1, 2, dtype=float)
    B = _dense_bidiagonal(d, e, upper=True)
    want = np.sort(np.abs(np.linalg.eigvalsh(B @ B.T)) ** 0.5)[::-1]
    det = np.prod(np.abs(d))
    dummy = np.zeros(1)
    ok = default.dbdsqr("U", n, 0, 0, 0, d, e, dummy, 1, dummy, 1, dummy, 1,
                        np.zeros(4 * (n - 1)))
    assert ok
    assert np.allclose(d[:2], want[:2], rtol=1e-10)
    # |det B| is the product of the singular values.
    assert np.isclose(np.prod(d), det, rtol=1e-12, atol=0)
    assert d[-1] > 0


def test_dbdsqr_negative_singular_value_flips_vt():
    d = np.array([-3.0])
    vt = np.array([1.0, 2.0])
    ok = default.dbdsqr(Uplo.UPPER, 1, 2, 0, 0, d, np.zeros(1), vt, 2,
                        np.zeros(1), 1, np.zeros(1), 1, np.zeros(1))
    assert ok
    assert d[0] == 3.0
    assert np.array_equal(vt, [-1.0, -2.0])


def test_dbdsqr_preconditions():
    z = np.zeros(16)
    with pytest.raises(PreconditionError, match="illegal triangle"):
        default.dbdsqr(Uplo.ALL, 4, 0, 0, 0, z, z, z, 1, z, 1, z, 1, z)
    with pytest.raises(PreconditionError, match="working memory"):
        default.dbdsqr(Uplo.UPPER, 4, 0, 0, 0, z, z, z, 1, z, 1, z, 1, np.zeros(11))
    with pytest.raises(PreconditionError, match="leading dimension of U"):
        default.dbdsqr(Uplo.UPPER, 4, 0, 4, 0, z, z, z, 1, z, 3, z, 1, z)
