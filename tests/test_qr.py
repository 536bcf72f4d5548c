# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from numlapack.enums import Side, Transpose
from numlapack.errors import PreconditionError
from numlapack.native import BlockConfig, Implementation
from numlapack.qr import (
    householder_qr,
    least_squares_householder_qr,
    random_nonsingular_qr,
)
from numlapack.utils import random_nonsingular_upper

TEST_ITERATIONS = 50
logger = logging.getLogger(__name__)

default = Implementation()
# Small blocks so that matrices of a few dozen rows take the blocked code.
small = Implementation(config=BlockConfig(nb=4, nbmin=2, nx=8))


def _query(routine, *args):
    work = np.zeros(1)
    routine(*args, work, -1)
    return np.zeros(int(work[0]))


def test_least_squares_householder_qr():
    n = TEST_ITERATIONS

    for i in range(n):
        logger.debug("==============================")
        A = random_nonsingular_upper(n, seed=i)
        A = A + np.tril(np.random.default_rng(i).standard_normal((n, n)), -1)

        # Generate a random vector x (the true solution)
        x_true = np.random.default_rng(i + 1).random(n)

        # Calculate b using the equation Ax = b
        b = np.dot(A, x_true)

        x_np, *_ = np.linalg.lstsq(A, b, rcond=None)
        x_householder = least_squares_householder_qr(A, b)

        res_np = np.linalg.norm(A @ x_np - b, ord=np.inf)
        res_householder = np.linalg.norm(A @ x_householder - b, ord=np.inf)
        scale = np.linalg.norm(A, ord=np.inf) * np.linalg.norm(x_true, ord=np.inf)
        assert res_householder <= max(res_np, 1e-14 * scale) * 100


@pytest.mark.parametrize("m,n", [(8, 5), (20, 20), (50, 10)])
def test_least_squares_overdetermined_matches_numpy(m, n):
    rng = np.random.default_rng(seed=m + n)
    A = rng.standard_normal((m, n))
    B = rng.standard_normal((m, 3))

    X = least_squares_householder_qr(A, B, impl=small)
    X_np, *_ = np.linalg.lstsq(A, B, rcond=None)
    assert X.shape == (n, 3)
    assert np.allclose(X, X_np, atol=1e-10)


def test_least_squares_rank_deficient_raises():
    A = np.ones((6, 3))
    with pytest.raises(PreconditionError):
        least_squares_householder_qr(A, np.ones(6))


def test_orthogonality_householder_qr():
    V = np.random.default_rng(0).standard_normal((100, 10))
    Q, R = householder_qr(V)
    identity = Q.T @ Q
    assert np.allclose(identity, np.eye(10), atol=1e-10)
    assert np.allclose(Q @ R, V, atol=1e-10)
    assert np.allclose(R, np.triu(R))


def test_random_nonsingular_qr_is_well_conditioned():
    A = random_nonsingular_qr(12, seed=3)
    assert np.linalg.matrix_rank(A) == 12


def test_householder_qr_wide_raises():
    with pytest.raises(PreconditionError):
        householder_qr(np.zeros((3, 5)))


# ----- native QR / LQ -----


@pytest.mark.parametrize("m,n", [(40, 20), (20, 20), (35, 12), (12, 30)])
def test_dgeqrf_blocked_matches_unblocked(m, n):
    rng = np.random.default_rng(seed=m + n)
    A = rng.standard_normal((m, n))
    k = min(m, n)

    blocked = A.copy().ravel()
    tau_b = np.zeros(k)
    work = _query(small.dgeqrf, m, n, blocked, n, tau_b)
    small.dgeqrf(m, n, blocked, n, tau_b, work, len(work))

    unblocked = A.copy().ravel()
    tau_u = np.zeros(k)
    small.dgeqr2(m, n, unblocked, n, tau_u, np.zeros(n))

    assert np.allclose(blocked, unblocked, atol=1e-10)
    assert np.allclose(tau_b, tau_u, atol=1e-12)


@pytest.mark.parametrize("impl", [default, small], ids=["default", "small-blocks"])
@pytest.mark.parametrize("m,n", [(8, 5), (20, 20), (50, 10), (40, 24)])
def test_qr_round_trip_and_orthogonality(impl, m, n):
    """Q R rebuilt with dormqr reproduces A; Q from dorgqr is orthonormal."""
    rng = np.random.default_rng(seed=m + n)
    A = rng.standard_normal((m, n))
    a = A.copy().ravel()
    tau = np.zeros(n)
    work = _query(impl.dgeqrf, m, n, a, n, tau)
    impl.dgeqrf(m, n, a, n, tau, work, len(work))
    R = np.triu(a.reshape(m, n))

    c = R.copy().ravel()
    work = _query(impl.dormqr, Side.LEFT, Transpose.NO_TRANS, m, n, n, a, n, tau, c, n)
    impl.dormqr(Side.LEFT, Transpose.NO_TRANS, m, n, n, a, n, tau, c, n, work, len(work))
    tol = 1e-13 * max(m, n) * np.linalg.norm(A, ord=np.inf)
    assert np.allclose(c.reshape(m, n), A, atol=tol)

    q = a.copy()
    work = _query(impl.dorgqr, m, n, n, q, n, tau)
    impl.dorgqr(m, n, n, q, n, tau, work, len(work))
    Q = q.reshape(m, n)
    assert np.allclose(Q.T @ Q, np.eye(n), atol=1e-12)
    assert np.allclose(Q @ R[:n], A, atol=tol)


@pytest.mark.parametrize("side", [Side.LEFT, Side.RIGHT])
@pytest.mark.parametrize("trans", [Transpose.NO_TRANS, Transpose.TRANS])
@pytest.mark.parametrize("impl", [default, small], ids=["default", "small-blocks"])
def test_dormqr_matches_explicit_q(side, trans, impl):
    rng = np.random.default_rng(seed=21)
    nq, k, p = 30, 13, 7
    a = rng.standard_normal((nq, k)).ravel()
    tau = np.zeros(k)
    impl.dgeqrf(nq, k, a, k, tau, np.zeros(k * 64), k * 64)

    # Full Q (nq x nq) from the same reflectors.
    qfull = np.zeros((nq, nq))
    qfull[:, :k] = a.reshape(nq, k)
    q = qfull.ravel()
    work = _query(impl.dorgqr, nq, nq, k, q, nq, tau)
    impl.dorgqr(nq, nq, k, q, nq, tau, work, len(work))
    Q = q.reshape(nq, nq)
    assert np.allclose(Q.T @ Q, np.eye(nq), atol=1e-12)
    op = Q if trans is Transpose.NO_TRANS else Q.T

    m, n = (nq, p) if side is Side.LEFT else (p, nq)
    C = rng.standard_normal((m, n))
    c = C.copy().ravel()
    work = _query(impl.dormqr, side, trans, m, n, k, a, k, tau, c, n)
    impl.dormqr(side, trans, m, n, k, a, k, tau, c, n, work, len(work))
    want = op @ C if side is Side.LEFT else C @ op
    assert np.allclose(c.reshape(m, n), want, atol=1e-11)


def test_dormqr_minimal_workspace_falls_back_to_unblocked():
    rng = np.random.default_rng(4)
    m, n, k = 20, 6, 12
    a = rng.standard_normal((m, k)).ravel()
    tau = np.zeros(k)
    small.dgeqr2(m, k, a, k, tau, np.zeros(k))
    C = rng.standard_normal((m, n))

    c_min = C.copy().ravel()
    small.dormqr(Side.LEFT, Transpose.TRANS, m, n, k, a, k, tau, c_min, n, np.zeros(n), n)
    c_opt = C.copy().ravel()
    work = _query(small.dormqr, Side.LEFT, Transpose.TRANS, m, n, k, a, k, tau, c_opt, n)
    small.dormqr(Side.LEFT, Transpose.TRANS, m, n, k, a, k, tau, c_opt, n, work, len(work))
    assert np.allclose(c_min, c_opt, atol=1e-12)


@pytest.mark.parametrize("impl", [default, small], ids=["default", "small-blocks"])
@pytest.mark.parametrize("m,n", [(5, 8), (12, 30), (20, 20)])
def test_lq_round_trip_and_orthogonality(impl, m, n):
    rng = np.random.default_rng(seed=m * n)
    A = rng.standard_normal((m, n))
    a = A.copy().ravel()
    tau = np.zeros(m)
    work = _query(impl.dgelqf, m, n, a, n, tau)
    impl.dgelqf(m, n, a, n, tau, work, len(work))
    L = np.tril(a.reshape(m, n)[:, :m])

    work = _query(impl.dorglq, m, n, m, a, n, tau)
    impl.dorglq(m, n, m, a, n, tau, work, len(work))
    Q = a.reshape(m, n)
    assert np.allclose(Q @ Q.T, np.eye(m), atol=1e-12)
    assert np.allclose(L @ Q, A, atol=1e-11)


def test_dgelqf_blocked_matches_unblocked():
    rng = np.random.default_rng(9)
    m, n = 18, 25
    A = rng.standard_normal((m, n))
    blocked = A.copy().ravel()
    tau_b = np.zeros(m)
    small.dgelqf(m, n, blocked, n, tau_b, np.zeros(m * 4), m * 4)
    unblocked = A.copy().ravel()
    tau_u = np.zeros(m)
    small.dgelq2(m, n, unblocked, n, tau_u, np.zeros(m))
    assert np.allclose(blocked, unblocked, atol=1e-10)
    assert np.allclose(tau_b, tau_u, atol=1e-12)


# ----- workspace and preconditions -----


@pytest.mark.parametrize(
    "call, minimum",
    [
        (lambda w, lw: default.dgeqrf(10, 6, np.zeros(60), 6, np.zeros(6), w, lw), 6),
        (lambda w, lw: default.dgelqf(6, 10, np.zeros(60), 10, np.zeros(6), w, lw), 6),
        (lambda w, lw: default.dorgqr(10, 6, 6, np.zeros(60), 6, np.zeros(6), w, lw), 6),
        (lambda w, lw: default.dorglq(6, 10, 6, np.zeros(60), 10, np.zeros(6), w, lw), 6),
    ],
)
def test_workspace_query_and_minimum(call, minimum):
    work = np.zeros(1)
    call(work, -1)
    assert work[0] >= minimum

    with pytest.raises(PreconditionError, match="insufficient working memory"):
        call(np.zeros(minimum), minimum - 1)
    with pytest.raises(PreconditionError):
        call(np.zeros(minimum - 1), minimum)


def test_precondition_errors_are_value_errors():
    with pytest.raises(ValueError):
        default.dgeqrf(4, 3, np.zeros(12), 2, np.zeros(3), np.zeros(3), 3)
    with pytest.raises(PreconditionError, match="insufficient matrix slice length"):
        default.dgeqrf(4, 3, np.zeros(11), 3, np.zeros(3), np.zeros(3), 3)
    with pytest.raises(PreconditionError, match="tau"):
        default.dgeqrf(4, 3, np.zeros(12), 3, np.zeros(2), np.zeros(3), 3)
    with pytest.raises(PreconditionError, match="bad side"):
        default.dormqr("X", "N", 4, 3, 3, np.zeros(12), 3, np.zeros(3),
                       np.zeros(12), 3, np.zeros(64), 64)


def test_dormqr_accepts_character_flags():
    rng = np.random.default_rng(1)
    m, n = 7, 4
    a = rng.standard_normal(m * n)
    tau = np.zeros(n)
    default.dgeqr2(m, n, a, n, tau, np.zeros(n))
    c1 = rng.standard_normal(m * 2)
    c2 = c1.copy()
    default.dormqr("L", "T", m, 2, n, a, n, tau, c1, 2, np.zeros(2), 2)
    default.dormqr(Side.LEFT, Transpose.TRANS, m, 2, n, a, n, tau, c2, 2, np.zeros(2), 2)
    assert np.array_equal(c1, c2)
