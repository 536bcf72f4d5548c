# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from numlapack.enums import Direct, Side, StoreV, Transpose
from numlapack.errors import PreconditionError
from numlapack.native import Implementation

logger = logging.getLogger(__name__)

impl = Implementation()


def _reflector(v_tail, tau):
    v = np.concatenate([[1.0], v_tail])
    return np.eye(len(v)) - tau * np.outer(v, v)


@pytest.mark.parametrize("n", [1, 2, 5, 17])
def test_dlarfg_annihilates_tail(n):
    """H [alpha; x] = [beta; 0] with |beta| = ‖[alpha; x]‖₂ and H orthogonal."""
    rng = np.random.default_rng(seed=n)
    x = rng.standard_normal(n)
    tail = x[1:].copy()

    beta, tau = impl.dlarfg(n, x[0], tail, 1)
    H = _reflector(tail, tau)

    y = H @ x
    assert np.isclose(abs(beta), np.linalg.norm(x), rtol=1e-14)
    assert np.isclose(y[0], beta, atol=1e-12)
    assert np.allclose(y[1:], 0.0, atol=1e-12)
    assert np.allclose(H.T @ H, np.eye(n), atol=1e-12)


def test_dlarfg_zero_tail_is_identity():
    x = np.zeros(4)
    beta, tau = impl.dlarfg(5, 3.0, x, 1)
    assert beta == 3.0
    assert tau == 0.0


def test_dlarfg_tiny_vector_is_rescaled():
    """Entries far below the safe minimum must still give an exact reflector."""
    x = np.array([3e-310, 4e-310, 0.0])
    alpha, tail = x[0], x[1:].copy()
    beta, tau = impl.dlarfg(3, alpha, tail, 1)
    assert np.isclose(abs(beta), 5e-310, rtol=1e-12)
    assert 1.0 <= tau <= 2.0


def test_dlarfg_strided_x():
    rng = np.random.default_rng(3)
    x = rng.standard_normal(7)
    strided = np.zeros(13)
    strided[::2] = x[1:]
    beta, tau = impl.dlarfg(7, x[0], strided, 2)
    H = _reflector(strided[::2], tau)
    assert np.allclose((H @ x)[1:], 0.0, atol=1e-12)


@pytest.mark.parametrize("side", [Side.LEFT, Side.RIGHT])
def test_dlarf_matches_dense_reflector(side):
    rng = np.random.default_rng(11)
    m, n = 6, 4
    C = rng.standard_normal((m, n))
    order = m if side is Side.LEFT else n
    v = rng.standard_normal(order)
    v[0] = 1.0
    tau = 1.3
    H = np.eye(order) - tau * np.outer(v, v)

    c = C.copy().ravel()
    impl.dlarf(side, m, n, v, 1, tau, c, n, np.zeros(max(m, n)))
    want = H @ C if side is Side.LEFT else C @ H
    assert np.allclose(c.reshape(m, n), want, atol=1e-12)


@pytest.mark.parametrize("side", [Side.LEFT, Side.RIGHT])
@pytest.mark.parametrize("trans", [Transpose.NO_TRANS, Transpose.TRANS])
def test_dlarfb_matches_unblocked(side, trans):
    """The compact WY block reflector equals applying the reflectors one by one."""
    rng = np.random.default_rng(seed=7)
    nq, k, p = 9, 4, 5
    A = rng.standard_normal((nq, k))
    a = A.copy().ravel()
    tau = np.zeros(k)
    impl.dgeqr2(nq, k, a, k, tau, np.zeros(k))

    t = np.zeros(k * k)
    impl.dlarft(Direct.FORWARD, StoreV.COLUMN_WISE, nq, k, a, k, tau, t, k)

    m, n = (nq, p) if side is Side.LEFT else (p, nq)
    C = rng.standard_normal((m, n))
    blocked = C.copy().ravel()
    rows_w = n if side is Side.LEFT else m
    work = np.zeros(rows_w * k)
    impl.dlarfb(
        side, trans, Direct.FORWARD, StoreV.COLUMN_WISE,
        m, n, k, a, k, t, k, blocked, n, work, k,
    )

    unblocked = C.copy().ravel()
    impl.dorm2r(side, trans, m, n, k, a.copy(), k, tau, unblocked, n, np.zeros(max(m, n)))
    assert np.allclose(blocked, unblocked, atol=1e-12)


def test_dlarft_row_wise_matches_lq_reflectors():
    rng = np.random.default_rng(5)
    k, n = 3, 8
    a = rng.standard_normal(k * n)
    tau = np.zeros(k)
    impl.dgelq2(k, n, a, n, tau, np.zeros(k))

    t = np.zeros(k * k)
    impl.dlarft(Direct.FORWARD, StoreV.ROW_WISE, n, k, a, n, tau, t, k)

    V = np.triu(a.reshape(k, n), 1)
    V[np.arange(k), np.arange(k)] = 1.0
    H = np.eye(n)
    for i in range(k):
        H = H @ (np.eye(n) - tau[i] * np.outer(V[i], V[i]))
    T = np.triu(t.reshape(k, k))
    assert np.allclose(np.eye(n) - V.T @ T @ V, H, atol=1e-12)


def test_backward_block_reflector_is_rejected():
    with pytest.raises(PreconditionError):
        impl.dlarft(
            Direct.BACKWARD, StoreV.COLUMN_WISE, 4, 2,
            np.zeros(8), 2, np.zeros(2), np.zeros(4), 2,
        )


def test_dlartg_zeroes_second_component():
    rng = np.random.default_rng(2)
    for f, g in rng.standard_normal((20, 2)):
        cs, sn, r = impl.dlartg(f, g)
        assert np.isclose(cs * f + sn * g, r, atol=1e-14)
        assert np.isclose(-sn * f + cs * g, 0.0, atol=1e-14)
        assert np.isclose(cs * cs + sn * sn, 1.0, atol=1e-14)
    assert impl.dlartg(2.0, 0.0) == (1.0, 0.0, 2.0)
