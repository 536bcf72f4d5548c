# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pytest

from numlapack.blas64 import General
from numlapack.enums import EigComp, Side, SVDJob, Transpose
from numlapack.errors import PreconditionError
from numlapack.lapack64 import Lapack64
from numlapack.native import BlockConfig, Implementation
from numlapack.utils import random_tridiagonal

lp = Lapack64()


def _workspace(call):
    work = np.zeros(1)
    call(work, -1)
    return np.zeros(int(work[0]))


def test_general_from_array_shares_memory():
    A = np.arange(6, dtype=float).reshape(2, 3)
    g = General.from_array(A)
    g.data[0] = 42.0
    assert A[0, 0] == 42.0
    assert g.stride == 3
    assert np.array_equal(g.to_array(), A)


def test_general_from_array_rejects_vectors():
    with pytest.raises(PreconditionError):
        General.from_array(np.zeros(3))


def test_geqrf_orgqr_round_trip():
    rng = np.random.default_rng(0)
    A = rng.standard_normal((9, 4))
    a = General.from_array(A.copy())
    tau = np.zeros(4)
    work = _workspace(lambda w, lw: lp.geqrf(a, tau, w, lw))
    lp.geqrf(a, tau, work, len(work))
    R = np.triu(a.to_array()[:4])

    work = _workspace(lambda w, lw: lp.orgqr(a, tau, w, lw))
    lp.orgqr(a, tau, work, len(work))
    Q = a.to_array()
    assert np.allclose(Q @ R, A, atol=1e-12)


def test_ormqr_applies_transpose():
    rng = np.random.default_rng(1)
    A = rng.standard_normal((7, 3))
    a = General.from_array(A.copy())
    tau = np.zeros(3)
    lp.geqrf(a, tau, np.zeros(64), 64)

    c = General.from_array(A.copy())
    work = _workspace(lambda w, lw: lp.ormqr(Side.LEFT, Transpose.TRANS, a, tau, c, w, lw))
    lp.ormqr(Side.LEFT, Transpose.TRANS, a, tau, c, work, len(work))
    # Qᵀ A = R
    C = c.to_array()
    assert np.allclose(C[:3], np.triu(a.to_array()[:3]), atol=1e-12)
    assert np.allclose(C[3:], 0.0, atol=1e-12)


def test_gelqf_lower_triangle():
    rng = np.random.default_rng(2)
    A = rng.standard_normal((3, 8))
    a = General.from_array(A.copy())
    tau = np.zeros(3)
    work = _workspace(lambda w, lw: lp.gelqf(a, tau, w, lw))
    lp.gelqf(a, tau, work, len(work))
    L = np.tril(a.to_array()[:, :3])
    # |det L| equals the product of the singular values of A.
    assert np.isclose(abs(np.prod(np.diag(L))), np.prod(np.linalg.svd(A, compute_uv=False)))


@pytest.mark.parametrize("shape", [(10, 4), (4, 10)])
def test_gesvd_with_general_views(shape):
    m, n = shape
    r = min(m, n)
    rng = np.random.default_rng(m)
    A = rng.standard_normal(shape)
    a = General.from_array(A.copy())
    u = General.zeros(m, r)
    vt = General.zeros(r, n)
    s = np.zeros(r)
    work = _workspace(lambda w, lw: lp.gesvd(SVDJob.STORE, SVDJob.STORE, a, u, vt, s, w, lw))
    assert lp.gesvd(SVDJob.STORE, SVDJob.STORE, a, u, vt, s, work, len(work))
    assert np.allclose(u.to_array() * s @ vt.to_array(), A, atol=1e-12)


def test_gesvd_without_vectors_takes_empty_generals():
    A = np.random.default_rng(3).standard_normal((6, 5))
    a = General.from_array(A.copy())
    s = np.zeros(5)
    empty = General.zeros(0, 0)
    work = np.zeros(64)
    assert lp.gesvd("N", "N", a, empty, empty, s, work, len(work))
    assert np.allclose(s, np.linalg.svd(A, compute_uv=False))


def test_steqr_and_sterf():
    d, e, T = random_tridiagonal(7, seed=4)
    z = General.zeros(7, 7)
    dd, ee = d.copy(), e.copy()
    assert lp.steqr(EigComp.TRIDIAGONAL, dd, ee, z, np.zeros(12))
    Z = z.to_array()
    assert np.allclose(T @ Z, Z * dd, atol=1e-12)

    dv, ev = d.copy(), e.copy()
    assert lp.steqr("N", dv, ev, General.zeros(0, 0), np.zeros(1))
    assert np.allclose(dv, dd)

    df, ef = d.copy(), e.copy()
    assert lp.sterf(df, ef)
    assert np.allclose(df, dd)


def test_steqr_rejects_unknown_compz():
    with pytest.raises(PreconditionError, match="EigComp"):
        lp.steqr("Z", np.ones(2), np.ones(1), General.zeros(2, 2), np.zeros(2))


def test_custom_backend():
    impl = Implementation(config=BlockConfig(nb=2, nx=2))
    wrapped = Lapack64(impl)
    assert wrapped.impl is impl
    A = np.random.default_rng(5).standard_normal((12, 8))
    a = General.from_array(A.copy())
    tau = np.zeros(8)
    wrapped.geqrf(a, tau, np.zeros(8), 8)
    R = np.triu(a.to_array()[:8])
    assert np.allclose(np.abs(np.diag(R)), np.abs(np.diag(np.linalg.qr(A)[1])))
