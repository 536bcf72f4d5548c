# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import Tuple

import numpy as np

from .enums import Diag, Side, Transpose, Uplo
from .errors import PreconditionError
from .utils import as_general_copy, default_impl, query_work

logger = logging.getLogger(__name__)


def householder_qr(A: np.ndarray, impl=None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the economic QR decomposition of an m-by-n matrix A using
    blocked Householder transformations. (m ≥ n)

    A = QR
    H(i) = I - tau[i] * v * transpose(v)
    Q = H(0) H(1) ... H(n-1)

    Parameters
    ----------
    A : (m, n) ndarray, m >= n
    impl : native Implementation, optional

    Returns
    -------
    Q : (m, n) ndarray | orthonormal columns
    R : (n, n) ndarray | upper-triangular
    """
    impl = impl or default_impl
    a, (m, n) = as_general_copy(A)
    if m < n:
        raise PreconditionError("householder_qr needs m >= n")
    if n == 0:
        return np.zeros((m, 0)), np.zeros((0, 0))
    lda = n
    data = a.reshape(-1)
    tau = np.zeros(n)

    # ---- factor: R above the diagonal, reflectors below ---------------------
    work = query_work(impl.dgeqrf, m, n, data, lda, tau)
    impl.dgeqrf(m, n, data, lda, tau, work, len(work))
    R = np.triu(a[:n, :n])

    # ---- form the first n columns of Q in place ----------------------------
    work = query_work(impl.dorgqr, m, n, n, data, lda, tau)
    impl.dorgqr(m, n, n, data, lda, tau, work, len(work))
    return a, R


def least_squares_householder_qr(A: np.ndarray, b: np.ndarray, impl=None):
    """
    Solve min ‖Ax – b‖₂ using (economic) Householder QR
    decomposition (A = QR). Works for tall or square
    full-rank A.

    Qᵀ b is applied with the stored reflectors and R x = (Qᵀ b)[:n] is
    solved by triangular substitution, so Q is never formed.

    Returns:
    x : (n, ) or (n, k) ndarray
        The least squares solution to Ax = b
    """
    impl = impl or default_impl
    a, (m, n) = as_general_copy(A)
    if m < n:
        raise PreconditionError("least squares needs m >= n")
    b = np.asarray(b, dtype=np.float64)
    vector_rhs = b.ndim == 1
    B, (mb, nrhs) = as_general_copy(b.reshape(-1, 1) if vector_rhs else b)
    if mb != m:
        raise PreconditionError("b must have as many rows as A")
    if n == 0:
        x = np.zeros((0, nrhs))
        return x.ravel() if vector_rhs else x

    data = a.reshape(-1)
    bdata = B.reshape(-1)
    tau = np.zeros(n)
    work = query_work(impl.dgeqrf, m, n, data, n, tau)
    impl.dgeqrf(m, n, data, n, tau, work, len(work))

    diag = np.abs(np.diag(a[:n, :n]))
    if np.any(diag <= np.finfo(float).eps * max(m, n) * max(diag.max(), 1.0)):
        logger.warning("least squares: R is numerically singular")
        raise PreconditionError("Input matrix is rank deficient")

    # y = Qᵀ b
    work = query_work(
        impl.dormqr, Side.LEFT, Transpose.TRANS, m, nrhs, n, data, n, tau, bdata, nrhs
    )
    impl.dormqr(
        Side.LEFT, Transpose.TRANS, m, nrhs, n, data, n, tau, bdata, nrhs, work, len(work)
    )
    # R x = y[:n]
    impl.blas.dtrsm(
        Side.LEFT, Uplo.UPPER, Transpose.NO_TRANS, Diag.NON_UNIT,
        n, nrhs, 1.0, data, n, bdata, nrhs,
    )
    x = B[:n].copy()
    return x.ravel() if vector_rhs else x


def random_nonsingular_qr(n, seed=None) -> np.ndarray:
    """
    QR trick (random orthogonal × random non-zero scale)

    QR Decomposition:
        A matrix A can be decomposed into the product of an
        orthogonal matrix Q and an upper triangular matrix
        R (A = QR)

    Returns
    -------
    Matrix with float64 dtype
    """
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((n, n))
    Q, _R = householder_qr(A)  # Q is orthogonal, det ≠ 0
    scales = rng.uniform(0.5, 10.0, size=n)  # strictly non-zero
    return np.asarray(Q * scales)  # broadcast scales into columns
