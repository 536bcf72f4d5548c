# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .enums import SVDJob
from .errors import ConvergenceError
from .utils import as_general_copy, default_impl, query_work

logger = logging.getLogger(__name__)


def svd(A: np.ndarray, full_matrices: bool = False, compute_uv: bool = True, impl=None):
    """
        Singular Value Decomposition through Householder bidiagonalization
    and implicit bidiagonal QR iteration (the ``dgesvd`` driver).

        For an m-by-n real matrix with r = min(m, n) this routine returns:
            U : m-by-r (m-by-m if full_matrices) matrix with orthonormal columns
            s : length-r vector of singular values, sorted in descending order
            Vt: r-by-n (n-by-n if full_matrices) matrix with orthonormal rows

        Algorithm outline
        -----------------
        1.  When one dimension is much larger than the other, a QR (or LQ)
            factorization first reduces A to a small triangular matrix.
        2.  Householder reflections from both sides reduce the (triangular)
            matrix to bidiagonal form B = Qᵀ A P.
        3.  Implicit zero-shift / shifted QR sweeps drive the off-diagonal of
            B to zero, accumulating the rotations into U and Vᵀ.
        4.  Singular values are made non-negative and sorted decreasingly.

        Raises ConvergenceError if the QR iteration did not converge.
        With ``compute_uv=False`` only ``s`` is returned.
    """
    impl = impl or default_impl
    a, (m, n) = as_general_copy(A)
    r = min(m, n)
    if not compute_uv:
        job = SVDJob.NONE
    else:
        job = SVDJob.ALL if full_matrices else SVDJob.STORE
    ucols = m if job is SVDJob.ALL else r
    vrows = n if job is SVDJob.ALL else r

    data = a.reshape(-1)
    lda = max(1, n)
    s = np.zeros(max(1, r))
    U = np.zeros((m, ucols))
    Vt = np.zeros((vrows, n))
    u = U.reshape(-1) if U.size else np.zeros(1)
    vt = Vt.reshape(-1) if Vt.size else np.zeros(1)
    ldu = max(1, ucols)
    ldvt = max(1, n)

    work = query_work(impl.dgesvd, job, job, m, n, data, lda, s, u, ldu, vt, ldvt)
    ok = impl.dgesvd(job, job, m, n, data, lda, s, u, ldu, vt, ldvt, work, len(work))
    if not ok:
        unconverged = int(np.count_nonzero(work[1:r]))
        logger.warning("svd: %d superdiagonal entries failed to converge", unconverged)
        raise ConvergenceError(
            "SVD did not converge",
            routine="dbdsqr",
            iterations=6 * r * r,
            unconverged=unconverged,
        )
    s = s[:r]
    if not compute_uv:
        return s
    return U, s, Vt


def pca(A: np.ndarray, k: int, impl=None):
    """
    PCA with samples in rows and features in columns.

    Returns:
      pcs: (n_features, k) principal directions (columns of V)
      scores: (n_samples, k) projections X @ pcs
      explained_variance: (k,) variances per component
      explained_variance_ratio: (k,) fraction of total variance per component
      total_variance: scalar = ||X||_F^2 / (n_samples - 1)
      mean_: (n_features,) feature means used to center
    """
    A = np.asarray(A, dtype=float)
    # 1) Center by feature (column) means
    mean_ = A.mean(axis=0, keepdims=True)
    X = A - mean_

    # 2) Economy SVD: X = U Σ V^T  (U: n×r, S: r, Vt: r×d), r=min(n,d)
    _, S, Vt = svd(X, full_matrices=False, impl=impl)

    # 3) Principal directions are columns of V (rows of Vt)
    pcs = Vt[:k].T

    # 4) Scores: project centered data onto PCs
    scores = X @ pcs

    # 5) Variance bookkeeping
    n_samples = A.shape[0]
    explained_variance = (S[:k] ** 2) / (n_samples - 1)
    total_variance = (np.linalg.norm(X, ord="fro") ** 2) / (n_samples - 1)
    explained_variance_ratio = explained_variance / total_variance

    return (
        pcs,
        scores,
        explained_variance,
        explained_variance_ratio,
        total_variance,
        mean_.ravel(),
    )
