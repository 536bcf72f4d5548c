# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
LQ factorization A = L Q. Row i of A right of the diagonal holds the tail
of the i-th reflector and Q = H(k-1) ... H(1) H(0).
"""

import logging

from ..enums import Direct, Side, StoreV, Transpose
from ..errors import PreconditionError
from .general import (
    bad_ld_a,
    bad_tau,
    check_matrix,
    check_workspace,
    k_gt_m,
    k_lt0,
    m_gt_n,
    m_lt0,
    n_lt0,
    short_work,
)

logger = logging.getLogger(__name__)


class LQ:
    def dgelq2(self, m, n, a, lda, tau, work):
        """Unblocked LQ factorization (``len(work) >= m``)."""
        check_matrix(m, n, a, lda)
        k = min(m, n)
        if k == 0:
            return
        if len(tau) < k:
            raise PreconditionError(bad_tau)
        if len(work) < m:
            raise PreconditionError(short_work)

        for i in range(k):
            a[i * lda + i], tau[i] = self.dlarfg(
                n - i, a[i * lda + i], a[i * lda + min(i + 1, n - 1):], 1
            )
            if i < m - 1:
                aii = a[i * lda + i]
                a[i * lda + i] = 1
                self.dlarf(
                    Side.RIGHT, m - i - 1, n - i,
                    a[i * lda + i:], 1, tau[i],
                    a[(i + 1) * lda + i:], lda, work,
                )
                a[i * lda + i] = aii

    def dgelqf(self, m, n, a, lda, tau, work, lwork):
        """
        Blocked LQ factorization of the ``m x n`` matrix A. ``lwork >= m``,
        ``m*nb`` is optimal.
        """
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        check_workspace(work, lwork, m)

        k = min(m, n)
        if k == 0:
            work[0] = 1
            return
        nb = self.ilaenv(1, "DGELQF", " ", m, n, -1, -1)
        if lwork == -1:
            work[0] = m * nb
            return
        check_matrix(m, n, a, lda)
        if len(tau) < k:
            raise PreconditionError(bad_tau)

        nbmin = 2
        nx = 0
        iws = m
        ldwork = nb
        if 1 < nb < k:
            nx = max(0, self.ilaenv(3, "DGELQF", " ", m, n, -1, -1))
            if nx < k:
                iws = m * nb
                if lwork < iws:
                    nb = lwork // m
                    ldwork = nb
                    nbmin = max(2, self.ilaenv(2, "DGELQF", " ", m, n, -1, -1))
        logger.debug("dgelqf m=%d n=%d nb=%d nx=%d", m, n, nb, nx)

        i = 0
        if nbmin <= nb < k and nx < k:
            while i < k - nx:
                ib = min(k - i, nb)
                self.dgelq2(ib, n - i, a[i * lda + i:], lda, tau[i:], work)
                if i + ib < m:
                    # Apply H to A[i+ib:m, i:n] from the right.
                    self.dlarft(
                        Direct.FORWARD, StoreV.ROW_WISE, n - i, ib,
                        a[i * lda + i:], lda, tau[i:], work, ldwork,
                    )
                    self.dlarfb(
                        Side.RIGHT, Transpose.NO_TRANS, Direct.FORWARD, StoreV.ROW_WISE,
                        m - i - ib, n - i, ib,
                        a[i * lda + i:], lda, work, ldwork,
                        a[(i + ib) * lda + i:], lda, work[ib * ldwork:], ldwork,
                    )
                i += nb
        if i < k:
            self.dgelq2(m - i, n - i, a[i * lda + i:], lda, tau[i:], work)
        work[0] = iws

    def dorgl2(self, m, n, k, a, lda, tau, work):
        """
        Overwrite the ``m x n`` matrix A (m <= n) with the first m rows of
        Q = H(k-1) ... H(0) from ``dgelqf``.
        """
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < m:
            raise PreconditionError(m_gt_n)
        if k < 0:
            raise PreconditionError(k_lt0)
        if k > m:
            raise PreconditionError(k_gt_m)
        check_matrix(m, n, a, lda)
        if m == 0:
            return
        if len(tau) < k:
            raise PreconditionError(bad_tau)
        if len(work) < m:
            raise PreconditionError(short_work)

        if k < m:
            # Rows k:m start as rows of the unit matrix.
            for l in range(k, m):
                for j in range(n):
                    a[l * lda + j] = 0
                a[l * lda + l] = 1
        for i in range(k - 1, -1, -1):
            if i < n - 1:
                if i < m - 1:
                    a[i * lda + i] = 1
                    self.dlarf(
                        Side.RIGHT, m - i - 1, n - i,
                        a[i * lda + i:], 1, tau[i],
                        a[(i + 1) * lda + i:], lda, work,
                    )
                self.blas.dscal(n - i - 1, -tau[i], a[i * lda + i + 1:], 1)
            a[i * lda + i] = 1 - tau[i]
            for l in range(i):
                a[i * lda + l] = 0

    def dorglq(self, m, n, k, a, lda, tau, work, lwork):
        """Blocked generation of the first m rows of Q from ``dgelqf`` output."""
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < m:
            raise PreconditionError(m_gt_n)
        if k < 0:
            raise PreconditionError(k_lt0)
        if k > m:
            raise PreconditionError(k_gt_m)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        check_workspace(work, lwork, m)

        nb = self.ilaenv(1, "DORGLQ", " ", m, n, k, -1)
        if lwork == -1:
            work[0] = max(1, m) * nb
            return
        if m == 0:
            work[0] = 1
            return
        check_matrix(m, n, a, lda)
        if len(tau) < k:
            raise PreconditionError(bad_tau)

        nbmin = 2
        nx = 0
        iws = m
        ldwork = 0
        if 1 < nb < k:
            nx = max(0, self.ilaenv(3, "DORGLQ", " ", m, n, k, -1))
            if nx < k:
                ldwork = nb
                iws = m * ldwork
                if lwork < iws:
                    nb = lwork // m
                    ldwork = nb
                    nbmin = max(2, self.ilaenv(2, "DORGLQ", " ", m, n, k, -1))

        ki = 0
        kk = 0
        blocked = nbmin <= nb < k and nx < k
        if blocked:
            ki = ((k - nx - 1) // nb) * nb
            kk = min(k, ki + nb)
            for i in range(kk, m):
                for j in range(kk):
                    a[i * lda + j] = 0
        if kk < m:
            self.dorgl2(m - kk, n - kk, k - kk, a[kk * lda + kk:], lda, tau[kk:], work)
        if blocked:
            for i in range(ki, -1, -nb):
                ib = min(nb, k - i)
                if i + ib < m:
                    # Apply Hᵀ to A[i+ib:m, i:n] from the right.
                    self.dlarft(
                        Direct.FORWARD, StoreV.ROW_WISE, n - i, ib,
                        a[i * lda + i:], lda, tau[i:], work, ldwork,
                    )
                    self.dlarfb(
                        Side.RIGHT, Transpose.TRANS, Direct.FORWARD, StoreV.ROW_WISE,
                        m - i - ib, n - i, ib,
                        a[i * lda + i:], lda, work, ldwork,
                        a[(i + ib) * lda + i:], lda, work[ib * ldwork:], ldwork,
                    )
                # Apply Hᵀ to columns i:n of the current block.
                self.dorgl2(ib, n - i, ib, a[i * lda + i:], lda, tau[i:], work)
                for l in range(i, i + ib):
                    for j in range(i):
                        a[l * lda + j] = 0
        work[0] = iws
