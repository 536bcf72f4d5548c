# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
QR factorization A = Q R with Householder reflectors, and generation or
application of the orthogonal factor Q.

Q is never stored explicitly: column i of A below the diagonal holds the
tail of the i-th reflector vector (its leading 1 is implied) and tau[i] its
scale, so that Q = H(0) H(1) ... H(k-1).
"""

import logging

from ..enums import Direct, Side, StoreV, Transpose
from ..errors import PreconditionError
from .general import (
    bad_ld_a,
    bad_ld_c,
    bad_side,
    bad_tau,
    bad_trans,
    check_matrix,
    check_workspace,
    flag,
    k_gt_m,
    k_gt_n,
    k_lt0,
    m_lt0,
    n_gt_m,
    n_lt0,
    short_work,
)

logger = logging.getLogger(__name__)


class QR:
    # -----------------------------------------------------------------
    # Factorization
    # -----------------------------------------------------------------
    def dgeqr2(self, m, n, a, lda, tau, work):
        """Unblocked QR factorization of the ``m x n`` matrix A (``len(work) >= n``)."""
        check_matrix(m, n, a, lda)
        k = min(m, n)
        if k == 0:
            return
        if len(tau) < k:
            raise PreconditionError(bad_tau)
        if len(work) < n:
            raise PreconditionError(short_work)

        for i in range(k):
            # Generate H(i) to annihilate A[i+1:m, i].
            a[i * lda + i], tau[i] = self.dlarfg(
                m - i, a[i * lda + i], a[min(i + 1, m - 1) * lda + i:], lda
            )
            if i < n - 1:
                aii = a[i * lda + i]
                a[i * lda + i] = 1
                self.dlarf(
                    Side.LEFT, m - i, n - i - 1,
                    a[i * lda + i:], lda, tau[i],
                    a[i * lda + i + 1:], lda, work,
                )
                a[i * lda + i] = aii

    def dgeqrf(self, m, n, a, lda, tau, work, lwork):
        """
        Blocked QR factorization of the ``m x n`` matrix A.

        On return the upper triangle holds R and the part below the diagonal
        holds the reflectors; see the module docstring. ``lwork`` must be at
        least ``n``, ``n*nb`` is optimal; ``lwork == -1`` writes the optimal
        size to ``work[0]`` and returns.
        """
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        check_workspace(work, lwork, n)

        k = min(m, n)
        if k == 0:
            work[0] = 1
            return
        nb = self.ilaenv(1, "DGEQRF", " ", m, n, -1, -1)
        if lwork == -1:
            work[0] = n * nb
            return
        check_matrix(m, n, a, lda)
        if len(tau) < k:
            raise PreconditionError(bad_tau)

        nbmin = 2
        nx = nb
        iws = n
        if 1 < nb < k:
            nx = max(0, self.ilaenv(3, "DGEQRF", " ", m, n, -1, -1))
            if nx < k:
                iws = n * nb
                if lwork < iws:
                    nb = lwork // n
                    nbmin = max(2, self.ilaenv(2, "DGEQRF", " ", m, n, -1, -1))
        logger.debug("dgeqrf m=%d n=%d nb=%d nx=%d", m, n, nb, nx)

        i = 0
        if nbmin <= nb < k and nx < k:
            ldwork = nb
            while i < k - nx:
                ib = min(k - i, nb)
                # Factor the panel A[i:m, i:i+ib].
                self.dgeqr2(m - i, ib, a[i * lda + i:], lda, tau[i:], work)
                if i + ib < n:
                    # Form T of H = H(i) ... H(i+ib-1), then apply Hᵀ to
                    # A[i:m, i+ib:n] from the left.
                    self.dlarft(
                        Direct.FORWARD, StoreV.COLUMN_WISE, m - i, ib,
                        a[i * lda + i:], lda, tau[i:], work, ldwork,
                    )
                    self.dlarfb(
                        Side.LEFT, Transpose.TRANS, Direct.FORWARD, StoreV.COLUMN_WISE,
                        m - i, n - i - ib, ib,
                        a[i * lda + i:], lda, work, ldwork,
                        a[i * lda + i + ib:], lda, work[ib * ldwork:], ldwork,
                    )
                i += nb
        # Unblocked code for the last or only block.
        if i < k:
            self.dgeqr2(m - i, n - i, a[i * lda + i:], lda, tau[i:], work)
        work[0] = iws

    # -----------------------------------------------------------------
    # Generation of Q
    # -----------------------------------------------------------------
    def dorg2r(self, m, n, k, a, lda, tau, work):
        """
        Overwrite the ``m x n`` matrix A with the first n columns of
        Q = H(0) ... H(k-1), as returned by ``dgeqrf`` (``len(work) >= n``).
        """
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if n > m:
            raise PreconditionError(n_gt_m)
        if k < 0:
            raise PreconditionError(k_lt0)
        if k > n:
            raise PreconditionError(k_gt_n)
        check_matrix(m, n, a, lda)
        if n == 0:
            return
        if len(tau) < k:
            raise PreconditionError(bad_tau)
        if len(work) < n:
            raise PreconditionError(short_work)

        # Columns k:n start as columns of the unit matrix.
        for j in range(k, n):
            for l in range(m):
                a[l * lda + j] = 0
            a[j * lda + j] = 1
        for i in range(k - 1, -1, -1):
            # Apply H(i) to A[i:m, i:n] from the left.
            if i < n - 1:
                a[i * lda + i] = 1
                self.dlarf(
                    Side.LEFT, m - i, n - i - 1,
                    a[i * lda + i:], lda, tau[i],
                    a[i * lda + i + 1:], lda, work,
                )
            if i < m - 1:
                self.blas.dscal(m - i - 1, -tau[i], a[(i + 1) * lda + i:], lda)
            a[i * lda + i] = 1 - tau[i]
            for l in range(i):
                a[l * lda + i] = 0

    def dorgqr(self, m, n, k, a, lda, tau, work, lwork):
        """
        Blocked generation of the first n columns of Q from ``dgeqrf``
        output. ``lwork >= n``; ``n*nb`` is optimal.
        """
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if n > m:
            raise PreconditionError(n_gt_m)
        if k < 0:
            raise PreconditionError(k_lt0)
        if k > n:
            raise PreconditionError(k_gt_n)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        check_workspace(work, lwork, n)

        nb = self.ilaenv(1, "DORGQR", " ", m, n, k, -1)
        if lwork == -1:
            work[0] = max(1, n) * nb
            return
        if n == 0:
            work[0] = 1
            return
        check_matrix(m, n, a, lda)
        if len(tau) < k:
            raise PreconditionError(bad_tau)

        nbmin = 2
        nx = 0
        iws = n
        ldwork = 0
        if 1 < nb < k:
            nx = max(0, self.ilaenv(3, "DORGQR", " ", m, n, k, -1))
            if nx < k:
                ldwork = nb
                iws = n * ldwork
                if lwork < iws:
                    nb = lwork // n
                    ldwork = nb
                    nbmin = max(2, self.ilaenv(2, "DORGQR", " ", m, n, k, -1))

        ki = 0
        kk = 0
        blocked = nbmin <= nb < k and nx < k
        if blocked:
            # The first kk columns are handled by the blocked method, the
            # last k-kk by the unblocked one.
            ki = ((k - nx - 1) // nb) * nb
            kk = min(k, ki + nb)
            for i in range(kk):
                for j in range(kk, n):
                    a[i * lda + j] = 0
        if kk < n:
            self.dorg2r(m - kk, n - kk, k - kk, a[kk * lda + kk:], lda, tau[kk:], work)
        if blocked:
            for i in range(ki, -1, -nb):
                ib = min(nb, k - i)
                if i + ib < n:
                    # Apply H to A[i:m, i+ib:n] from the left.
                    self.dlarft(
                        Direct.FORWARD, StoreV.COLUMN_WISE, m - i, ib,
                        a[i * lda + i:], lda, tau[i:], work, ldwork,
                    )
                    self.dlarfb(
                        Side.LEFT, Transpose.NO_TRANS, Direct.FORWARD, StoreV.COLUMN_WISE,
                        m - i, n - i - ib, ib,
                        a[i * lda + i:], lda, work, ldwork,
                        a[i * lda + i + ib:], lda, work[ib * ldwork:], ldwork,
                    )
                # Apply H to rows i:m of the current block.
                self.dorg2r(m - i, ib, ib, a[i * lda + i:], lda, tau[i:], work)
                for j in range(i, i + ib):
                    for l in range(i):
                        a[l * lda + j] = 0
        work[0] = iws

    # -----------------------------------------------------------------
    # Application of Q
    # -----------------------------------------------------------------
    def dorm2r(self, side, trans, m, n, k, a, lda, tau, c, ldc, work):
        """
        Overwrite the ``m x n`` matrix C with Q C, Qᵀ C, C Q or C Qᵀ
        (unblocked). ``len(work)`` must be at least n (left) or m (right).
        """
        side = flag(Side, side, bad_side)
        trans = flag(Transpose, trans, bad_trans)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if k < 0:
            raise PreconditionError(k_lt0)
        left = side is Side.LEFT
        nq = m if left else n
        if k > nq:
            raise PreconditionError(k_gt_m if left else k_gt_n)
        check_matrix(nq, k, a, lda)
        check_matrix(m, n, c, ldc)
        if m == 0 or n == 0 or k == 0:
            return
        if len(tau) < k:
            raise PreconditionError(bad_tau)
        if len(work) < (n if left else m):
            raise PreconditionError(short_work)

        notran = trans is Transpose.NO_TRANS
        if left == notran:
            order = range(k - 1, -1, -1)
        else:
            order = range(k)
        for i in order:
            aii = a[i * lda + i]
            a[i * lda + i] = 1
            if left:
                # H(i) is applied to C[i:m, 0:n].
                self.dlarf(side, m - i, n, a[i * lda + i:], lda, tau[i], c[i * ldc:], ldc, work)
            else:
                # H(i) is applied to C[0:m, i:n].
                self.dlarf(side, m, n - i, a[i * lda + i:], lda, tau[i], c[i:], ldc, work)
            a[i * lda + i] = aii

    def dormqr(self, side, trans, m, n, k, a, lda, tau, c, ldc, work, lwork):
        """
        Overwrite the ``m x n`` matrix C with op(Q) C (left) or C op(Q)
        (right), where Q comes from ``dgeqrf`` as k reflectors stored in A.

        ``lwork`` must be at least n (left) or m (right); the optimal size is
        ``nw*nb + 64*64``, returned in ``work[0]`` when ``lwork == -1``.
        """
        side = flag(Side, side, bad_side)
        trans = flag(Transpose, trans, bad_trans)
        left = side is Side.LEFT
        nq, nw = (m, n) if left else (n, m)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if k < 0:
            raise PreconditionError(k_lt0)
        if k > nq:
            raise PreconditionError(k_gt_m if left else k_gt_n)
        if lda < max(1, k):
            raise PreconditionError(bad_ld_a)
        if ldc < max(1, n):
            raise PreconditionError(bad_ld_c)
        check_workspace(work, lwork, nw)

        if m == 0 or n == 0 or k == 0:
            work[0] = 1
            return

        nbmax = 64
        ldt = nbmax
        tsize = nbmax * ldt
        nb = min(nbmax, self.ilaenv(1, "DORMQR", side.value + trans.value, m, n, k, -1))
        lworkopt = max(1, nw) * nb + tsize
        if lwork == -1:
            work[0] = lworkopt
            return

        check_matrix(nq, k, a, lda)
        check_matrix(m, n, c, ldc)
        if len(tau) < k:
            raise PreconditionError(bad_tau)

        nbmin = 2
        if 1 < nb < k:
            if lwork < nw * nb + tsize:
                nb = (lwork - tsize) // nw
                nbmin = max(2, self.ilaenv(2, "DORMQR", side.value + trans.value, m, n, k, -1))
        logger.debug("dormqr side=%s trans=%s nb=%d", side.value, trans.value, nb)

        if nb < nbmin or k <= nb:
            self.dorm2r(side, trans, m, n, k, a, lda, tau, c, ldc, work)
            work[0] = lworkopt
            return

        t = work[:tsize]
        wrk = work[tsize:]
        ldwrk = nb
        notran = trans is Transpose.NO_TRANS
        if left == notran:
            order = range(((k - 1) // nb) * nb, -1, -nb)
        else:
            order = range(0, k, nb)
        for i in order:
            ib = min(nb, k - i)
            # Form T of H = H(i) ... H(i+ib-1).
            self.dlarft(
                Direct.FORWARD, StoreV.COLUMN_WISE, nq - i, ib,
                a[i * lda + i:], lda, tau[i:], t, ldt,
            )
            if left:
                # H or Hᵀ is applied to C[i:m, 0:n].
                self.dlarfb(
                    side, trans, Direct.FORWARD, StoreV.COLUMN_WISE,
                    m - i, n, ib, a[i * lda + i:], lda, t, ldt,
                    c[i * ldc:], ldc, wrk, ldwrk,
                )
            else:
                # H or Hᵀ is applied to C[0:m, i:n].
                self.dlarfb(
                    side, trans, Direct.FORWARD, StoreV.COLUMN_WISE,
                    m, n - i, ib, a[i * lda + i:], lda, t, ldt,
                    c[i:], ldc, wrk, ldwrk,
                )
        work[0] = lworkopt
