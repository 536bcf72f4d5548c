# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Reduction of a general matrix to bidiagonal form Qᵀ A P = B, and
generation of Q or Pᵀ.

If m >= n, B is upper bidiagonal; otherwise it is lower bidiagonal. Q and P
are stored as products of reflectors: the Q vectors in the columns of A
below B, the P vectors in the rows of A right of B.
"""

import logging

from ..enums import ApplyOrtho, Side, Transpose
from ..errors import PreconditionError
from .general import (
    bad_apply_ortho,
    bad_d,
    bad_e,
    bad_ld_a,
    bad_tau,
    bad_tau_p,
    bad_tau_q,
    check_matrix,
    check_workspace,
    flag,
    k_lt0,
    m_lt0,
    m_lt_n,
    n_lt0,
    n_lt_m,
    nb_gt_m,
    nb_gt_n,
    nb_lt0,
    short_work,
)

logger = logging.getLogger(__name__)


class Bidiag:
    def _check_bidiag_out(self, nd, d, e, tauq, taup):
        if len(d) < nd:
            raise PreconditionError(bad_d)
        if len(e) < nd - 1:
            raise PreconditionError(bad_e)
        if len(tauq) < nd:
            raise PreconditionError(bad_tau_q)
        if len(taup) < nd:
            raise PreconditionError(bad_tau_p)

    def dgebd2(self, m, n, a, lda, d, e, tauq, taup, work):
        """
        Unblocked reduction of the ``m x n`` matrix A to bidiagonal form.

        ``d`` receives the diagonal of B and ``e`` its off-diagonal;
        ``len(work) >= max(m, n)``.
        """
        check_matrix(m, n, a, lda)
        minmn = min(m, n)
        if minmn == 0:
            return
        self._check_bidiag_out(minmn, d, e, tauq, taup)
        if len(work) < max(m, n):
            raise PreconditionError(short_work)

        if m >= n:
            for i in range(n):
                # H(i) annihilates A[i+1:m, i].
                a[i * lda + i], tauq[i] = self.dlarfg(
                    m - i, a[i * lda + i], a[min(i + 1, m - 1) * lda + i:], lda
                )
                d[i] = a[i * lda + i]
                a[i * lda + i] = 1
                if i < n - 1:
                    self.dlarf(
                        Side.LEFT, m - i, n - i - 1, a[i * lda + i:], lda, tauq[i],
                        a[i * lda + i + 1:], lda, work,
                    )
                a[i * lda + i] = d[i]
                if i < n - 1:
                    # G(i) annihilates A[i, i+2:n].
                    a[i * lda + i + 1], taup[i] = self.dlarfg(
                        n - i - 1, a[i * lda + i + 1], a[i * lda + min(i + 2, n - 1):], 1
                    )
                    e[i] = a[i * lda + i + 1]
                    a[i * lda + i + 1] = 1
                    self.dlarf(
                        Side.RIGHT, m - i - 1, n - i - 1, a[i * lda + i + 1:], 1, taup[i],
                        a[(i + 1) * lda + i + 1:], lda, work,
                    )
                    a[i * lda + i + 1] = e[i]
                else:
                    taup[i] = 0
            return

        for i in range(m):
            # G(i) annihilates A[i, i+1:n].
            a[i * lda + i], taup[i] = self.dlarfg(
                n - i, a[i * lda + i], a[i * lda + min(i + 1, n - 1):], 1
            )
            d[i] = a[i * lda + i]
            a[i * lda + i] = 1
            if i < m - 1:
                self.dlarf(
                    Side.RIGHT, m - i - 1, n - i, a[i * lda + i:], 1, taup[i],
                    a[(i + 1) * lda + i:], lda, work,
                )
            a[i * lda + i] = d[i]
            if i < m - 1:
                # H(i) annihilates A[i+2:m, i].
                a[(i + 1) * lda + i], tauq[i] = self.dlarfg(
                    m - i - 1, a[(i + 1) * lda + i], a[min(i + 2, m - 1) * lda + i:], lda
                )
                e[i] = a[(i + 1) * lda + i]
                a[(i + 1) * lda + i] = 1
                self.dlarf(
                    Side.LEFT, m - i - 1, n - i - 1, a[(i + 1) * lda + i:], lda, tauq[i],
                    a[(i + 1) * lda + i + 1:], lda, work,
                )
                a[(i + 1) * lda + i] = e[i]
            else:
                tauq[i] = 0

    def dlabrd(self, m, n, nb, a, lda, d, e, tauq, taup, x, ldx, y, ldy):
        """
        Reduce the first ``nb`` rows and columns of A to bidiagonal form and
        return the ``m x nb`` matrix X and ``n x nb`` matrix Y needed to
        update the rest of A as ``A - V Yᵀ - X Uᵀ``.

        The entries of A holding the bidiagonal are left equal to 1 (the
        implied leading entries of the reflectors); ``dgebrd`` restores them.
        """
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if nb < 0:
            raise PreconditionError(nb_lt0)
        if nb > m:
            raise PreconditionError(nb_gt_m)
        if nb > n:
            raise PreconditionError(nb_gt_n)
        if ldx < max(1, nb) or ldy < max(1, nb):
            raise PreconditionError(bad_ld_a)
        check_matrix(m, n, a, lda)
        if m == 0 or n == 0 or nb == 0:
            return
        self._check_bidiag_out(nb, d, e, tauq, taup)
        check_matrix(m, nb, x, ldx)
        check_matrix(n, nb, y, ldy)

        bi = self.blas
        NT, TR = Transpose.NO_TRANS, Transpose.TRANS
        if m >= n:
            # Upper bidiagonal.
            for i in range(nb):
                # A[i:m, i] -= A[i:m, 0:i] Y[i, 0:i]ᵀ + X[i:m, 0:i] A[0:i, i]
                bi.dgemv(NT, m - i, i, -1, a[i * lda:], lda, y[i * ldy:], 1, 1, a[i * lda + i:], lda)
                bi.dgemv(NT, m - i, i, -1, x[i * ldx:], ldx, a[i:], lda, 1, a[i * lda + i:], lda)

                a[i * lda + i], tauq[i] = self.dlarfg(
                    m - i, a[i * lda + i], a[min(i + 1, m - 1) * lda + i:], lda
                )
                d[i] = a[i * lda + i]
                if i < n - 1:
                    a[i * lda + i] = 1
                    # Y[i+1:n, i]
                    bi.dgemv(TR, m - i, n - i - 1, 1, a[i * lda + i + 1:], lda, a[i * lda + i:], lda, 0, y[(i + 1) * ldy + i:], ldy)
                    bi.dgemv(TR, m - i, i, 1, a[i * lda:], lda, a[i * lda + i:], lda, 0, y[i:], ldy)
                    bi.dgemv(NT, n - i - 1, i, -1, y[(i + 1) * ldy:], ldy, y[i:], ldy, 1, y[(i + 1) * ldy + i:], ldy)
                    bi.dgemv(TR, m - i, i, 1, x[i * ldx:], ldx, a[i * lda + i:], lda, 0, y[i:], ldy)
                    bi.dgemv(TR, i, n - i - 1, -1, a[i + 1:], lda, y[i:], ldy, 1, y[(i + 1) * ldy + i:], ldy)
                    bi.dscal(n - i - 1, tauq[i], y[(i + 1) * ldy + i:], ldy)

                    # A[i, i+1:n]
                    bi.dgemv(NT, n - i - 1, i + 1, -1, y[(i + 1) * ldy:], ldy, a[i * lda:], 1, 1, a[i * lda + i + 1:], 1)
                    bi.dgemv(TR, i, n - i - 1, -1, a[i + 1:], lda, x[i * ldx:], 1, 1, a[i * lda + i + 1:], 1)

                    # G(i) annihilates A[i, i+2:n].
                    a[i * lda + i + 1], taup[i] = self.dlarfg(
                        n - i - 1, a[i * lda + i + 1], a[i * lda + min(i + 2, n - 1):], 1
                    )
                    e[i] = a[i * lda + i + 1]
                    a[i * lda + i + 1] = 1

                    # X[i+1:m, i]
                    bi.dgemv(NT, m - i - 1, n - i - 1, 1, a[(i + 1) * lda + i + 1:], lda, a[i * lda + i + 1:], 1, 0, x[(i + 1) * ldx + i:], ldx)
                    bi.dgemv(TR, n - i - 1, i + 1, 1, y[(i + 1) * ldy:], ldy, a[i * lda + i + 1:], 1, 0, x[i:], ldx)
                    bi.dgemv(NT, m - i - 1, i + 1, -1, a[(i + 1) * lda:], lda, x[i:], ldx, 1, x[(i + 1) * ldx + i:], ldx)
                    bi.dgemv(NT, i, n - i - 1, 1, a[i + 1:], lda, a[i * lda + i + 1:], 1, 0, x[i:], ldx)
                    bi.dgemv(NT, m - i - 1, i, -1, x[(i + 1) * ldx:], ldx, x[i:], ldx, 1, x[(i + 1) * ldx + i:], ldx)
                    bi.dscal(m - i - 1, taup[i], x[(i + 1) * ldx + i:], ldx)
                else:
                    taup[i] = 0
            return

        # Lower bidiagonal.
        for i in range(nb):
            # A[i, i:n]
            bi.dgemv(NT, n - i, i, -1, y[i * ldy:], ldy, a[i * lda:], 1, 1, a[i * lda + i:], 1)
            bi.dgemv(TR, i, n - i, -1, a[i:], lda, x[i * ldx:], 1, 1, a[i * lda + i:], 1)

            a[i * lda + i], taup[i] = self.dlarfg(
                n - i, a[i * lda + i], a[i * lda + min(i + 1, n - 1):], 1
            )
            d[i] = a[i * lda + i]
            if i < m - 1:
                a[i * lda + i] = 1
                # X[i+1:m, i]
                bi.dgemv(NT, m - i - 1, n - i, 1, a[(i + 1) * lda + i:], lda, a[i * lda + i:], 1, 0, x[(i + 1) * ldx + i:], ldx)
                bi.dgemv(TR, n - i, i, 1, y[i * ldy:], ldy, a[i * lda + i:], 1, 0, x[i:], ldx)
                bi.dgemv(NT, m - i - 1, i, -1, a[(i + 1) * lda:], lda, x[i:], ldx, 1, x[(i + 1) * ldx + i:], ldx)
                bi.dgemv(NT, i, n - i, 1, a[i:], lda, a[i * lda + i:], 1, 0, x[i:], ldx)
                bi.dgemv(NT, m - i - 1, i, -1, x[(i + 1) * ldx:], ldx, x[i:], ldx, 1, x[(i + 1) * ldx + i:], ldx)
                bi.dscal(m - i - 1, taup[i], x[(i + 1) * ldx + i:], ldx)

                # A[i+1:m, i]
                bi.dgemv(NT, m - i - 1, i, -1, a[(i + 1) * lda:], lda, y[i * ldy:], 1, 1, a[(i + 1) * lda + i:], lda)
                bi.dgemv(NT, m - i - 1, i + 1, -1, x[(i + 1) * ldx:], ldx, a[i:], lda, 1, a[(i + 1) * lda + i:], lda)

                # H(i) annihilates A[i+2:m, i].
                a[(i + 1) * lda + i], tauq[i] = self.dlarfg(
                    m - i - 1, a[(i + 1) * lda + i], a[min(i + 2, m - 1) * lda + i:], lda
                )
                e[i] = a[(i + 1) * lda + i]
                a[(i + 1) * lda + i] = 1

                # Y[i+1:n, i]
                bi.dgemv(TR, m - i - 1, n - i - 1, 1, a[(i + 1) * lda + i + 1:], lda, a[(i + 1) * lda + i:], lda, 0, y[(i + 1) * ldy + i:], ldy)
                bi.dgemv(TR, m - i - 1, i, 1, a[(i + 1) * lda:], lda, a[(i + 1) * lda + i:], lda, 0, y[i:], ldy)
                bi.dgemv(NT, n - i - 1, i, -1, y[(i + 1) * ldy:], ldy, y[i:], ldy, 1, y[(i + 1) * ldy + i:], ldy)
                bi.dgemv(TR, m - i - 1, i + 1, 1, x[(i + 1) * ldx:], ldx, a[(i + 1) * lda + i:], lda, 0, y[i:], ldy)
                bi.dgemv(TR, i + 1, n - i - 1, -1, a[i + 1:], lda, y[i:], ldy, 1, y[(i + 1) * ldy + i:], ldy)
                bi.dscal(n - i - 1, tauq[i], y[(i + 1) * ldy + i:], ldy)
            else:
                tauq[i] = 0

    def dgebrd(self, m, n, a, lda, d, e, tauq, taup, work, lwork):
        """
        Blocked reduction of the ``m x n`` matrix A to bidiagonal form.

        ``lwork >= max(1, m, n)``; ``(m+n)*nb`` is optimal and is returned in
        ``work[0]`` when ``lwork == -1``.
        """
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        check_workspace(work, lwork, max(m, n))

        minmn = min(m, n)
        if minmn == 0:
            work[0] = 1
            return
        nb = max(1, self.ilaenv(1, "DGEBRD", " ", m, n, -1, -1))
        if lwork == -1:
            work[0] = (m + n) * nb
            return
        check_matrix(m, n, a, lda)
        self._check_bidiag_out(minmn, d, e, tauq, taup)

        nx = minmn
        ws = max(m, n)
        if 1 < nb < minmn:
            # Crossover point below which unblocked code is used.
            nx = max(nb, self.ilaenv(3, "DGEBRD", " ", m, n, -1, -1))
            if nx < minmn:
                ws = (m + n) * nb
                if lwork < ws:
                    nbmin = self.ilaenv(2, "DGEBRD", " ", m, n, -1, -1)
                    if lwork >= (m + n) * nbmin:
                        nb = lwork // (m + n)
                    else:
                        nb = 1
                        nx = minmn
        logger.debug("dgebrd m=%d n=%d nb=%d nx=%d", m, n, nb, nx)

        bi = self.blas
        ldworkx = nb
        ldworky = nb
        x = work
        y = work[m * ldworkx:]
        i = 0
        while i < minmn - nx:
            # Reduce rows and columns i:i+nb and return X and Y for the
            # trailing update.
            self.dlabrd(
                m - i, n - i, nb, a[i * lda + i:], lda,
                d[i:], e[i:], tauq[i:], taup[i:], x, ldworkx, y, ldworky,
            )
            # A[i+nb:m, i+nb:n] -= V Yᵀ + X U
            bi.dgemm(
                Transpose.NO_TRANS, Transpose.TRANS, m - i - nb, n - i - nb, nb, -1,
                a[(i + nb) * lda + i:], lda, y[nb * ldworky:], ldworky,
                1, a[(i + nb) * lda + i + nb:], lda,
            )
            bi.dgemm(
                Transpose.NO_TRANS, Transpose.NO_TRANS, m - i - nb, n - i - nb, nb, -1,
                x[nb * ldworkx:], ldworkx, a[i * lda + i + nb:], lda,
                1, a[(i + nb) * lda + i + nb:], lda,
            )
            # Put the bidiagonal back into A.
            if m >= n:
                for j in range(i, i + nb):
                    a[j * lda + j] = d[j]
                    a[j * lda + j + 1] = e[j]
            else:
                for j in range(i, i + nb):
                    a[j * lda + j] = d[j]
                    a[(j + 1) * lda + j] = e[j]
            i += nb
        self.dgebd2(m - i, n - i, a[i * lda + i:], lda, d[i:], e[i:], tauq[i:], taup[i:], work)
        work[0] = ws

    def dorgbr(self, vect, m, n, k, a, lda, tau, work, lwork):
        """
        Generate Q (``ApplyOrtho.APPLY_Q``, m x n) or Pᵀ
        (``ApplyOrtho.APPLY_P``, m x n) from the output of ``dgebrd`` on a
        matrix with k columns (for Q) or k rows (for Pᵀ).
        """
        vect = flag(ApplyOrtho, vect, bad_apply_ortho)
        wantq = vect is ApplyOrtho.APPLY_Q
        mn = min(m, n)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if k < 0:
            raise PreconditionError(k_lt0)
        if wantq and n > m:
            raise PreconditionError(m_lt_n)
        if wantq and n < min(m, k):
            raise PreconditionError("lapack: n < min(m, k)")
        if not wantq and m > n:
            raise PreconditionError(n_lt_m)
        if not wantq and m < min(n, k):
            raise PreconditionError("lapack: m < min(n, k)")
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        check_workspace(work, lwork, mn)

        if m == 0 or n == 0:
            work[0] = 1
            return

        work[0] = 1
        if wantq:
            if m >= k:
                self.dorgqr(m, n, k, a, lda, tau, work, -1)
            elif m > 1:
                self.dorgqr(m - 1, m - 1, m - 1, a[lda + 1:], lda, tau, work, -1)
        else:
            if k < n:
                self.dorglq(m, n, k, a, lda, tau, work, -1)
            elif n > 1:
                self.dorglq(n - 1, n - 1, n - 1, a[lda + 1:], lda, tau, work, -1)
        lworkopt = max(int(work[0]), mn)
        if lwork == -1:
            work[0] = lworkopt
            return

        check_matrix(m, n, a, lda)
        if wantq:
            if len(tau) < min(m, k):
                raise PreconditionError(bad_tau)
            if m >= k:
                # The reflectors can be used as they are.
                self.dorgqr(m, n, k, a, lda, tau, work, lwork)
            else:
                # m == n here. Shift the reflectors one column to the right
                # and set the first row and column of Q to the unit matrix.
                for j in range(m - 1, 0, -1):
                    a[j] = 0
                    for i in range(j + 1, m):
                        a[i * lda + j] = a[i * lda + j - 1]
                a[0] = 1
                for i in range(1, m):
                    a[i * lda] = 0
                if m > 1:
                    self.dorgqr(m - 1, m - 1, m - 1, a[lda + 1:], lda, tau, work, lwork)
        else:
            if len(tau) < min(n, k):
                raise PreconditionError(bad_tau)
            if k < n:
                self.dorglq(m, n, k, a, lda, tau, work, lwork)
            else:
                # m == n here. Shift the reflectors one row down and set the
                # first row and column of Pᵀ to the unit matrix.
                a[0] = 1
                for i in range(1, n):
                    a[i * lda] = 0
                for j in range(1, n):
                    for i in range(j - 1, 0, -1):
                        a[i * lda + j] = a[(i - 1) * lda + j]
                    a[j] = 0
                if n > 1:
                    self.dorglq(n - 1, n - 1, n - 1, a[lda + 1:], lda, tau, work, lwork)
        work[0] = lworkopt
