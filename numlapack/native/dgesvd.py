# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Singular value decomposition of a general matrix.

The driver reduces A to bidiagonal form, optionally after a QR (tall) or
LQ (wide) pre-reduction, and finishes with ``dbdsqr``. Which of the paths
below runs is decided by the shape of A, the job flags and the workspace:

===========  ==========================================================
Path         When
===========  ==========================================================
1 / 1t       ``m >> n`` (``n >> m``) and no left (right) vectors
2-9 / 2t-9t  ``m >> n`` (``n >> m``), vectors wanted, enough workspace
10 / 10t     everything else
===========  ==========================================================

``m >> n`` means ``m >= ilaenv(6, ...)``, i.e. ``m`` at least
``BlockConfig.crossover`` times ``n``. All intermediate matrices kept in
``work`` are row-major with the smallest possible leading dimension.
"""

import logging
import math

import numpy as np

from ..enums import ApplyOrtho, MatrixNorm, SVDJob, Transpose, Uplo
from ..errors import PreconditionError
from .general import (
    bad_job_overwrite,
    bad_job_u,
    bad_job_vt,
    bad_ld_a,
    bad_ld_u,
    bad_ld_vt,
    bad_s,
    check_matrix,
    check_workspace,
    dlamchP,
    dlamchS,
    flag,
    m_lt0,
    n_lt0,
)

logger = logging.getLogger(__name__)

_N = Transpose.NO_TRANS
_Q = ApplyOrtho.APPLY_Q
_P = ApplyOrtho.APPLY_P


class Dgesvd:
    def dgesvd(self, jobu, jobvt, m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork) -> bool:
        """
        Compute the SVD A = U Σ Vᵀ of the ``m x n`` matrix A.

        Parameters
        ----------
        jobu : SVDJob or str
            ``ALL``: all m columns of U are returned in ``u``.
            ``STORE``: the first ``min(m, n)`` columns of U go to ``u``.
            ``OVERWRITE``: the first ``min(m, n)`` columns of U overwrite A.
            ``NONE``: no left singular vectors.
        jobvt : SVDJob or str
            Same for the rows of Vᵀ (``vt`` is ``n x n`` for ``ALL`` and
            ``min(m, n) x n`` for ``STORE``). jobu and jobvt cannot both be
            ``OVERWRITE``.
        a : ndarray
            ``m x n`` with leading dimension ``lda``; destroyed unless
            overwritten by singular vectors.
        s : ndarray
            Receives the ``min(m, n)`` singular values in decreasing order.
        work, lwork : ndarray, int
            ``lwork >= max(1, 3*min(m,n) + max(m,n), 5*min(m,n))``. With
            ``lwork == -1`` only the optimal size is written to ``work[0]``.

        Returns
        -------
        ok : bool
            False if ``dbdsqr`` did not converge. ``work[1:min(m,n)]`` then
            holds the unconverged superdiagonal of the bidiagonal matrix whose
            diagonal is in ``s``; it has the same singular values as A.
        """
        jobu = flag(SVDJob, jobu, bad_job_u)
        jobvt = flag(SVDJob, jobvt, bad_job_vt)
        if jobu is SVDJob.OVERWRITE and jobvt is SVDJob.OVERWRITE:
            raise PreconditionError(bad_job_overwrite)
        wntua = jobu is SVDJob.ALL
        wntus = jobu is SVDJob.STORE
        wntuas = wntua or wntus
        wntuo = jobu is SVDJob.OVERWRITE
        wntun = jobu is SVDJob.NONE
        wntva = jobvt is SVDJob.ALL
        wntvs = jobvt is SVDJob.STORE
        wntvas = wntva or wntvs
        wntvo = jobvt is SVDJob.OVERWRITE
        wntvn = jobvt is SVDJob.NONE

        minmn = min(m, n)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        if ldu < 1 or (wntua and ldu < m) or (wntus and ldu < minmn):
            raise PreconditionError(bad_ld_u)
        if ldvt < 1 or (wntvas and ldvt < n):
            raise PreconditionError(bad_ld_vt)
        min_work = 1
        if minmn > 0:
            min_work = max(1, 5 * minmn, 3 * minmn + max(m, n))
        check_workspace(work, lwork, min_work)

        if minmn == 0:
            work[0] = 1
            return True

        maxwrk = max(self._gesvd_optimal_work(jobu, jobvt, m, n), min_work)
        if lwork == -1:
            work[0] = maxwrk
            return True

        check_matrix(m, n, a, lda)
        if len(s) < minmn:
            raise PreconditionError(bad_s)
        if wntua:
            check_matrix(m, m, u, ldu)
        elif wntus:
            check_matrix(m, minmn, u, ldu)
        if wntva:
            check_matrix(n, n, vt, ldvt)
        elif wntvs:
            check_matrix(minmn, n, vt, ldvt)

        # Scale A if its largest entry is outside [smlnum, bignum].
        eps = dlamchP
        smlnum = math.sqrt(dlamchS) / eps
        bignum = 1 / smlnum
        anrm = self.dlange(MatrixNorm.MAX_ABS, m, n, a, lda)
        scaled_to = None
        if 0 < anrm < smlnum:
            scaled_to = smlnum
        elif anrm > bignum:
            scaled_to = bignum
        if scaled_to is not None:
            self.dlascl(anrm, scaled_to, m, n, a, lda)

        if m >= n:
            ok, ie = self._gesvd_tall(
                wntua, wntus, wntuo, wntun, wntvas, wntvo, wntvn,
                m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork,
            )
        else:
            ok, ie = self._gesvd_wide(
                wntuas, wntuo, wntun, wntva, wntvs, wntvo, wntvn,
                m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork,
            )

        if not ok:
            # Move the unconverged superdiagonal to work[1:minmn].
            work[1:minmn] = work[ie:ie + minmn - 1].copy()
        if scaled_to is not None:
            self.dlascl(scaled_to, anrm, minmn, 1, s, 1)
            if not ok:
                self.dlascl(scaled_to, anrm, minmn - 1, 1, work[1:], 1)
        work[0] = maxwrk
        return ok

    def _gesvd_optimal_work(self, jobu, jobvt, m, n):
        """Optimal ``lwork`` for the path that ``dgesvd`` will take."""
        wntua = jobu is SVDJob.ALL
        wntus = jobu is SVDJob.STORE
        wntuo = jobu is SVDJob.OVERWRITE
        wntun = jobu is SVDJob.NONE
        wntva = jobvt is SVDJob.ALL
        wntvs = jobvt is SVDJob.STORE
        wntvo = jobvt is SVDJob.OVERWRITE
        wntvn = jobvt is SVDJob.NONE
        wntuas = wntua or wntus
        wntvas = wntva or wntvs

        dum = np.zeros(1)

        def query(routine, *args):
            routine(*args, dum, -1)
            return int(dum[0])

        if m >= n:
            mnthr = self.ilaenv(6, "DGESVD", " ", m, n, 0, 0)
            bdspac = 5 * n
            if m >= mnthr:
                geqrf = query(self.dgeqrf, m, n, dum, n, dum)
                orgqr_n = query(self.dorgqr, m, n, n, dum, n, dum)
                orgqr_m = query(self.dorgqr, m, m, n, dum, m, dum)
                gebrd = query(self.dgebrd, n, n, dum, n, dum, dum, dum, dum)
                orgbr_p = query(self.dorgbr, _P, n, n, n, dum, n, dum)
                orgbr_q = query(self.dorgbr, _Q, n, n, n, dum, n, dum)
                if wntun:
                    maxwrk = max(n + geqrf, 3 * n + gebrd)
                    if wntvo or wntvas:
                        maxwrk = max(maxwrk, 3 * n + orgbr_p)
                    return max(maxwrk, bdspac)
                orgqr = orgqr_m if wntua else orgqr_n
                wrkbl = max(n + geqrf, n + orgqr, 3 * n + gebrd, 3 * n + orgbr_q, bdspac)
                if not wntvn:
                    wrkbl = max(wrkbl, 3 * n + orgbr_p)
                if wntuo:
                    return max(n * n + wrkbl, n * n + m * n + n)
                if wntvo:
                    return 2 * n * n + wrkbl
                return n * n + wrkbl
            maxwrk = 3 * n + query(self.dgebrd, m, n, dum, n, dum, dum, dum, dum)
            if wntus or wntuo:
                maxwrk = max(maxwrk, 3 * n + query(self.dorgbr, _Q, m, n, n, dum, n, dum))
            if wntua:
                maxwrk = max(maxwrk, 3 * n + query(self.dorgbr, _Q, m, m, n, dum, m, dum))
            if not wntvn:
                maxwrk = max(maxwrk, 3 * n + query(self.dorgbr, _P, n, n, n, dum, n, dum))
            return max(maxwrk, bdspac)

        mnthr = self.ilaenv(6, "DGESVD", " ", m, n, 0, 0)
        bdspac = 5 * m
        if n >= mnthr:
            gelqf = query(self.dgelqf, m, n, dum, n, dum)
            orglq_n = query(self.dorglq, n, n, m, dum, n, dum)
            orglq_m = query(self.dorglq, m, n, m, dum, n, dum)
            gebrd = query(self.dgebrd, m, m, dum, m, dum, dum, dum, dum)
            orgbr_p = query(self.dorgbr, _P, m, m, m, dum, m, dum)
            orgbr_q = query(self.dorgbr, _Q, m, m, m, dum, m, dum)
            if wntvn:
                maxwrk = max(m + gelqf, 3 * m + gebrd)
                if wntuo or wntuas:
                    maxwrk = max(maxwrk, 3 * m + orgbr_q)
                return max(maxwrk, bdspac)
            orglq = orglq_n if wntva else orglq_m
            wrkbl = max(m + gelqf, m + orglq, 3 * m + gebrd, 3 * m + orgbr_p, bdspac)
            if not wntun:
                wrkbl = max(wrkbl, 3 * m + orgbr_q)
            if wntvo:
                return max(m * m + wrkbl, m * m + m * n + m)
            if wntuo:
                return 2 * m * m + wrkbl
            return m * m + wrkbl
        maxwrk = 3 * m + query(self.dgebrd, m, n, dum, n, dum, dum, dum, dum)
        if wntvs or wntvo:
            maxwrk = max(maxwrk, 3 * m + query(self.dorgbr, _P, m, n, m, dum, n, dum))
        if wntva:
            maxwrk = max(maxwrk, 3 * m + query(self.dorgbr, _P, n, n, m, dum, n, dum))
        if not wntun:
            maxwrk = max(maxwrk, 3 * m + query(self.dorgbr, _Q, m, m, n, dum, m, dum))
        return max(maxwrk, bdspac)

    # -----------------------------------------------------------------
    # m >= n
    # -----------------------------------------------------------------

    def _gesvd_tall(self, wntua, wntus, wntuo, wntun, wntvas, wntvo, wntvn,
                    m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork):
        bi = self.blas
        dum = np.zeros(1)
        nn = n * n
        bdspac = 5 * n
        mnthr = self.ilaenv(6, "DGESVD", " ", m, n, 0, 0)

        if m >= mnthr and wntun:
            logger.debug("dgesvd path 1: m=%d n=%d", m, n)
            itau = 0
            iwork = itau + n
            self.dgeqrf(m, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
            self.dlaset(Uplo.LOWER, n - 1, n - 1, 0, 0, a[lda:], lda)
            ie = 0
            itauq = ie + n
            itaup = itauq + n
            iwork = itaup + n
            self.dgebrd(n, n, a, lda, s, work[ie:], work[itauq:], work[itaup:],
                        work[iwork:], lwork - iwork)
            ncvt = 0
            if wntvo or wntvas:
                self.dorgbr(_P, n, n, n, a, lda, work[itaup:], work[iwork:], lwork - iwork)
                ncvt = n
            iwork = ie + n
            ok = self.dbdsqr(Uplo.UPPER, n, ncvt, 0, 0, s, work[ie:], a, lda,
                             dum, 1, dum, 1, work[iwork:])
            if wntvas:
                self.dlacpy(Uplo.ALL, n, n, a, lda, vt, ldvt)
            return ok, ie

        if m >= mnthr and wntuo and lwork >= nn + max(4 * n, bdspac):
            # Build Q·(left vectors of R) in A, a block of rows at a time.
            logger.debug("dgesvd path %d: m=%d n=%d", 3 if wntvas else 2, m, n)
            ir = 0
            itau = ir + nn
            iwork = itau + n
            self.dgeqrf(m, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
            ie = itau
            itauq = ie + n
            itaup = itauq + n
            if wntvas:
                self.dlacpy(Uplo.UPPER, n, n, a, lda, vt, ldvt)
                self.dlaset(Uplo.LOWER, n - 1, n - 1, 0, 0, vt[ldvt:], ldvt)
                self.dorgqr(m, n, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
                iwork = itaup + n
                self.dgebrd(n, n, vt, ldvt, s, work[ie:], work[itauq:], work[itaup:],
                            work[iwork:], lwork - iwork)
                self.dlacpy(Uplo.LOWER, n, n, vt, ldvt, work[ir:], n)
                self.dorgbr(_Q, n, n, n, work[ir:], n, work[itauq:], work[iwork:], lwork - iwork)
                self.dorgbr(_P, n, n, n, vt, ldvt, work[itaup:], work[iwork:], lwork - iwork)
                iwork = ie + n
                ok = self.dbdsqr(Uplo.UPPER, n, n, n, 0, s, work[ie:], vt, ldvt,
                                 work[ir:], n, dum, 1, work[iwork:])
            else:
                self._copy_r(n, a, lda, work[ir:], n)
                self.dorgqr(m, n, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
                iwork = itaup + n
                self.dgebrd(n, n, work[ir:], n, s, work[ie:], work[itauq:], work[itaup:],
                            work[iwork:], lwork - iwork)
                self.dorgbr(_Q, n, n, n, work[ir:], n, work[itauq:], work[iwork:], lwork - iwork)
                iwork = ie + n
                ok = self.dbdsqr(Uplo.UPPER, n, 0, n, 0, s, work[ie:], dum, 1,
                                 work[ir:], n, dum, 1, work[iwork:])
            iu = ie + n
            chunk = (lwork - iu) // n
            for i in range(0, m, chunk):
                blk = min(m - i, chunk)
                bi.dgemm(_N, _N, blk, n, n, 1, a[i * lda:], lda, work[ir:], n,
                         0, work[iu:], n)
                self.dlacpy(Uplo.ALL, blk, n, work[iu:], n, a[i * lda:], lda)
            return ok, ie

        if m >= mnthr and wntus:
            need = (2 * nn if wntvo else nn) + max(4 * n, bdspac)
            if lwork >= need:
                logger.debug("dgesvd path %d: m=%d n=%d", 5 if wntvo else (6 if wntvas else 4), m, n)
                ok, ie, iu = self._tall_vectors(wntvas, wntvo, m, n, a, lda, s, vt, ldvt, work, lwork,
                                                lambda itau, iwork: self.dorgqr(
                                                    m, n, n, a, lda, work[itau:],
                                                    work[iwork:], lwork - iwork))
                bi.dgemm(_N, _N, m, n, n, 1, a, lda, work[iu:], n, 0, u, ldu)
                if wntvo:
                    self.dlacpy(Uplo.ALL, n, n, work[nn:], n, a, lda)
                return ok, ie

        if m >= mnthr and wntua:
            need = (2 * nn if wntvo else nn) + max(n + m, 4 * n, bdspac)
            if lwork >= need:
                logger.debug("dgesvd path %d: m=%d n=%d", 8 if wntvo else (9 if wntvas else 7), m, n)

                def form_q(itau, iwork):
                    self.dlacpy(Uplo.LOWER, m, n, a, lda, u, ldu)
                    self.dorgqr(m, m, n, u, ldu, work[itau:], work[iwork:], lwork - iwork)

                ok, ie, iu = self._tall_vectors(wntvas, wntvo, m, n, a, lda, s, vt, ldvt,
                                                work, lwork, form_q)
                bi.dgemm(_N, _N, m, n, n, 1, u, ldu, work[iu:], n, 0, a, lda)
                self.dlacpy(Uplo.ALL, m, n, a, lda, u, ldu)
                if wntvo:
                    self.dlacpy(Uplo.ALL, n, n, work[nn:], n, a, lda)
                return ok, ie

        # Path 10: direct bidiagonalization.
        logger.debug("dgesvd path 10: m=%d n=%d", m, n)
        ie = 0
        itauq = ie + n
        itaup = itauq + n
        iwork = itaup + n
        self.dgebrd(m, n, a, lda, s, work[ie:], work[itauq:], work[itaup:],
                    work[iwork:], lwork - iwork)
        if wntua or wntus:
            self.dlacpy(Uplo.LOWER, m, n, a, lda, u, ldu)
            ncu = m if wntua else n
            self.dorgbr(_Q, m, ncu, n, u, ldu, work[itauq:], work[iwork:], lwork - iwork)
        if wntvas:
            self.dlacpy(Uplo.UPPER, n, n, a, lda, vt, ldvt)
            self.dorgbr(_P, n, n, n, vt, ldvt, work[itaup:], work[iwork:], lwork - iwork)
        if wntuo:
            self.dorgbr(_Q, m, n, n, a, lda, work[itauq:], work[iwork:], lwork - iwork)
        if wntvo:
            self.dorgbr(_P, n, n, n, a, lda, work[itaup:], work[iwork:], lwork - iwork)
        iwork = ie + n
        nru = m if not wntun else 0
        ncvt = n if not wntvn else 0
        if wntvo:
            vmat, ldv = a, lda
        elif wntvas:
            vmat, ldv = vt, ldvt
        else:
            vmat, ldv = dum, 1
        if wntuo:
            umat, ldum = a, lda
        elif wntua or wntus:
            umat, ldum = u, ldu
        else:
            umat, ldum = dum, 1
        ok = self.dbdsqr(Uplo.UPPER, n, ncvt, nru, 0, s, work[ie:], vmat, ldv,
                         umat, ldum, dum, 1, work[iwork:])
        return ok, ie

    def _tall_vectors(self, wntvas, wntvo, m, n, a, lda, s, vt, ldvt, work, lwork, form_q):
        """
        Shared body of paths 4-9: QR-factor A, call ``form_q`` to build the
        wanted columns of Q, then take the SVD of R in ``work``.

        Returns ``(ok, ie, iu)`` with the left vectors of R in
        ``work[iu:]`` (ld n) and, for ``wntvo``, the right vectors in
        ``work[n*n:]`` (ld n).
        """
        dum = np.zeros(1)
        nn = n * n
        iu = 0
        ir = nn
        itau = iu + (2 * nn if wntvo else nn)
        iwork = itau + n
        self.dgeqrf(m, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
        self._copy_r(n, a, lda, work[iu:], n)
        form_q(itau, iwork)
        ie = itau
        itauq = ie + n
        itaup = itauq + n
        iwork = itaup + n
        self.dgebrd(n, n, work[iu:], n, s, work[ie:], work[itauq:], work[itaup:],
                    work[iwork:], lwork - iwork)
        ncvt = 0
        vmat, ldv = dum, 1
        if wntvas:
            self.dlacpy(Uplo.UPPER, n, n, work[iu:], n, vt, ldvt)
            self.dorgbr(_P, n, n, n, vt, ldvt, work[itaup:], work[iwork:], lwork - iwork)
            ncvt = n
            vmat, ldv = vt, ldvt
        elif wntvo:
            self.dlacpy(Uplo.UPPER, n, n, work[iu:], n, work[ir:], n)
            self.dorgbr(_P, n, n, n, work[ir:], n, work[itaup:], work[iwork:], lwork - iwork)
            ncvt = n
            vmat, ldv = work[ir:], n
        self.dorgbr(_Q, n, n, n, work[iu:], n, work[itauq:], work[iwork:], lwork - iwork)
        iwork = ie + n
        ok = self.dbdsqr(Uplo.UPPER, n, ncvt, n, 0, s, work[ie:], vmat, ldv,
                         work[iu:], n, dum, 1, work[iwork:])
        return ok, ie, iu

    def _copy_r(self, n, a, lda, r, ldr):
        """Copy the n x n upper triangle of A to R and zero R below it."""
        self.dlacpy(Uplo.UPPER, n, n, a, lda, r, ldr)
        self.dlaset(Uplo.LOWER, n - 1, n - 1, 0, 0, r[ldr:], ldr)

    # -----------------------------------------------------------------
    # m < n
    # -----------------------------------------------------------------

    def _gesvd_wide(self, wntuas, wntuo, wntun, wntva, wntvs, wntvo, wntvn,
                    m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork):
        bi = self.blas
        dum = np.zeros(1)
        mm = m * m
        bdspac = 5 * m
        mnthr = self.ilaenv(6, "DGESVD", " ", m, n, 0, 0)
        wntvas = wntva or wntvs

        if n >= mnthr and wntvn:
            logger.debug("dgesvd path 1t: m=%d n=%d", m, n)
            itau = 0
            iwork = itau + m
            self.dgelqf(m, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
            self.dlaset(Uplo.UPPER, m - 1, m - 1, 0, 0, a[1:], lda)
            ie = 0
            itauq = ie + m
            itaup = itauq + m
            iwork = itaup + m
            self.dgebrd(m, m, a, lda, s, work[ie:], work[itauq:], work[itaup:],
                        work[iwork:], lwork - iwork)
            nru = 0
            if wntuo or wntuas:
                self.dorgbr(_Q, m, m, m, a, lda, work[itauq:], work[iwork:], lwork - iwork)
                nru = m
            iwork = ie + m
            ok = self.dbdsqr(Uplo.UPPER, m, 0, nru, 0, s, work[ie:], dum, 1,
                             a, lda, dum, 1, work[iwork:])
            if wntuas:
                self.dlacpy(Uplo.ALL, m, m, a, lda, u, ldu)
            return ok, ie

        if n >= mnthr and wntvo and lwork >= mm + max(4 * m, bdspac):
            # Build (right vectors of L)·Q in A, a block of columns at a time.
            logger.debug("dgesvd path %s: m=%d n=%d", "3t" if wntuas else "2t", m, n)
            ir = 0
            itau = ir + mm
            iwork = itau + m
            self.dgelqf(m, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
            ie = itau
            itauq = ie + m
            itaup = itauq + m
            if wntuas:
                self.dlacpy(Uplo.LOWER, m, m, a, lda, u, ldu)
                self.dlaset(Uplo.UPPER, m - 1, m - 1, 0, 0, u[1:], ldu)
                self.dorglq(m, n, m, a, lda, work[itau:], work[iwork:], lwork - iwork)
                iwork = itaup + m
                self.dgebrd(m, m, u, ldu, s, work[ie:], work[itauq:], work[itaup:],
                            work[iwork:], lwork - iwork)
                self.dlacpy(Uplo.UPPER, m, m, u, ldu, work[ir:], m)
                self.dorgbr(_P, m, m, m, work[ir:], m, work[itaup:], work[iwork:], lwork - iwork)
                self.dorgbr(_Q, m, m, m, u, ldu, work[itauq:], work[iwork:], lwork - iwork)
                iwork = ie + m
                ok = self.dbdsqr(Uplo.UPPER, m, m, m, 0, s, work[ie:], work[ir:], m,
                                 u, ldu, dum, 1, work[iwork:])
            else:
                self._copy_l(m, a, lda, work[ir:], m)
                self.dorglq(m, n, m, a, lda, work[itau:], work[iwork:], lwork - iwork)
                iwork = itaup + m
                self.dgebrd(m, m, work[ir:], m, s, work[ie:], work[itauq:], work[itaup:],
                            work[iwork:], lwork - iwork)
                self.dorgbr(_P, m, m, m, work[ir:], m, work[itaup:], work[iwork:], lwork - iwork)
                iwork = ie + m
                ok = self.dbdsqr(Uplo.UPPER, m, m, 0, 0, s, work[ie:], work[ir:], m,
                                 dum, 1, dum, 1, work[iwork:])
            iu = ie + m
            chunk = (lwork - iu) // m
            for i in range(0, n, chunk):
                blk = min(n - i, chunk)
                bi.dgemm(_N, _N, m, blk, m, 1, work[ir:], m, a[i:], lda,
                         0, work[iu:], chunk)
                self.dlacpy(Uplo.ALL, m, blk, work[iu:], chunk, a[i:], lda)
            return ok, ie

        if n >= mnthr and wntvs:
            need = (2 * mm if wntuo else mm) + max(4 * m, bdspac)
            if lwork >= need:
                logger.debug("dgesvd path %s: m=%d n=%d", "5t" if wntuo else ("6t" if wntuas else "4t"), m, n)
                ok, ie, iu = self._wide_vectors(wntuas, wntuo, m, n, a, lda, s, u, ldu, work, lwork,
                                                lambda itau, iwork: self.dorglq(
                                                    m, n, m, a, lda, work[itau:],
                                                    work[iwork:], lwork - iwork))
                bi.dgemm(_N, _N, m, n, m, 1, work[iu:], m, a, lda, 0, vt, ldvt)
                if wntuo:
                    self.dlacpy(Uplo.ALL, m, m, work[mm:], m, a, lda)
                return ok, ie

        if n >= mnthr and wntva:
            need = (2 * mm if wntuo else mm) + max(n + m, 4 * m, bdspac)
            if lwork >= need:
                logger.debug("dgesvd path %s: m=%d n=%d", "8t" if wntuo else ("9t" if wntuas else "7t"), m, n)

                def form_q(itau, iwork):
                    self.dlacpy(Uplo.UPPER, m, n, a, lda, vt, ldvt)
                    self.dorglq(n, n, m, vt, ldvt, work[itau:], work[iwork:], lwork - iwork)

                ok, ie, iu = self._wide_vectors(wntuas, wntuo, m, n, a, lda, s, u, ldu,
                                                work, lwork, form_q)
                bi.dgemm(_N, _N, m, n, m, 1, work[iu:], m, vt, ldvt, 0, a, lda)
                self.dlacpy(Uplo.ALL, m, n, a, lda, vt, ldvt)
                if wntuo:
                    self.dlacpy(Uplo.ALL, m, m, work[mm:], m, a, lda)
                return ok, ie

        # Path 10t: direct bidiagonalization to lower bidiagonal form.
        logger.debug("dgesvd path 10t: m=%d n=%d", m, n)
        ie = 0
        itauq = ie + m
        itaup = itauq + m
        iwork = itaup + m
        self.dgebrd(m, n, a, lda, s, work[ie:], work[itauq:], work[itaup:],
                    work[iwork:], lwork - iwork)
        if wntuas:
            self.dlacpy(Uplo.LOWER, m, m, a, lda, u, ldu)
            self.dorgbr(_Q, m, m, n, u, ldu, work[itauq:], work[iwork:], lwork - iwork)
        if wntvas:
            self.dlacpy(Uplo.UPPER, m, n, a, lda, vt, ldvt)
            nrvt = n if wntva else m
            self.dorgbr(_P, nrvt, n, m, vt, ldvt, work[itaup:], work[iwork:], lwork - iwork)
        if wntuo:
            self.dorgbr(_Q, m, m, n, a, lda, work[itauq:], work[iwork:], lwork - iwork)
        if wntvo:
            self.dorgbr(_P, m, n, m, a, lda, work[itaup:], work[iwork:], lwork - iwork)
        iwork = ie + m
        nru = m if not wntun else 0
        ncvt = n if not wntvn else 0
        if wntvo:
            vmat, ldv = a, lda
        elif wntvas:
            vmat, ldv = vt, ldvt
        else:
            vmat, ldv = dum, 1
        if wntuo:
            umat, ldum = a, lda
        elif wntuas:
            umat, ldum = u, ldu
        else:
            umat, ldum = dum, 1
        ok = self.dbdsqr(Uplo.LOWER, m, ncvt, nru, 0, s, work[ie:], vmat, ldv,
                         umat, ldum, dum, 1, work[iwork:])
        return ok, ie

    def _wide_vectors(self, wntuas, wntuo, m, n, a, lda, s, u, ldu, work, lwork, form_q):
        """
        Shared body of paths 4t-9t: LQ-factor A, call ``form_q`` to build
        the wanted rows of Q, then take the SVD of L in ``work``.

        Returns ``(ok, ie, iu)`` with the right vectors of L in
        ``work[iu:]`` (ld m) and, for ``wntuo``, the left vectors in
        ``work[m*m:]`` (ld m).
        """
        dum = np.zeros(1)
        mm = m * m
        iu = 0
        ir = mm
        itau = iu + (2 * mm if wntuo else mm)
        iwork = itau + m
        self.dgelqf(m, n, a, lda, work[itau:], work[iwork:], lwork - iwork)
        self._copy_l(m, a, lda, work[iu:], m)
        form_q(itau, iwork)
        ie = itau
        itauq = ie + m
        itaup = itauq + m
        iwork = itaup + m
        self.dgebrd(m, m, work[iu:], m, s, work[ie:], work[itauq:], work[itaup:],
                    work[iwork:], lwork - iwork)
        nru = 0
        umat, ldum = dum, 1
        if wntuas:
            self.dlacpy(Uplo.LOWER, m, m, work[iu:], m, u, ldu)
            self.dorgbr(_Q, m, m, m, u, ldu, work[itauq:], work[iwork:], lwork - iwork)
            nru = m
            umat, ldum = u, ldu
        elif wntuo:
            self.dlacpy(Uplo.LOWER, m, m, work[iu:], m, work[ir:], m)
            self.dorgbr(_Q, m, m, m, work[ir:], m, work[itauq:], work[iwork:], lwork - iwork)
            nru = m
            umat, ldum = work[ir:], m
        self.dorgbr(_P, m, m, m, work[iu:], m, work[itaup:], work[iwork:], lwork - iwork)
        iwork = ie + m
        ok = self.dbdsqr(Uplo.UPPER, m, m, nru, 0, s, work[ie:], work[iu:], m,
                         umat, ldum, dum, 1, work[iwork:])
        return ok, ie, iu

    def _copy_l(self, m, a, lda, l, ldl):
        """Copy the m x m lower triangle of A to L and zero L above it."""
        self.dlacpy(Uplo.LOWER, m, m, a, lda, l, ldl)
        self.dlaset(Uplo.UPPER, m - 1, m - 1, 0, 0, l[1:], ldl)
