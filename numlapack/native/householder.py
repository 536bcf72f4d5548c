# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Householder reflectors H = I - tau * v vᵀ, one at a time (dlarfg, dlarf) and
blocked in compact WY form I - V T Vᵀ (dlarft, dlarfb).
"""

import math
from typing import Tuple

import numpy as np

from ..blas64 import matrix, vector
from ..enums import Diag, Direct, Side, StoreV, Transpose, Uplo
from ..errors import PreconditionError
from .general import (
    backward_unsupported,
    bad_direct,
    bad_ld_t,
    bad_ld_work,
    bad_side,
    bad_store,
    bad_tau,
    bad_trans,
    check_matrix,
    check_vector,
    dlamchE,
    dlamchS,
    flag,
    k_lt0,
    m_lt0,
    n_lt0,
    short_t,
    short_work,
)


class Householder:
    def dlarfg(self, n: int, alpha: float, x: np.ndarray, incx: int) -> Tuple[float, float]:
        """
        Generate an elementary reflector H such that

            H [alpha]   [beta]
              [  x  ] = [  0 ],   Hᵀ H = I,

        with H = I - tau [1; v] [1 vᵀ]. On return x holds v.

        Parameters
        ----------
        n : int
            Order of the reflector (length of [alpha; x]).
        alpha : float
            Leading entry.
        x : ndarray
            The remaining n-1 entries, strided by ``incx``; overwritten by v.

        Returns
        -------
        beta : float
            New leading entry, ``|beta| == ||[alpha; x]||``.
        tau : float
            Scale factor; 0 when x is already zero (H = I).
        """
        if n < 0:
            raise PreconditionError(n_lt0)
        if n <= 1:
            return alpha, 0.0
        check_vector(n - 1, x, incx)
        bi = self.blas

        xnorm = bi.dnrm2(n - 1, x, incx)
        if xnorm == 0:
            return alpha, 0.0
        beta = -math.copysign(self.dlapy2(alpha, xnorm), alpha)
        safmin = dlamchS / dlamchE
        knt = 0
        if abs(beta) < safmin:
            # xnorm and beta may be inaccurate; scale x and recompute them.
            rsafmn = 1 / safmin
            while True:
                knt += 1
                bi.dscal(n - 1, rsafmn, x, incx)
                beta *= rsafmn
                alpha *= rsafmn
                if abs(beta) >= safmin or knt >= 20:
                    break
            xnorm = bi.dnrm2(n - 1, x, incx)
            beta = -math.copysign(self.dlapy2(alpha, xnorm), alpha)
        tau = (beta - alpha) / beta
        bi.dscal(n - 1, 1 / (alpha - beta), x, incx)
        for _ in range(knt):
            beta *= safmin
        return beta, tau

    def dlarf(self, side, m, n, v, incv, tau, c, ldc, work):
        """
        Apply H = I - tau v vᵀ to the ``m x n`` matrix C from the left
        (C := H C, needs ``len(work) >= n``) or right (C := C H,
        ``len(work) >= m``).

        Trailing zeros of v and the matching zero rows/columns of C are
        skipped.
        """
        side = flag(Side, side, bad_side)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        check_matrix(m, n, c, ldc)
        left = side is Side.LEFT
        lastv = m if left else n
        if tau == 0 or lastv == 0:
            return
        check_vector(lastv, v, incv)
        if len(work) < (n if left else m):
            raise PreconditionError(short_work)

        vv = vector(v, lastv, incv)
        nz = np.flatnonzero(vv)
        lastv = int(nz[-1]) + 1 if nz.size else 0
        if lastv == 0:
            return
        bi = self.blas
        C = matrix(c, m, n, ldc)
        if left:
            # last non-zero column of C[:lastv, :]
            cols = np.flatnonzero(np.any(C[:lastv] != 0, axis=0))
            lastc = int(cols[-1]) + 1 if cols.size else 0
            if lastc == 0:
                return
            # w := C[:lastv, :lastc]ᵀ v ; C -= tau v wᵀ
            bi.dgemv(Transpose.TRANS, lastv, lastc, 1, c, ldc, v, incv, 0, work, 1)
            bi.dger(lastv, lastc, -tau, v, incv, work, 1, c, ldc)
        else:
            rows = np.flatnonzero(np.any(C[:, :lastv] != 0, axis=1))
            lastc = int(rows[-1]) + 1 if rows.size else 0
            if lastc == 0:
                return
            # w := C[:lastc, :lastv] v ; C -= tau w vᵀ
            bi.dgemv(Transpose.NO_TRANS, lastc, lastv, 1, c, ldc, v, incv, 0, work, 1)
            bi.dger(lastc, lastv, -tau, work, 1, v, incv, c, ldc)

    def dlarft(self, direct, store, n, k, v, ldv, tau, t, ldt):
        """
        Form the ``k x k`` upper triangular factor T of the block reflector
        H = H(0) H(1) ... H(k-1) = I - V T Vᵀ.

        With ``StoreV.COLUMN_WISE`` the i-th vector lives in column i of the
        ``n x k`` matrix V (unit diagonal implied); with ``StoreV.ROW_WISE``
        it lives in row i of the ``k x n`` matrix V and H = I - Vᵀ T V.
        Only ``Direct.FORWARD`` is supported.
        """
        direct = flag(Direct, direct, bad_direct)
        store = flag(StoreV, store, bad_store)
        if direct is Direct.BACKWARD:
            raise PreconditionError(backward_unsupported)
        if n < 0:
            raise PreconditionError(n_lt0)
        if k < 1:
            raise PreconditionError(k_lt0)
        if ldt < k:
            raise PreconditionError(bad_ld_t)
        if n == 0:
            return
        if store is StoreV.COLUMN_WISE:
            check_matrix(n, k, v, ldv)
        else:
            check_matrix(k, n, v, ldv)
        if len(tau) < k:
            raise PreconditionError(bad_tau)
        if len(t) < (k - 1) * ldt + k:
            raise PreconditionError(short_t)

        bi = self.blas
        prevlastv = n - 1
        for i in range(k):
            prevlastv = max(i, prevlastv)
            if tau[i] == 0:
                # H(i) = I
                for j in range(i + 1):
                    t[j * ldt + i] = 0
                continue
            if store is StoreV.COLUMN_WISE:
                lastv = n - 1
                while lastv > i and v[lastv * ldv + i] == 0:
                    lastv -= 1
                for j in range(i):
                    t[j * ldt + i] = -tau[i] * v[i * ldv + j]
                j = min(lastv, prevlastv)
                # T[0:i, i] -= tau[i] * V[i+1:j+1, 0:i]ᵀ V[i+1:j+1, i]
                bi.dgemv(
                    Transpose.TRANS, j - i, i, -tau[i],
                    v[(i + 1) * ldv:], ldv, v[(i + 1) * ldv + i:], ldv,
                    1, t[i:], ldt,
                )
            else:
                lastv = n - 1
                while lastv > i and v[i * ldv + lastv] == 0:
                    lastv -= 1
                for j in range(i):
                    t[j * ldt + i] = -tau[i] * v[j * ldv + i]
                j = min(lastv, prevlastv)
                # T[0:i, i] -= tau[i] * V[0:i, i+1:j+1] V[i, i+1:j+1]ᵀ
                bi.dgemv(
                    Transpose.NO_TRANS, i, j - i, -tau[i],
                    v[i + 1:], ldv, v[i * ldv + i + 1:], 1,
                    1, t[i:], ldt,
                )
            # T[0:i, i] = T[0:i, 0:i] T[0:i, i]
            bi.dtrmv(Uplo.UPPER, Transpose.NO_TRANS, Diag.NON_UNIT, i, t, ldt, t[i:], ldt)
            t[i * ldt + i] = tau[i]
            prevlastv = max(prevlastv, lastv) if i > 0 else lastv

    def dlarfb(self, side, trans, direct, store, m, n, k, v, ldv, t, ldt, c, ldc, work, ldwork):
        """
        Apply the block reflector H = I - V T Vᵀ (or its transpose) to the
        ``m x n`` matrix C from the left or the right.

        ``work`` is an ``n x k`` (left) or ``m x k`` (right) scratch matrix
        with leading dimension ``ldwork``. Only ``Direct.FORWARD`` is
        supported.
        """
        side = flag(Side, side, bad_side)
        trans = flag(Transpose, trans, bad_trans)
        direct = flag(Direct, direct, bad_direct)
        store = flag(StoreV, store, bad_store)
        if direct is Direct.BACKWARD:
            raise PreconditionError(backward_unsupported)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if k < 0:
            raise PreconditionError(k_lt0)
        left = side is Side.LEFT
        if ldwork < max(1, k):
            raise PreconditionError(bad_ld_work)
        if m == 0 or n == 0 or k == 0:
            return
        nv = m if left else n
        if store is StoreV.COLUMN_WISE:
            check_matrix(nv, k, v, ldv)
        else:
            check_matrix(k, nv, v, ldv)
        check_matrix(k, k, t, ldt, short_t)
        check_matrix(m, n, c, ldc)
        rows_w = n if left else m
        if len(work) < (rows_w - 1) * ldwork + k:
            raise PreconditionError(short_work)

        bi = self.blas
        NT, TR = Transpose.NO_TRANS, Transpose.TRANS
        RIGHT = Side.RIGHT
        transt = TR if trans is NT else NT
        W = matrix(work, rows_w, k, ldwork)
        C = matrix(c, m, n, ldc)

        if store is StoreV.COLUMN_WISE:
            # V = [V1; V2] with V1 unit lower triangular k x k
            if left:
                # W := C1ᵀ V1 + C2ᵀ V2
                W[...] = C[:k].T
                bi.dtrmm(RIGHT, Uplo.LOWER, NT, Diag.UNIT, n, k, 1, v, ldv, work, ldwork)
                if m > k:
                    bi.dgemm(TR, NT, n, k, m - k, 1, c[k * ldc:], ldc, v[k * ldv:], ldv, 1, work, ldwork)
                # W := W op(T)ᵀ
                bi.dtrmm(RIGHT, Uplo.UPPER, transt, Diag.NON_UNIT, n, k, 1, t, ldt, work, ldwork)
                # C2 -= V2 Wᵀ ; C1 -= V1 Wᵀ
                if m > k:
                    bi.dgemm(NT, TR, m - k, n, k, -1, v[k * ldv:], ldv, work, ldwork, 1, c[k * ldc:], ldc)
                bi.dtrmm(RIGHT, Uplo.LOWER, TR, Diag.UNIT, n, k, 1, v, ldv, work, ldwork)
                C[:k] -= W.T
            else:
                # W := C1 V1 + C2 V2
                W[...] = C[:, :k]
                bi.dtrmm(RIGHT, Uplo.LOWER, NT, Diag.UNIT, m, k, 1, v, ldv, work, ldwork)
                if n > k:
                    bi.dgemm(NT, NT, m, k, n - k, 1, c[k:], ldc, v[k * ldv:], ldv, 1, work, ldwork)
                # W := W op(T)
                bi.dtrmm(RIGHT, Uplo.UPPER, trans, Diag.NON_UNIT, m, k, 1, t, ldt, work, ldwork)
                if n > k:
                    bi.dgemm(NT, TR, m, n - k, k, -1, work, ldwork, v[k * ldv:], ldv, 1, c[k:], ldc)
                bi.dtrmm(RIGHT, Uplo.LOWER, TR, Diag.UNIT, m, k, 1, v, ldv, work, ldwork)
                C[:, :k] -= W
            return

        # V = [V1 V2] with V1 unit upper triangular k x k
        if left:
            # W := C1ᵀ V1ᵀ + C2ᵀ V2ᵀ
            W[...] = C[:k].T
            bi.dtrmm(RIGHT, Uplo.UPPER, TR, Diag.UNIT, n, k, 1, v, ldv, work, ldwork)
            if m > k:
                bi.dgemm(TR, TR, n, k, m - k, 1, c[k * ldc:], ldc, v[k:], ldv, 1, work, ldwork)
            bi.dtrmm(RIGHT, Uplo.UPPER, transt, Diag.NON_UNIT, n, k, 1, t, ldt, work, ldwork)
            # C2 -= V2ᵀ Wᵀ ; C1 -= V1ᵀ Wᵀ
            if m > k:
                bi.dgemm(TR, TR, m - k, n, k, -1, v[k:], ldv, work, ldwork, 1, c[k * ldc:], ldc)
            bi.dtrmm(RIGHT, Uplo.UPPER, NT, Diag.UNIT, n, k, 1, v, ldv, work, ldwork)
            C[:k] -= W.T
        else:
            # W := C1 V1ᵀ + C2 V2ᵀ
            W[...] = C[:, :k]
            bi.dtrmm(RIGHT, Uplo.UPPER, TR, Diag.UNIT, m, k, 1, v, ldv, work, ldwork)
            if n > k:
                bi.dgemm(NT, TR, m, k, n - k, 1, c[k:], ldc, v[k:], ldv, 1, work, ldwork)
            bi.dtrmm(RIGHT, Uplo.UPPER, trans, Diag.NON_UNIT, m, k, 1, t, ldt, work, ldwork)
            if n > k:
                bi.dgemm(NT, NT, m, n - k, k, -1, work, ldwork, v[k:], ldv, 1, c[k:], ldc)
            bi.dtrmm(RIGHT, Uplo.UPPER, NT, Diag.UNIT, m, k, 1, v, ldv, work, ldwork)
            C[:, :k] -= W
