# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""Singular values and vectors of a bidiagonal matrix by implicit QR iteration."""

import logging
import math

from ..enums import Direct, Pivot, Side, Uplo
from ..errors import PreconditionError
from .general import (
    bad_d,
    bad_e,
    bad_ld_c,
    bad_ld_u,
    bad_ld_vt,
    bad_uplo,
    bad_work,
    check_matrix,
    dlamchE,
    dlamchS,
    flag,
    n_lt0,
)

logger = logging.getLogger(__name__)

_maxitr = 6


class Dbdsqr:
    def dbdsqr(self, uplo, n, ncvt, nru, ncc, d, e, vt, ldvt, u, ldu, c, ldc, work) -> bool:
        """
        Compute the SVD B = Q S Pᵀ of the ``n x n`` upper or lower bidiagonal
        matrix B with diagonal ``d`` and off-diagonal ``e``.

        The rotations are accumulated into the caller's matrices:
        ``vt`` (n x ncvt) becomes Pᵀ VT, ``u`` (nru x n) becomes U Q and
        ``c`` (n x ncc) becomes Qᵀ C. On return d holds the singular values
        in decreasing order and e is destroyed.

        The implicit zero-shift QR of Demmel and Kahan is used whenever a
        shift would spoil the relative accuracy of the small singular values,
        the shifted QR otherwise. The dqds path of the reference routine is
        not used, so the values-only case runs the same iteration.

        ``len(work)`` must be at least ``4*(n-1)``. Returns False if the
        ``6*n*n`` inner-iteration limit was exceeded with off-diagonal
        entries left.
        """
        uplo = flag(Uplo, uplo, bad_uplo)
        if uplo is Uplo.ALL:
            raise PreconditionError(bad_uplo)
        if n < 0:
            raise PreconditionError(n_lt0)
        if ncvt < 0 or nru < 0 or ncc < 0:
            raise PreconditionError("lapack: negative number of vectors")
        if ldvt < max(1, ncvt):
            raise PreconditionError(bad_ld_vt)
        if ldu < 1 or (nru > 0 and ldu < n):
            raise PreconditionError(bad_ld_u)
        if ldc < max(1, ncc):
            raise PreconditionError(bad_ld_c)
        if n == 0:
            return True
        if len(d) < n:
            raise PreconditionError(bad_d)
        if len(e) < n - 1:
            raise PreconditionError(bad_e)
        check_matrix(n, ncvt, vt, ldvt)
        if nru > 0:
            check_matrix(nru, n, u, ldu)
        check_matrix(n, ncc, c, ldc)
        if len(work) < max(1, 4 * (n - 1)):
            raise PreconditionError(bad_work)

        if n > 1:
            ok = self._bdsqr_iterate(uplo, n, ncvt, nru, ncc, d, e, vt, ldvt, u, ldu, c, ldc, work)
            if not ok:
                return False
        self._bdsqr_finalize(n, ncvt, nru, ncc, d, vt, ldvt, u, ldu, c, ldc)
        return True

    def _bdsqr_iterate(self, uplo, n, ncvt, nru, ncc, d, e, vt, ldvt, u, ldu, c, ldc, work):
        nm1 = n - 1
        nm12 = nm1 + nm1
        nm13 = nm12 + nm1
        eps = dlamchE
        unfl = dlamchS

        if uplo is Uplo.LOWER:
            # Rotate to upper bidiagonal form.
            for i in range(n - 1):
                cs, sn, r = self.dlartg(d[i], e[i])
                d[i] = r
                e[i] = sn * d[i + 1]
                d[i + 1] = cs * d[i + 1]
                work[i] = cs
                work[nm1 + i] = sn
            if nru > 0:
                self.dlasr(Side.RIGHT, Pivot.VARIABLE, Direct.FORWARD, nru, n, work, work[nm1:], u, ldu)
            if ncc > 0:
                self.dlasr(Side.LEFT, Pivot.VARIABLE, Direct.FORWARD, n, ncc, work, work[nm1:], c, ldc)

        # Singular values are computed to relative accuracy tol.
        tolmul = max(10.0, min(100.0, eps ** -0.125))
        tol = tolmul * eps

        # Estimate the smallest singular value to set the threshold.
        sminoa = abs(d[0])
        if sminoa != 0:
            mu = sminoa
            for i in range(1, n):
                mu = abs(d[i]) * (mu / (mu + abs(e[i - 1])))
                sminoa = min(sminoa, mu)
                if sminoa == 0:
                    break
        sminoa = sminoa / math.sqrt(n)
        thresh = max(tol * sminoa, _maxitr * n * n * unfl)

        maxit = _maxitr * n * n
        iterations = 0
        oldll = -1
        oldm = -1
        idir = 0
        # m is the last index of the unconverged part.
        m = n - 1
        while m > 0:
            if iterations > maxit:
                unconverged = sum(1 for i in range(nm1) if e[i] != 0)
                if unconverged:
                    logger.debug("dbdsqr: %d off-diagonal entries unconverged", unconverged)
                    return False
                return True

            # Find the diagonal block d[ll:m+1] to work on.
            smax = abs(d[m])
            ll = -1
            for cand in range(m - 1, -1, -1):
                abss = abs(d[cand])
                abse = abs(e[cand])
                if abse <= thresh:
                    ll = cand
                    break
                smax = max(smax, abss, abse)
            if ll >= 0:
                e[ll] = 0
                if ll == m - 1:
                    # Bottom singular value converged.
                    m -= 1
                    continue
            ll += 1
            # e[ll:m] are non-zero, e[ll-1] is zero.

            if ll == m - 1:
                # 2x2 block, handled in closed form.
                sigmn, sigmx, sinr, cosr, sinl, cosl = self.dlasv2(d[m - 1], e[m - 1], d[m])
                d[m - 1] = sigmx
                e[m - 1] = 0
                d[m] = sigmn
                if ncvt > 0:
                    self.blas.drot(ncvt, vt[(m - 1) * ldvt:], 1, vt[m * ldvt:], 1, cosr, sinr)
                if nru > 0:
                    self.blas.drot(nru, u[m - 1:], ldu, u[m:], ldu, cosl, sinl)
                if ncc > 0:
                    self.blas.drot(ncc, c[(m - 1) * ldc:], 1, c[m * ldc:], 1, cosl, sinl)
                m -= 2
                continue

            # On a new block, chase from the larger end towards the smaller.
            if ll > oldm or m < oldll:
                idir = 1 if abs(d[ll]) >= abs(d[m]) else 2

            # Convergence tests.
            split = False
            if idir == 1:
                if abs(e[m - 1]) <= tol * abs(d[m]):
                    e[m - 1] = 0
                    continue
                mu = abs(d[ll])
                sminl = mu
                for l in range(ll, m):
                    if abs(e[l]) <= tol * mu:
                        e[l] = 0
                        split = True
                        break
                    mu = abs(d[l + 1]) * (mu / (mu + abs(e[l])))
                    sminl = min(sminl, mu)
            else:
                if abs(e[ll]) <= tol * abs(d[ll]):
                    e[ll] = 0
                    continue
                mu = abs(d[m])
                sminl = mu
                for l in range(m - 1, ll - 1, -1):
                    if abs(e[l]) <= tol * mu:
                        e[l] = 0
                        split = True
                        break
                    mu = abs(d[l]) * (mu / (mu + abs(e[l])))
                    sminl = min(sminl, mu)
            if split:
                continue
            oldll = ll
            oldm = m

            # A zero shift is used when a shift would ruin relative accuracy.
            if n * tol * (sminl / smax) <= max(eps, 0.01 * tol):
                shift = 0.0
            else:
                if idir == 1:
                    sll = abs(d[ll])
                    shift, _ = self.dlas2(d[m - 1], e[m - 1], d[m])
                else:
                    sll = abs(d[m])
                    shift, _ = self.dlas2(d[ll], e[ll], d[ll + 1])
                if sll > 0 and (shift / sll) ** 2 < eps:
                    shift = 0.0

            iterations += m - ll
            nrot = m - ll + 1
            if shift == 0:
                if idir == 1:
                    self._zero_shift_down(ll, m, d, e, work, nm1, nm12, nm13)
                    e_test = m - 1
                else:
                    self._zero_shift_up(ll, m, d, e, work, nm1, nm12, nm13)
                    e_test = ll
            else:
                if idir == 1:
                    self._shifted_down(ll, m, shift, d, e, work, nm1, nm12, nm13)
                    e_test = m - 1
                else:
                    self._shifted_up(ll, m, shift, d, e, work, nm1, nm12, nm13)
                    e_test = ll
            if idir == 1:
                self._bdsqr_rotate(
                    Direct.FORWARD, ll, nrot, (work, work[nm1:]), (work[nm12:], work[nm13:]),
                    ncvt, nru, ncc, vt, ldvt, u, ldu, c, ldc,
                )
            else:
                self._bdsqr_rotate(
                    Direct.BACKWARD, ll, nrot, (work[nm12:], work[nm13:]), (work, work[nm1:]),
                    ncvt, nru, ncc, vt, ldvt, u, ldu, c, ldc,
                )
            if abs(e[e_test]) <= thresh:
                e[e_test] = 0
        return True

    def _bdsqr_rotate(self, direct, ll, nrot, right, left, ncvt, nru, ncc, vt, ldvt, u, ldu, c, ldc):
        """Apply one sweep's saved rotations to Vᵀ (``right``) and to U and C (``left``)."""
        if ncvt > 0:
            self.dlasr(Side.LEFT, Pivot.VARIABLE, direct, nrot, ncvt, right[0], right[1], vt[ll * ldvt:], ldvt)
        if nru > 0:
            self.dlasr(Side.RIGHT, Pivot.VARIABLE, direct, nru, nrot, left[0], left[1], u[ll:], ldu)
        if ncc > 0:
            self.dlasr(Side.LEFT, Pivot.VARIABLE, direct, nrot, ncc, left[0], left[1], c[ll * ldc:], ldc)

    def _zero_shift_down(self, ll, m, d, e, work, nm1, nm12, nm13):
        # Chase the bulge from top to bottom.
        cs = 1.0
        oldcs = 1.0
        oldsn = 0.0
        for i in range(ll, m):
            cs, sn, r = self.dlartg(d[i] * cs, e[i])
            if i > ll:
                e[i - 1] = oldsn * r
            oldcs, oldsn, d[i] = self.dlartg(oldcs * r, d[i + 1] * sn)
            work[i - ll] = cs
            work[i - ll + nm1] = sn
            work[i - ll + nm12] = oldcs
            work[i - ll + nm13] = oldsn
        h = d[m] * cs
        d[m] = h * oldcs
        e[m - 1] = h * oldsn

    def _zero_shift_up(self, ll, m, d, e, work, nm1, nm12, nm13):
        # Chase the bulge from bottom to top.
        cs = 1.0
        oldcs = 1.0
        oldsn = 0.0
        for i in range(m, ll, -1):
            cs, sn, r = self.dlartg(d[i] * cs, e[i - 1])
            if i < m:
                e[i] = oldsn * r
            oldcs, oldsn, d[i] = self.dlartg(oldcs * r, d[i - 1] * sn)
            work[i - ll - 1] = cs
            work[i - ll - 1 + nm1] = -sn
            work[i - ll - 1 + nm12] = oldcs
            work[i - ll - 1 + nm13] = -oldsn
        h = d[ll] * cs
        d[ll] = h * oldcs
        e[ll] = h * oldsn

    def _shifted_down(self, ll, m, shift, d, e, work, nm1, nm12, nm13):
        f = (abs(d[ll]) - shift) * (math.copysign(1.0, d[ll]) + shift / d[ll])
        g = e[ll]
        for i in range(ll, m):
            cosr, sinr, r = self.dlartg(f, g)
            if i > ll:
                e[i - 1] = r
            f = cosr * d[i] + sinr * e[i]
            e[i] = cosr * e[i] - sinr * d[i]
            g = sinr * d[i + 1]
            d[i + 1] = cosr * d[i + 1]
            cosl, sinl, r = self.dlartg(f, g)
            d[i] = r
            f = cosl * e[i] + sinl * d[i + 1]
            d[i + 1] = cosl * d[i + 1] - sinl * e[i]
            if i < m - 1:
                g = sinl * e[i + 1]
                e[i + 1] = cosl * e[i + 1]
            work[i - ll] = cosr
            work[i - ll + nm1] = sinr
            work[i - ll + nm12] = cosl
            work[i - ll + nm13] = sinl
        e[m - 1] = f

    def _shifted_up(self, ll, m, shift, d, e, work, nm1, nm12, nm13):
        f = (abs(d[m]) - shift) * (math.copysign(1.0, d[m]) + shift / d[m])
        g = e[m - 1]
        for i in range(m, ll, -1):
            cosr, sinr, r = self.dlartg(f, g)
            if i < m:
                e[i] = r
            f = cosr * d[i] + sinr * e[i - 1]
            e[i - 1] = cosr * e[i - 1] - sinr * d[i]
            g = sinr * d[i - 1]
            d[i - 1] = cosr * d[i - 1]
            cosl, sinl, r = self.dlartg(f, g)
            d[i] = r
            f = cosl * e[i - 1] + sinl * d[i - 1]
            d[i - 1] = cosl * d[i - 1] - sinl * e[i - 1]
            if i > ll + 1:
                g = sinl * e[i - 2]
                e[i - 2] = cosl * e[i - 2]
            work[i - ll - 1] = cosr
            work[i - ll - 1 + nm1] = -sinr
            work[i - ll - 1 + nm12] = cosl
            work[i - ll - 1 + nm13] = -sinl
        e[ll] = f

    def _bdsqr_finalize(self, n, ncvt, nru, ncc, d, vt, ldvt, u, ldu, c, ldc):
        bi = self.blas
        # Make the singular values non-negative.
        for i in range(n):
            if d[i] < 0:
                d[i] = -d[i]
                if ncvt > 0:
                    bi.dscal(ncvt, -1, vt[i * ldvt:], 1)
        # Sort decreasingly with one swap per position.
        for i in range(n - 1):
            last = n - 1 - i
            isub = 0
            smin = d[0]
            for j in range(1, last + 1):
                if d[j] <= smin:
                    isub = j
                    smin = d[j]
            if isub != last:
                d[isub] = d[last]
                d[last] = smin
                if ncvt > 0:
                    bi.dswap(ncvt, vt[isub * ldvt:], 1, vt[last * ldvt:], 1)
                if nru > 0:
                    bi.dswap(nru, u[isub:], ldu, u[last:], ldu)
                if ncc > 0:
                    bi.dswap(ncc, c[isub * ldc:], 1, c[last * ldc:], 1)
