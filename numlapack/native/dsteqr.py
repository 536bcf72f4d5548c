# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""Symmetric tridiagonal eigensolver by implicit QL/QR iteration."""

import logging
import math

from ..enums import Direct, EigComp, MatrixNorm, Pivot, Side, Sort, Uplo
from ..errors import PreconditionError
from .general import (
    bad_comp_z,
    bad_d,
    bad_e,
    bad_ld_z,
    bad_work,
    check_matrix,
    dlamchE,
    dlamchS,
    flag,
    n_lt0,
)

logger = logging.getLogger(__name__)

_eps = dlamchE
_eps2 = _eps * _eps
_safmin = dlamchS
_safmax = 1 / _safmin
# Blocks whose max norm leaves [ssfmin, ssfmax] are scaled into it.
_ssfmax = math.sqrt(_safmax) / 3
_ssfmin = math.sqrt(_safmin) / _eps2

_SCALE_NONE, _SCALE_DOWN, _SCALE_UP = 0, 1, 2


class Dsteqr:
    # QL/QR sweeps allowed per row of the matrix.
    max_sweeps = 30

    def dsteqr(self, compz, n, d, e, z, ldz, work) -> bool:
        """
        Compute all eigenvalues and, optionally, eigenvectors of the
        symmetric tridiagonal matrix with diagonal ``d`` and off-diagonal
        ``e``.

        Parameters
        ----------
        compz : EigComp or str
            ``VALUES_ONLY``: eigenvalues only, z is not referenced.
            ``ORIGINAL``: z holds the orthogonal matrix that reduced the
            original matrix to tridiagonal form; on return it holds the
            eigenvectors of the original matrix.
            ``TRIDIAGONAL``: z is set to the unit matrix first, so on return
            it holds the eigenvectors of the tridiagonal matrix.
        d : ndarray
            Length n; overwritten by the eigenvalues in ascending order.
        e : ndarray
            Length n-1; destroyed.
        z : ndarray
            ``n x n`` with leading dimension ``ldz``; column j pairs with d[j].
        work : ndarray
            Length ``max(1, 2n-2)`` when vectors are wanted.

        Returns
        -------
        ok : bool
            False if the max_sweeps*n sweep limit was reached before every
            off-diagonal entry converged to zero. d and z are then partial
            and unsorted.
        """
        compz = flag(EigComp, compz, bad_comp_z)
        if n < 0:
            raise PreconditionError(n_lt0)
        if len(d) < n:
            raise PreconditionError(bad_d)
        if len(e) < max(0, n - 1):
            raise PreconditionError(bad_e)
        wantz = compz is not EigComp.VALUES_ONLY
        if wantz:
            if ldz < max(1, n):
                raise PreconditionError(bad_ld_z)
            if len(work) < max(1, 2 * n - 2):
                raise PreconditionError(bad_work)
            check_matrix(n, n, z, ldz)

        if n == 0:
            return True
        if n == 1:
            if compz is EigComp.TRIDIAGONAL:
                z[0] = 1
            return True

        bi = self.blas
        if compz is EigComp.TRIDIAGONAL:
            self.dlaset(Uplo.ALL, n, n, 0, 1, z, ldz)

        nmaxit = self.max_sweeps * n
        jtot = 0
        l1 = 0
        nm1 = n - 1
        while l1 < n:
            if l1 > 0:
                e[l1 - 1] = 0
            # Split off the next unreduced block d[l:lend+1].
            m = l1
            while m < nm1:
                tst = abs(e[m])
                if tst == 0:
                    break
                if tst <= math.sqrt(abs(d[m])) * math.sqrt(abs(d[m + 1])) * _eps:
                    e[m] = 0
                    break
                m += 1
            l = l1
            lsv = l
            lend = m
            lendsv = lend
            l1 = m + 1
            if lend == l:
                continue

            anorm = self.dlanst(MatrixNorm.MAX_ABS, lend - l + 1, d[l:], e[l:])
            if anorm == 0:
                continue
            iscale = _SCALE_NONE
            if anorm > _ssfmax:
                iscale = _SCALE_DOWN
                self.dlascl(anorm, _ssfmax, lend - l + 1, 1, d[l:], 1)
                self.dlascl(anorm, _ssfmax, lend - l, 1, e[l:], 1)
            elif anorm < _ssfmin:
                iscale = _SCALE_UP
                self.dlascl(anorm, _ssfmin, lend - l + 1, 1, d[l:], 1)
                self.dlascl(anorm, _ssfmin, lend - l, 1, e[l:], 1)

            # Chase from the end with the smaller diagonal entry.
            if abs(d[lend]) < abs(d[l]):
                lend = lsv
                l = lendsv

            if lend > l:
                jtot = self._ql(n, l, lend, d, e, z, ldz, work, wantz, jtot, nmaxit)
            else:
                jtot = self._qr(n, l, lend, d, e, z, ldz, work, wantz, jtot, nmaxit)

            if iscale == _SCALE_DOWN:
                self.dlascl(_ssfmax, anorm, lendsv - lsv + 1, 1, d[lsv:], 1)
                self.dlascl(_ssfmax, anorm, lendsv - lsv, 1, e[lsv:], 1)
            elif iscale == _SCALE_UP:
                self.dlascl(_ssfmin, anorm, lendsv - lsv + 1, 1, d[lsv:], 1)
                self.dlascl(_ssfmin, anorm, lendsv - lsv, 1, e[lsv:], 1)

            if jtot >= nmaxit:
                unconverged = sum(1 for i in range(nm1) if e[i] != 0)
                if unconverged:
                    logger.debug(
                        "dsteqr: %d off-diagonal entries unconverged after %d sweeps",
                        unconverged, jtot,
                    )
                    return False
                break

        if not wantz:
            self.dlasrt(Sort.INCREASING, n, d)
            return True
        # Selection sort keeps the eigenvector columns paired with d.
        for i in range(n - 1):
            k = i
            p = d[i]
            for j in range(i + 1, n):
                if d[j] < p:
                    k = j
                    p = d[j]
            if k != i:
                d[k] = d[i]
                d[i] = p
                bi.dswap(n, z[i:], ldz, z[k:], ldz)
        return True

    def _ql(self, n, l, lend, d, e, z, ldz, work, wantz, jtot, nmaxit):
        """QL iteration on the block d[l:lend+1]; returns the updated sweep count."""
        while True:
            # Look for a small subdiagonal element.
            m = l
            while m < lend:
                tst = abs(e[m]) ** 2
                if tst <= (_eps2 * abs(d[m])) * abs(d[m + 1]) + _safmin:
                    break
                m += 1
            if m < lend:
                e[m] = 0
            p = d[l]
            if m == l:
                # Eigenvalue found.
                d[l] = p
                l += 1
                if l <= lend:
                    continue
                return jtot
            if m == l + 1:
                # 2x2 block, solved in closed form.
                if wantz:
                    rt1, rt2, c, s = self.dlaev2(d[l], e[l], d[l + 1])
                    work[l] = c
                    work[n - 1 + l] = s
                    self.dlasr(
                        Side.RIGHT, Pivot.VARIABLE, Direct.BACKWARD,
                        n, 2, work[l:], work[n - 1 + l:], z[l:], ldz,
                    )
                else:
                    rt1, rt2 = self.dlae2(d[l], e[l], d[l + 1])
                d[l] = rt1
                d[l + 1] = rt2
                e[l] = 0
                l += 2
                if l <= lend:
                    continue
                return jtot
            if jtot == nmaxit:
                return jtot
            jtot += 1

            # Wilkinson-style shift from the leading 2x2.
            g = (d[l + 1] - p) / (2 * e[l])
            r = self.dlapy2(g, 1)
            g = d[m] - p + e[l] / (g + math.copysign(r, g))
            s = 1.0
            c = 1.0
            p = 0.0
            for i in range(m - 1, l - 1, -1):
                f = s * e[i]
                b = c * e[i]
                c, s, r = self.dlartg(g, f)
                if i != m - 1:
                    e[i + 1] = r
                g = d[i + 1] - p
                r = (d[i] - g) * s + 2 * c * b
                p = s * r
                d[i + 1] = g + p
                g = c * r - b
                if wantz:
                    work[i] = c
                    work[n - 1 + i] = -s
            if wantz:
                self.dlasr(
                    Side.RIGHT, Pivot.VARIABLE, Direct.BACKWARD,
                    n, m - l + 1, work[l:], work[n - 1 + l:], z[l:], ldz,
                )
            d[l] -= p
            e[l] = g

    def _qr(self, n, l, lend, d, e, z, ldz, work, wantz, jtot, nmaxit):
        """QR iteration on the block d[lend:l+1]; returns the updated sweep count."""
        while True:
            m = l
            while m > lend:
                tst = abs(e[m - 1]) ** 2
                if tst <= (_eps2 * abs(d[m])) * abs(d[m - 1]) + _safmin:
                    break
                m -= 1
            if m > lend:
                e[m - 1] = 0
            p = d[l]
            if m == l:
                d[l] = p
                l -= 1
                if l >= lend:
                    continue
                return jtot
            if m == l - 1:
                if wantz:
                    rt1, rt2, c, s = self.dlaev2(d[l - 1], e[l - 1], d[l])
                    work[m] = c
                    work[n - 1 + m] = s
                    self.dlasr(
                        Side.RIGHT, Pivot.VARIABLE, Direct.FORWARD,
                        n, 2, work[m:], work[n - 1 + m:], z[l - 1:], ldz,
                    )
                else:
                    rt1, rt2 = self.dlae2(d[l - 1], e[l - 1], d[l])
                d[l - 1] = rt1
                d[l] = rt2
                e[l - 1] = 0
                l -= 2
                if l >= lend:
                    continue
                return jtot
            if jtot == nmaxit:
                return jtot
            jtot += 1

            g = (d[l - 1] - p) / (2 * e[l - 1])
            r = self.dlapy2(g, 1)
            g = d[m] - p + e[l - 1] / (g + math.copysign(r, g))
            s = 1.0
            c = 1.0
            p = 0.0
            for i in range(m, l):
                f = s * e[i]
                b = c * e[i]
                c, s, r = self.dlartg(g, f)
                if i != m:
                    e[i - 1] = r
                g = d[i] - p
                r = (d[i + 1] - g) * s + 2 * c * b
                p = s * r
                d[i] = g + p
                g = c * r - b
                if wantz:
                    work[i] = c
                    work[n - 1 + i] = s
            if wantz:
                self.dlasr(
                    Side.RIGHT, Pivot.VARIABLE, Direct.FORWARD,
                    n, l - m + 1, work[m:], work[n - 1 + m:], z[m:], ldz,
                )
            d[l] -= p
            e[l - 1] = g
