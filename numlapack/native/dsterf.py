# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Eigenvalues of a symmetric tridiagonal matrix with the square-root-free
Pal-Walker-Kahan variant of the QL/QR algorithm.
"""

import logging
import math

from ..enums import MatrixNorm, Sort
from ..errors import PreconditionError
from .general import bad_d, bad_e, dlamchE, dlamchS, n_lt0

logger = logging.getLogger(__name__)

_eps = dlamchE
_eps2 = _eps * _eps
_safmin = dlamchS
_safmax = 1 / _safmin
_ssfmax = math.sqrt(_safmax) / 3
_ssfmin = math.sqrt(_safmin) / _eps2


class Dsterf:
    max_sweeps = 30

    def dsterf(self, n, d, e) -> bool:
        """
        Compute all eigenvalues of the symmetric tridiagonal matrix with
        diagonal ``d`` and off-diagonal ``e``.

        On return d holds the eigenvalues in ascending order and e is
        destroyed. Returns False if the max_sweeps*n limit was reached with
        off-diagonal entries left; d is then partial and unsorted.
        """
        if n < 0:
            raise PreconditionError(n_lt0)
        if n == 0:
            return True
        if len(d) < n:
            raise PreconditionError(bad_d)
        if len(e) < n - 1:
            raise PreconditionError(bad_e)
        if n == 1:
            return True

        nmaxit = self.max_sweeps * n
        jtot = 0
        l1 = 0
        while l1 < n:
            if l1 > 0:
                e[l1 - 1] = 0
            m = l1
            while m < n - 1:
                if abs(e[m]) <= math.sqrt(abs(d[m])) * math.sqrt(abs(d[m + 1])) * _eps:
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
            scale = None
            if anorm > _ssfmax:
                scale = _ssfmax
            elif anorm < _ssfmin:
                scale = _ssfmin
            if scale is not None:
                self.dlascl(anorm, scale, lend - l + 1, 1, d[l:], 1)
                self.dlascl(anorm, scale, lend - l, 1, e[l:], 1)

            # The iteration works on the squared off-diagonal.
            for i in range(l, lend):
                e[i] = e[i] * e[i]

            if abs(d[lend]) < abs(d[l]):
                lend = lsv
                l = lendsv

            if lend >= l:
                jtot = self._pwk_ql(l, lend, d, e, jtot, nmaxit)
            else:
                jtot = self._pwk_qr(l, lend, d, e, jtot, nmaxit)

            if scale is not None:
                self.dlascl(scale, anorm, lendsv - lsv + 1, 1, d[lsv:], 1)

            if jtot >= nmaxit:
                unconverged = sum(1 for i in range(n - 1) if e[i] != 0)
                if unconverged:
                    logger.debug(
                        "dsterf: %d off-diagonal entries unconverged after %d sweeps",
                        unconverged, jtot,
                    )
                    return False
                break

        self.dlasrt(Sort.INCREASING, n, d)
        return True

    def _pwk_ql(self, l, lend, d, e, jtot, nmaxit):
        while True:
            m = l
            while m < lend:
                if abs(e[m]) <= _eps2 * abs(d[m] * d[m + 1]):
                    break
                m += 1
            if m < lend:
                e[m] = 0
            p = d[l]
            if m == l:
                d[l] = p
                l += 1
                if l <= lend:
                    continue
                return jtot
            if m == l + 1:
                rte = math.sqrt(e[l])
                d[l], d[l + 1] = self.dlae2(d[l], rte, d[l + 1])
                e[l] = 0
                l += 2
                if l <= lend:
                    continue
                return jtot
            if jtot == nmaxit:
                return jtot
            jtot += 1

            rte = math.sqrt(e[l])
            sigma = (d[l + 1] - p) / (2 * rte)
            r = self.dlapy2(sigma, 1)
            sigma = p - rte / (sigma + math.copysign(r, sigma))

            c = 1.0
            s = 0.0
            gamma = d[m] - sigma
            p = gamma * gamma
            for i in range(m - 1, l - 1, -1):
                bb = e[i]
                r = p + bb
                if i != m - 1:
                    e[i + 1] = s * r
                oldc = c
                c = p / r
                s = bb / r
                oldgam = gamma
                alpha = d[i]
                gamma = c * (alpha - sigma) - s * oldgam
                d[i + 1] = oldgam + (alpha - gamma)
                if c != 0:
                    p = (gamma * gamma) / c
                else:
                    p = oldc * bb
            e[l] = s * p
            d[l] = sigma + gamma

    def _pwk_qr(self, l, lend, d, e, jtot, nmaxit):
        while True:
            m = l
            while m > lend:
                if abs(e[m - 1]) <= _eps2 * abs(d[m] * d[m - 1]):
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
                rte = math.sqrt(e[l - 1])
                d[l], d[l - 1] = self.dlae2(d[l], rte, d[l - 1])
                e[l - 1] = 0
                l -= 2
                if l >= lend:
                    continue
                return jtot
            if jtot == nmaxit:
                return jtot
            jtot += 1

            rte = math.sqrt(e[l - 1])
            sigma = (d[l - 1] - p) / (2 * rte)
            r = self.dlapy2(sigma, 1)
            sigma = p - rte / (sigma + math.copysign(r, sigma))

            c = 1.0
            s = 0.0
            gamma = d[m] - sigma
            p = gamma * gamma
            for i in range(m, l):
                bb = e[i]
                r = p + bb
                if i != m:
                    e[i - 1] = s * r
                oldc = c
                c = p / r
                s = bb / r
                oldgam = gamma
                alpha = d[i + 1]
                gamma = c * (alpha - sigma) - s * oldgam
                d[i] = oldgam + (alpha - gamma)
                if c != 0:
                    p = (gamma * gamma) / c
                else:
                    p = oldc * bb
            e[l - 1] = s * p
            d[l] = sigma + gamma
