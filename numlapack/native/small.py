# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""Closed-form 2x2 symmetric eigenproblems and triangular SVDs."""

import math
from typing import Tuple

from .general import dlamchE


def _sign(a: float, b: float) -> float:
    """|a| with the sign of b, as Fortran SIGN."""
    return math.copysign(abs(a), b)


class Small:
    def dlae2(self, a: float, b: float, c: float) -> Tuple[float, float]:
        """
        Eigenvalues of the symmetric matrix [[a, b], [b, c]].

        Returns
        -------
        rt1 : float
            Eigenvalue of larger absolute value.
        rt2 : float
            Eigenvalue of smaller absolute value.
        """
        sm = a + c
        df = a - c
        adf = abs(df)
        tb = b + b
        ab = abs(tb)
        acmx, acmn = (a, c) if abs(a) > abs(c) else (c, a)
        if adf > ab:
            rt = adf * math.sqrt(1 + (ab / adf) ** 2)
        elif adf < ab:
            rt = ab * math.sqrt(1 + (adf / ab) ** 2)
        else:
            rt = ab * math.sqrt(2)

        if sm < 0:
            rt1 = 0.5 * (sm - rt)
            rt2 = (acmx / rt1) * acmn - (b / rt1) * b
        elif sm > 0:
            rt1 = 0.5 * (sm + rt)
            rt2 = (acmx / rt1) * acmn - (b / rt1) * b
        else:
            rt1 = 0.5 * rt
            rt2 = -0.5 * rt
        return rt1, rt2

    def dlaev2(self, a: float, b: float, c: float) -> Tuple[float, float, float, float]:
        """
        Eigen-decomposition of the symmetric matrix [[a, b], [b, c]].

        Returns ``(rt1, rt2, cs1, sn1)`` where ``(cs1, sn1)`` is the unit
        right eigenvector for ``rt1``, so that

            [ cs1  sn1] [a b] [cs1 -sn1]   [rt1  0 ]
            [-sn1  cs1] [b c] [sn1  cs1] = [ 0  rt2]
        """
        sm = a + c
        df = a - c
        adf = abs(df)
        tb = b + b
        ab = abs(tb)
        acmx, acmn = (a, c) if abs(a) > abs(c) else (c, a)
        if adf > ab:
            rt = adf * math.sqrt(1 + (ab / adf) ** 2)
        elif adf < ab:
            rt = ab * math.sqrt(1 + (adf / ab) ** 2)
        else:
            rt = ab * math.sqrt(2)

        if sm < 0:
            rt1 = 0.5 * (sm - rt)
            sgn1 = -1
            rt2 = (acmx / rt1) * acmn - (b / rt1) * b
        elif sm > 0:
            rt1 = 0.5 * (sm + rt)
            sgn1 = 1
            rt2 = (acmx / rt1) * acmn - (b / rt1) * b
        else:
            rt1 = 0.5 * rt
            rt2 = -0.5 * rt
            sgn1 = 1

        # eigenvector
        if df >= 0:
            cs = df + rt
            sgn2 = 1
        else:
            cs = df - rt
            sgn2 = -1
        if abs(cs) > ab:
            ct = -tb / cs
            sn1 = 1 / math.sqrt(1 + ct * ct)
            cs1 = ct * sn1
        elif ab == 0:
            cs1 = 1.0
            sn1 = 0.0
        else:
            tn = -cs / tb
            cs1 = 1 / math.sqrt(1 + tn * tn)
            sn1 = tn * cs1
        if sgn1 == sgn2:
            tn = cs1
            cs1 = -sn1
            sn1 = tn
        return rt1, rt2, cs1, sn1

    def dlas2(self, f: float, g: float, h: float) -> Tuple[float, float]:
        """Singular values ``(ssmin, ssmax)`` of the triangle [[f, g], [0, h]]."""
        fa = abs(f)
        ga = abs(g)
        ha = abs(h)
        fhmn = min(fa, ha)
        fhmx = max(fa, ha)
        if fhmn == 0:
            if fhmx == 0:
                return 0.0, ga
            big = max(fhmx, ga)
            return 0.0, big * math.sqrt(1 + (min(fhmx, ga) / big) ** 2)
        if ga < fhmx:
            as_ = 1 + fhmn / fhmx
            at = (fhmx - fhmn) / fhmx
            au = (ga / fhmx) ** 2
            c = 2 / (math.sqrt(as_ * as_ + au) + math.sqrt(at * at + au))
            return fhmn * c, fhmx / c
        au = fhmx / ga
        if au == 0:
            # avoid possible harmful underflow if the exponent range is asymmetric
            return (fhmn * fhmx) / ga, ga
        as_ = 1 + fhmn / fhmx
        at = (fhmx - fhmn) / fhmx
        c = 1 / (math.sqrt(1 + (as_ * au) ** 2) + math.sqrt(1 + (at * au) ** 2))
        ssmin = (fhmn * c) * au
        return ssmin + ssmin, ga / (c + c)

    def dlasv2(self, f: float, g: float, h: float):
        """
        SVD of the upper triangular 2x2 matrix [[f, g], [0, h]].

            [ csl  snl] [f g] [csr -snr]   [ssmax   0  ]
            [-snl  csl] [0 h] [snr  csr] = [  0   ssmin]

        Returns
        -------
        ssmin, ssmax, snr, csr, snl, csl
        """
        ft = f
        fa = abs(ft)
        ht = h
        ha = abs(h)
        # pmax points to the largest element in absolute value: 1 = f, 2 = g, 3 = h
        pmax = 1
        swap = ha > fa
        if swap:
            pmax = 3
            ft, ht = ht, ft
            fa, ha = ha, fa
        gt = g
        ga = abs(gt)
        if ga == 0:
            ssmin = ha
            ssmax = fa
            clt = 1.0
            crt = 1.0
            slt = 0.0
            srt = 0.0
        else:
            gasmal = True
            if ga > fa:
                pmax = 2
                if fa / ga < dlamchE:
                    # very large g
                    gasmal = False
                    ssmax = ga
                    if ha > 1:
                        ssmin = fa / (ga / ha)
                    else:
                        ssmin = (fa / ga) * ha
                    clt = 1.0
                    slt = ht / gt
                    srt = 1.0
                    crt = ft / gt
            if gasmal:
                d = fa - ha
                l = 1.0 if d == fa else d / fa
                m = gt / ft
                t = 2 - l
                mm = m * m
                tt = t * t
                s = math.sqrt(tt + mm)
                r = abs(m) if l == 0 else math.sqrt(l * l + mm)
                a = 0.5 * (s + r)
                ssmin = ha / a
                ssmax = fa * a
                if mm == 0:
                    if l == 0:
                        t = _sign(2, ft) * _sign(1, gt)
                    else:
                        t = gt / _sign(d, ft) + m / t
                else:
                    t = (m / (s + t) + m / (r + l)) * (1 + a)
                l = math.sqrt(t * t + 4)
                crt = 2 / l
                srt = t / l
                clt = (crt + srt * m) / a
                slt = (ht / ft) * srt / a

        if swap:
            csl, snl, csr, snr = srt, crt, slt, clt
        else:
            csl, snl, csr, snr = clt, slt, crt, srt

        # correct the signs of ssmax and ssmin
        if pmax == 1:
            tsign = _sign(1, csr) * _sign(1, csl) * _sign(1, f)
        elif pmax == 2:
            tsign = _sign(1, snr) * _sign(1, csl) * _sign(1, g)
        else:
            tsign = _sign(1, snr) * _sign(1, snl) * _sign(1, h)
        ssmax = _sign(ssmax, tsign)
        ssmin = _sign(ssmin, tsign * _sign(1, f) * _sign(1, h))
        return ssmin, ssmax, snr, csr, snl, csl
