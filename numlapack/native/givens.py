# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""Plane (Givens) rotations."""

import math
from typing import Tuple

from ..blas64 import matrix
from ..enums import Direct, Pivot, Side
from ..errors import PreconditionError
from .general import (
    bad_direct,
    bad_pivot,
    bad_side,
    check_matrix,
    dlamchS,
    flag,
    short_work,
)

_safmin = dlamchS
_safmax = 1 / dlamchS
_rtmin = math.sqrt(_safmin)
_rtmax = math.sqrt(_safmax / 2)


class Givens:
    def dlartg(self, f: float, g: float) -> Tuple[float, float, float]:
        """
        Generate a plane rotation so that

            [ cs  sn] [f]   [r]
            [-sn  cs] [g] = [0]

        with ``cs >= 0`` and ``r`` carrying the sign of ``f``. Intermediate
        quantities are scaled so that neither ``f**2`` nor ``g**2`` can
        overflow or underflow.

        Returns
        -------
        cs, sn, r : float
        """
        if g == 0:
            return 1.0, 0.0, f
        if f == 0:
            return 0.0, math.copysign(1.0, g), abs(g)
        f1 = abs(f)
        g1 = abs(g)
        if _rtmin < f1 < _rtmax and _rtmin < g1 < _rtmax:
            d = math.sqrt(f * f + g * g)
            cs = f1 / d
            r = math.copysign(d, f)
            return cs, g / r, r
        u = min(_safmax, max(_safmin, f1, g1))
        fs = f / u
        gs = g / u
        d = math.sqrt(fs * fs + gs * gs)
        cs = abs(fs) / d
        r = math.copysign(d, f)
        sn = gs / r
        return cs, sn, r * u

    def dlasr(self, side, pivot, direct, m, n, c, s, a, lda):
        """
        Apply a sequence of plane rotations P = P(z-1) ... P(1) (forward) or
        P = P(1) ... P(z-1) (backward) to the ``m x n`` matrix A, from the
        left (A := P A, z = m) or the right (A := A Pᵀ, z = n).

        Rotation k is ``[[c[k], s[k]], [-s[k], c[k]]]`` acting in the plane
        selected by ``pivot``.
        """
        side = flag(Side, side, bad_side)
        pivot = flag(Pivot, pivot, bad_pivot)
        direct = flag(Direct, direct, bad_direct)
        check_matrix(m, n, a, lda)
        if m == 0 or n == 0:
            return
        z = m if side is Side.LEFT else n
        if len(c) < z - 1 or len(s) < z - 1:
            raise PreconditionError(short_work)

        A = matrix(a, m, n, lda)
        if side is Side.RIGHT:
            # A Pᵀ is (P Aᵀ)ᵀ, so rotate the columns of the transposed view.
            A = A.T

        order = range(z - 1) if direct is Direct.FORWARD else range(z - 2, -1, -1)
        for j in order:
            ct = c[j]
            st = s[j]
            if ct == 1 and st == 0:
                continue
            if pivot is Pivot.VARIABLE:
                top, bot = A[j], A[j + 1]
            elif pivot is Pivot.TOP:
                top, bot = A[0], A[j + 1]
            else:
                top, bot = A[j], A[z - 1]
            if pivot is Pivot.BOTTOM:
                tmp = top.copy()
                top[...] = st * bot + ct * tmp
                bot[...] = ct * bot - st * tmp
            else:
                tmp = bot.copy()
                bot[...] = ct * tmp - st * top
                top[...] = st * tmp + ct * top
