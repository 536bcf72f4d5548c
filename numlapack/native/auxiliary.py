# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""Scaling, norms, copies and sorting on flat buffers."""

import math

import numpy as np

from ..blas64 import matrix
from ..enums import MatrixNorm, Sort, Uplo
from ..errors import PreconditionError
from .general import (
    bad_d,
    bad_e,
    bad_norm,
    bad_sort,
    bad_uplo,
    check_matrix,
    dlamchS,
    flag,
    n_lt0,
    nan_cfrom,
    nan_cto,
    zero_cfrom,
)


def _sum_squares(x: np.ndarray) -> float:
    """Overflow-safe ``sqrt(sum(x**2))``; NaN propagates."""
    if x.size == 0:
        return 0.0
    scale = float(np.max(np.abs(x)))
    if scale == 0.0 or not np.isfinite(scale):
        return scale
    return scale * math.sqrt(float(np.sum((x / scale) ** 2)))


class Auxiliary:
    def dlapy2(self, x: float, y: float) -> float:
        """sqrt(x**2 + y**2) without destructive underflow or overflow."""
        return math.hypot(x, y)

    def dlascl(self, cfrom, cto, m, n, a, lda):
        """
        Multiply the ``m x n`` matrix A by ``cto/cfrom`` without over- or
        underflow, in as many safe steps as needed.
        """
        if cfrom == 0:
            raise PreconditionError(zero_cfrom)
        if math.isnan(cfrom):
            raise PreconditionError(nan_cfrom)
        if math.isnan(cto):
            raise PreconditionError(nan_cto)
        check_matrix(m, n, a, lda)
        if m == 0 or n == 0:
            return

        A = matrix(a, m, n, lda)
        smlnum = dlamchS
        bignum = 1 / smlnum
        cfromc = cfrom
        ctoc = cto
        while True:
            cfrom1 = cfromc * smlnum
            if cfrom1 == cfromc:
                # cfromc is an inf, multiply by a correctly signed zero or nan.
                mul = ctoc / cfromc
                done = True
            else:
                cto1 = ctoc / bignum
                if cto1 == ctoc:
                    # ctoc is zero or inf; the scaling is exact.
                    mul = ctoc
                    done = True
                    cfromc = 1.0
                elif abs(cfrom1) > abs(ctoc) and ctoc != 0:
                    mul = smlnum
                    done = False
                    cfromc = cfrom1
                elif abs(cto1) > abs(cfromc):
                    mul = bignum
                    done = False
                    ctoc = cto1
                else:
                    mul = ctoc / cfromc
                    done = True
            A *= mul
            if done:
                return

    def dlanst(self, norm, n, d, e) -> float:
        """Norm of the symmetric tridiagonal matrix with diagonal d and off-diagonal e."""
        norm = flag(MatrixNorm, norm, bad_norm)
        if n < 0:
            raise PreconditionError(n_lt0)
        if n == 0:
            return 0.0
        if len(d) < n:
            raise PreconditionError(bad_d)
        if len(e) < n - 1:
            raise PreconditionError(bad_e)
        dv = np.asarray(d[:n])
        ev = np.asarray(e[: n - 1])

        if norm is MatrixNorm.MAX_ABS:
            return float(np.max(np.abs(np.concatenate((dv, ev)))))
        if norm in (MatrixNorm.MAX_COLUMN_SUM, MatrixNorm.MAX_ROW_SUM):
            # symmetric, so both norms coincide
            if n == 1:
                return abs(float(dv[0]))
            sums = np.abs(dv)
            sums[:-1] += np.abs(ev)
            sums[1:] += np.abs(ev)
            return float(np.max(sums))
        return math.hypot(_sum_squares(dv), math.sqrt(2.0) * _sum_squares(ev))

    def dlange(self, norm, m, n, a, lda, work=None) -> float:
        """
        Norm of a general ``m x n`` matrix.

        ``work`` is accepted for signature compatibility; the column sums
        needed by ``MAX_COLUMN_SUM`` are formed by NumPy.
        """
        norm = flag(MatrixNorm, norm, bad_norm)
        check_matrix(m, n, a, lda)
        if m == 0 or n == 0:
            return 0.0
        A = matrix(a, m, n, lda)
        if norm is MatrixNorm.MAX_ABS:
            return float(np.max(np.abs(A)))
        if norm is MatrixNorm.MAX_COLUMN_SUM:
            return float(np.max(np.sum(np.abs(A), axis=0)))
        if norm is MatrixNorm.MAX_ROW_SUM:
            return float(np.max(np.sum(np.abs(A), axis=1)))
        return _sum_squares(A.ravel())

    def dlaset(self, uplo, m, n, alpha, beta, a, lda):
        """
        Set the off-diagonal part selected by ``uplo`` to alpha and the
        diagonal to beta.
        """
        uplo = flag(Uplo, uplo, bad_uplo)
        check_matrix(m, n, a, lda)
        if m == 0 or n == 0:
            return
        A = matrix(a, m, n, lda)
        if uplo is Uplo.UPPER:
            A[np.triu_indices(m, 1, n)] = alpha
        elif uplo is Uplo.LOWER:
            A[np.tril_indices(m, -1, n)] = alpha
        else:
            A[...] = alpha
        k = min(m, n)
        A[np.arange(k), np.arange(k)] = beta

    def dlacpy(self, uplo, m, n, a, lda, b, ldb):
        """Copy the triangle (or all) of A selected by ``uplo`` into B."""
        uplo = flag(Uplo, uplo, bad_uplo)
        check_matrix(m, n, a, lda)
        check_matrix(m, n, b, ldb)
        if m == 0 or n == 0:
            return
        A = matrix(a, m, n, lda)
        B = matrix(b, m, n, ldb)
        if uplo is Uplo.UPPER:
            idx = np.triu_indices(m, 0, n)
            B[idx] = A[idx]
        elif uplo is Uplo.LOWER:
            idx = np.tril_indices(m, 0, n)
            B[idx] = A[idx]
        else:
            B[...] = A

    def dlasrt(self, s, n, d):
        s = flag(Sort, s, bad_sort)
        if n < 0:
            raise PreconditionError(n_lt0)
        if len(d) < n:
            raise PreconditionError(bad_d)
        if n < 2:
            return
        d[:n] = np.sort(d[:n])
        if s is Sort.DECREASING:
            d[:n] = d[:n][::-1].copy()
