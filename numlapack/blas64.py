# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
blas64
======

NumPy-backed BLAS (Level 1, 2 and 3) over flat, row-major ``float64``
buffers.

Every routine follows the reference calling convention: a matrix is a 1-D
ndarray plus ``(rows, cols, ld)`` and element ``(i, j)`` lives at
``a[i*ld + j]``; a vector is a 1-D ndarray plus an increment, which may be
negative (then element 0 sits at the far end of the buffer). Sub-matrices are
passed as slices such as ``a[i*lda + j:]``; NumPy slices are views, so results
land in the caller's storage.

The native LAPACK layer receives an instance of :class:`Implementation` as an
injected dependency; any object exposing the same methods can stand in for it.

The module-level functions (``dot``, ``nrm2``, ``gemv``, ...) take
:class:`General` and :class:`Vector` values instead of argument lists.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.lib.stride_tricks import as_strided

from .enums import Diag, Side, Transpose, Uplo
from .errors import PreconditionError

# ---------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------
bad_transpose = "blas: illegal transpose"
bad_uplo = "blas: illegal uplo"
bad_diag = "blas: illegal diag"
bad_side = "blas: illegal side"
m_lt0 = "blas: m < 0"
n_lt0 = "blas: n < 0"
k_lt0 = "blas: k < 0"
bad_ld_a = "blas: bad leading dimension of A"
bad_ld_b = "blas: bad leading dimension of B"
bad_ld_c = "blas: bad leading dimension of C"
zero_inc_x = "blas: zero x index increment"
zero_inc_y = "blas: zero y index increment"
short_x = "blas: insufficient length of x"
short_y = "blas: insufficient length of y"
short_a = "blas: insufficient length of a"
short_b = "blas: insufficient length of b"
short_c = "blas: insufficient length of c"


def _flag(kind, value, msg):
    try:
        return kind(value)
    except ValueError:
        raise PreconditionError(msg) from None


def vector(x: np.ndarray, n: int, inc: int) -> np.ndarray:
    """Return the logical length-``n`` view of ``x`` with increment ``inc``."""
    if n <= 0:
        return x[:0]
    if inc > 0:
        return x[: (n - 1) * inc + 1 : inc]
    step = -inc
    return x[: (n - 1) * step + 1 : step][::-1]


def matrix(a: np.ndarray, m: int, n: int, ld: int) -> np.ndarray:
    """Return the ``m x n`` row-major view of ``a`` with leading dimension ``ld``."""
    if m <= 0 or n <= 0:
        return np.zeros((max(m, 0), max(n, 0)))
    item = a.strides[0]
    return as_strided(a, shape=(m, n), strides=(ld * item, item))


def _check_vec(n, x, inc, zero_msg, short_msg):
    if inc == 0:
        raise PreconditionError(zero_msg)
    if n > 0 and len(x) < 1 + (n - 1) * abs(inc):
        raise PreconditionError(short_msg)


def _check_mat(rows, cols, a, ld, short_msg):
    if rows > 0 and cols > 0 and len(a) < (rows - 1) * ld + cols:
        raise PreconditionError(short_msg)


def _triangle(t: np.ndarray, uplo: Uplo, diag: Diag) -> np.ndarray:
    if diag is Diag.UNIT:
        k = 1 if uplo is Uplo.UPPER else -1
        tri = np.triu(t, k) if uplo is Uplo.UPPER else np.tril(t, k)
        return tri + np.eye(t.shape[0])
    return np.triu(t) if uplo is Uplo.UPPER else np.tril(t)


@dataclass(frozen=True)
class General:
    """A general row-major matrix stored in a flat buffer."""

    rows: int
    cols: int
    data: np.ndarray
    stride: int

    @classmethod
    def from_array(cls, A) -> "General":
        """
        Wrap a 2-D array. Memory is shared when ``A`` is already a
        C-contiguous ``float64`` array, otherwise a copy is wrapped.
        """
        A = np.ascontiguousarray(A, dtype=np.float64)
        if A.ndim != 2:
            raise PreconditionError("blas: General needs a 2-D array")
        m, n = A.shape
        return cls(m, n, A.reshape(-1), max(1, n))

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "General":
        return cls(rows, cols, np.zeros(max(1, rows * cols)), max(1, cols))

    def view(self) -> np.ndarray:
        return matrix(self.data, self.rows, self.cols, self.stride)

    def to_array(self) -> np.ndarray:
        return np.array(self.view())


@dataclass(frozen=True)
class Vector:
    """A strided vector; ``inc`` may be negative."""

    n: int
    data: np.ndarray
    inc: int = 1

    def view(self) -> np.ndarray:
        return vector(self.data, self.n, self.inc)


class Implementation:
    """Reference-semantics BLAS on NumPy arrays."""

    # -----------------------------------------------------------------
    # Level 1
    # -----------------------------------------------------------------
    def ddot(self, n, x, incx, y, incy) -> float:
        if n < 0:
            raise PreconditionError(n_lt0)
        _check_vec(n, x, incx, zero_inc_x, short_x)
        _check_vec(n, y, incy, zero_inc_y, short_y)
        if n == 0:
            return 0.0
        return float(vector(x, n, incx) @ vector(y, n, incy))

    def dnrm2(self, n, x, incx) -> float:
        """Euclidean norm, scaled so it neither overflows nor underflows."""
        if incx == 0:
            raise PreconditionError(zero_inc_x)
        if n < 1 or incx < 0:
            return 0.0
        _check_vec(n, x, incx, zero_inc_x, short_x)
        xv = np.abs(vector(x, n, incx))
        scale = float(np.max(xv))
        if scale == 0.0 or not np.isfinite(scale):
            return scale
        return scale * float(np.sqrt(np.sum((xv / scale) ** 2)))

    def dasum(self, n, x, incx) -> float:
        if incx == 0:
            raise PreconditionError(zero_inc_x)
        if n < 1 or incx < 0:
            return 0.0
        _check_vec(n, x, incx, zero_inc_x, short_x)
        return float(np.sum(np.abs(vector(x, n, incx))))

    def dscal(self, n, alpha, x, incx):
        if incx == 0:
            raise PreconditionError(zero_inc_x)
        if n < 1 or incx < 0:
            return
        _check_vec(n, x, incx, zero_inc_x, short_x)
        vector(x, n, incx)[...] *= alpha

    def daxpy(self, n, alpha, x, incx, y, incy):
        if n < 0:
            raise PreconditionError(n_lt0)
        _check_vec(n, x, incx, zero_inc_x, short_x)
        _check_vec(n, y, incy, zero_inc_y, short_y)
        if n == 0 or alpha == 0:
            return
        vector(y, n, incy)[...] += alpha * vector(x, n, incx)

    def dcopy(self, n, x, incx, y, incy):
        if n < 0:
            raise PreconditionError(n_lt0)
        _check_vec(n, x, incx, zero_inc_x, short_x)
        _check_vec(n, y, incy, zero_inc_y, short_y)
        if n == 0:
            return
        vector(y, n, incy)[...] = vector(x, n, incx)

    def dswap(self, n, x, incx, y, incy):
        if n < 0:
            raise PreconditionError(n_lt0)
        _check_vec(n, x, incx, zero_inc_x, short_x)
        _check_vec(n, y, incy, zero_inc_y, short_y)
        if n == 0:
            return
        xv = vector(x, n, incx)
        yv = vector(y, n, incy)
        tmp = yv.copy()
        yv[...] = xv
        xv[...] = tmp

    def drot(self, n, x, incx, y, incy, c, s):
        """Apply the plane rotation ``[c s; -s c]`` to the pairs ``(x_i, y_i)``."""
        if n < 0:
            raise PreconditionError(n_lt0)
        _check_vec(n, x, incx, zero_inc_x, short_x)
        _check_vec(n, y, incy, zero_inc_y, short_y)
        if n == 0:
            return
        xv = vector(x, n, incx)
        yv = vector(y, n, incy)
        xs = xv.copy()
        xv[...] = c * xs + s * yv
        yv[...] = c * yv - s * xs

    def drotg(self, a: float, b: float) -> Tuple[float, float, float, float]:
        """
        Construct a Givens rotation zeroing ``b``.

        Returns
        -------
        c, s : rotation
        r : the value replacing ``a``
        z : reconstruction parameter
        """
        roe = b
        if abs(a) > abs(b):
            roe = a
        scale = abs(a) + abs(b)
        if scale == 0:
            return 1.0, 0.0, 0.0, 0.0
        r = scale * float(np.sqrt((a / scale) ** 2 + (b / scale) ** 2))
        r = float(np.copysign(1.0, roe)) * r
        c = a / r
        s = b / r
        z = 1.0
        if abs(a) > abs(b):
            z = s
        if abs(b) >= abs(a) and c != 0:
            z = 1 / c
        return c, s, r, z

    # -----------------------------------------------------------------
    # Level 2
    # -----------------------------------------------------------------
    def dgemv(self, trans, m, n, alpha, a, lda, x, incx, beta, y, incy):
        """y = alpha * op(A) x + beta * y, with A m x n."""
        trans = _flag(Transpose, trans, bad_transpose)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        lenx, leny = (n, m) if trans is Transpose.NO_TRANS else (m, n)
        _check_vec(lenx, x, incx, zero_inc_x, short_x)
        _check_vec(leny, y, incy, zero_inc_y, short_y)
        if m == 0 or n == 0 or (alpha == 0 and beta == 1):
            return
        _check_mat(m, n, a, lda, short_a)

        yv = vector(y, leny, incy)
        if beta == 0:
            yv[...] = 0.0
        elif beta != 1:
            yv[...] *= beta
        if alpha == 0:
            return
        A = matrix(a, m, n, lda)
        if trans is Transpose.TRANS:
            A = A.T
        yv[...] += alpha * (A @ vector(x, lenx, incx))

    def dger(self, m, n, alpha, x, incx, y, incy, a, lda):
        """A += alpha * x yᵀ."""
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        _check_vec(m, x, incx, zero_inc_x, short_x)
        _check_vec(n, y, incy, zero_inc_y, short_y)
        if m == 0 or n == 0 or alpha == 0:
            return
        _check_mat(m, n, a, lda, short_a)
        A = matrix(a, m, n, lda)
        A += alpha * np.outer(vector(x, m, incx), vector(y, n, incy))

    def dtrmv(self, uplo, trans, diag, n, a, lda, x, incx):
        """x = op(T) x for the triangle of A selected by ``uplo``."""
        uplo = _flag(Uplo, uplo, bad_uplo)
        trans = _flag(Transpose, trans, bad_transpose)
        diag = _flag(Diag, diag, bad_diag)
        if uplo is Uplo.ALL:
            raise PreconditionError(bad_uplo)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        _check_vec(n, x, incx, zero_inc_x, short_x)
        if n == 0:
            return
        _check_mat(n, n, a, lda, short_a)
        T = _triangle(matrix(a, n, n, lda), uplo, diag)
        if trans is Transpose.TRANS:
            T = T.T
        xv = vector(x, n, incx)
        xv[...] = T @ xv

    def dtrsv(self, uplo, trans, diag, n, a, lda, x, incx):
        """Solve op(T) x = b in place; no singularity test is performed."""
        uplo = _flag(Uplo, uplo, bad_uplo)
        trans = _flag(Transpose, trans, bad_transpose)
        diag = _flag(Diag, diag, bad_diag)
        if uplo is Uplo.ALL:
            raise PreconditionError(bad_uplo)
        if n < 0:
            raise PreconditionError(n_lt0)
        if lda < max(1, n):
            raise PreconditionError(bad_ld_a)
        _check_vec(n, x, incx, zero_inc_x, short_x)
        if n == 0:
            return
        _check_mat(n, n, a, lda, short_a)
        T = _triangle(matrix(a, n, n, lda), uplo, diag)
        if trans is Transpose.TRANS:
            T = T.T
        xv = vector(x, n, incx)
        xv[...] = np.linalg.solve(T, xv)

    # -----------------------------------------------------------------
    # Level 3
    # -----------------------------------------------------------------
    def dgemm(self, trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc):
        """C = alpha * op(A) op(B) + beta * C, with C m x n and inner size k."""
        trans_a = _flag(Transpose, trans_a, bad_transpose)
        trans_b = _flag(Transpose, trans_b, bad_transpose)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        if k < 0:
            raise PreconditionError(k_lt0)
        ar, ac = (m, k) if trans_a is Transpose.NO_TRANS else (k, m)
        br, bc = (k, n) if trans_b is Transpose.NO_TRANS else (n, k)
        if lda < max(1, ac):
            raise PreconditionError(bad_ld_a)
        if ldb < max(1, bc):
            raise PreconditionError(bad_ld_b)
        if ldc < max(1, n):
            raise PreconditionError(bad_ld_c)
        if m == 0 or n == 0 or ((alpha == 0 or k == 0) and beta == 1):
            return
        _check_mat(m, n, c, ldc, short_c)

        C = matrix(c, m, n, ldc)
        if beta == 0:
            C[...] = 0.0
        elif beta != 1:
            C *= beta
        if alpha == 0 or k == 0:
            return
        _check_mat(ar, ac, a, lda, short_a)
        _check_mat(br, bc, b, ldb, short_b)
        A = matrix(a, ar, ac, lda)
        B = matrix(b, br, bc, ldb)
        if trans_a is Transpose.TRANS:
            A = A.T
        if trans_b is Transpose.TRANS:
            B = B.T
        C += alpha * (A @ B)

    def _tri_args(self, side, uplo, trans_a, diag, m, n, lda, ldb):
        side = _flag(Side, side, bad_side)
        uplo = _flag(Uplo, uplo, bad_uplo)
        trans_a = _flag(Transpose, trans_a, bad_transpose)
        diag = _flag(Diag, diag, bad_diag)
        if uplo is Uplo.ALL:
            raise PreconditionError(bad_uplo)
        if m < 0:
            raise PreconditionError(m_lt0)
        if n < 0:
            raise PreconditionError(n_lt0)
        k = m if side is Side.LEFT else n
        if lda < max(1, k):
            raise PreconditionError(bad_ld_a)
        if ldb < max(1, n):
            raise PreconditionError(bad_ld_b)
        return side, uplo, trans_a, diag, k

    def dtrmm(self, side, uplo, trans_a, diag, m, n, alpha, a, lda, b, ldb):
        """B = alpha * op(T) B (left) or alpha * B op(T) (right)."""
        side, uplo, trans_a, diag, k = self._tri_args(
            side, uplo, trans_a, diag, m, n, lda, ldb
        )
        if m == 0 or n == 0:
            return
        _check_mat(k, k, a, lda, short_a)
        _check_mat(m, n, b, ldb, short_b)
        B = matrix(b, m, n, ldb)
        if alpha == 0:
            B[...] = 0.0
            return
        T = _triangle(matrix(a, k, k, lda), uplo, diag)
        if trans_a is Transpose.TRANS:
            T = T.T
        if side is Side.LEFT:
            B[...] = alpha * (T @ B)
        else:
            B[...] = alpha * (B @ T)

    def dtrsm(self, side, uplo, trans_a, diag, m, n, alpha, a, lda, b, ldb):
        """Solve op(T) X = alpha B (left) or X op(T) = alpha B (right) in B."""
        side, uplo, trans_a, diag, k = self._tri_args(
            side, uplo, trans_a, diag, m, n, lda, ldb
        )
        if m == 0 or n == 0:
            return
        _check_mat(k, k, a, lda, short_a)
        _check_mat(m, n, b, ldb, short_b)
        B = matrix(b, m, n, ldb)
        if alpha == 0:
            B[...] = 0.0
            return
        T = _triangle(matrix(a, k, k, lda), uplo, diag)
        if trans_a is Transpose.TRANS:
            T = T.T
        if side is Side.LEFT:
            B[...] = np.linalg.solve(T, alpha * B)
        else:
            B[...] = np.linalg.solve(T.T, alpha * B.T).T


# ---------------------------------------------------------------------
# Structured front end: the same routines on General / Vector values
# ---------------------------------------------------------------------
neg_inc = "blas: negative vector increment"

_blas = Implementation()


def _nonneg(x: Vector):
    if x.inc < 0:
        raise PreconditionError(neg_inc)


def dot(x: Vector, y: Vector) -> float:
    return _blas.ddot(x.n, x.data, x.inc, y.data, y.inc)


def nrm2(x: Vector) -> float:
    """Euclidean norm of ``x``; a negative increment is rejected."""
    _nonneg(x)
    return _blas.dnrm2(x.n, x.data, x.inc)


def asum(x: Vector) -> float:
    _nonneg(x)
    return _blas.dasum(x.n, x.data, x.inc)


def scal(alpha: float, x: Vector):
    _nonneg(x)
    _blas.dscal(x.n, alpha, x.data, x.inc)


def axpy(alpha: float, x: Vector, y: Vector):
    _blas.daxpy(x.n, alpha, x.data, x.inc, y.data, y.inc)


def swap(x: Vector, y: Vector):
    _blas.dswap(x.n, x.data, x.inc, y.data, y.inc)


def rot(x: Vector, y: Vector, c: float, s: float):
    _blas.drot(x.n, x.data, x.inc, y.data, y.inc, c, s)


def gemv(trans, alpha: float, a: General, x: Vector, beta: float, y: Vector):
    """y = alpha * op(A) x + beta * y."""
    _blas.dgemv(trans, a.rows, a.cols, alpha, a.data, a.stride, x.data, x.inc, beta, y.data, y.inc)


def ger(alpha: float, x: Vector, y: Vector, a: General):
    """A += alpha * x yᵀ."""
    _blas.dger(a.rows, a.cols, alpha, x.data, x.inc, y.data, y.inc, a.data, a.stride)
