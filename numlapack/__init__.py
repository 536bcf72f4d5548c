# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
numlapack
=========

Dense linear algebra in the LAPACK style, written with NumPy: QR and LQ
factorizations, bidiagonal reduction, symmetric tridiagonal eigensolvers
and the full SVD driver, all working in place on flat row-major buffers.

Public API
~~~~~~~~~~
- Decompositions
    - `householder_qr`
    - `svd`, `pca`
    - `eigh_tridiagonal`, `eigvalsh_tridiagonal`
- Linear systems
    - `least_squares_householder_qr`
- Low-level layers
    - `numlapack.native.Implementation` (``dgeqrf``, ``dgesvd``, ...)
    - `numlapack.lapack64.Lapack64` (same routines on ``General`` views)
    - `numlapack.blas64.Implementation` (the BLAS they run on)
- Errors
    - `LapackError`, `PreconditionError`, `ConvergenceError`

Everything else lives in sub-modules and is **not** considered part of the
stable interface.

Example
-------
>>> import numpy as np, numlapack as nl
>>> A = np.random.randn(5, 3)
>>> Q, R = nl.householder_qr(A)
>>> np.allclose(Q @ R, A)
True
"""

from importlib.metadata import version as _pkg_version

from .blas64 import General, Vector
from .eigen import eigh_tridiagonal, eigvalsh_tridiagonal
from .enums import (
    ApplyOrtho,
    Diag,
    Direct,
    EigComp,
    MatrixNorm,
    Pivot,
    Side,
    Sort,
    StoreV,
    SVDJob,
    Transpose,
    Uplo,
)
from .errors import ConvergenceError, LapackError, PreconditionError
from .lapack64 import Lapack64
from .native import BlockConfig, Implementation

# ---------------------------------------------------------------------
# Re-export the high-level functions users are expected to call.
# Each of these names is implemented in one of the internal sub-modules.
# ---------------------------------------------------------------------
from .qr import householder_qr, least_squares_householder_qr, random_nonsingular_qr
from .svd import pca, svd
from .utils import random_nonsingular_upper, random_tridiagonal

__all__ = [
    "householder_qr",
    "least_squares_householder_qr",
    "random_nonsingular_qr",
    "svd",
    "pca",
    "eigh_tridiagonal",
    "eigvalsh_tridiagonal",
    "Implementation",
    "BlockConfig",
    "Lapack64",
    "General",
    "Vector",
    "LapackError",
    "PreconditionError",
    "ConvergenceError",
    "Side",
    "Transpose",
    "Uplo",
    "Diag",
    "Direct",
    "StoreV",
    "Pivot",
    "EigComp",
    "SVDJob",
    "MatrixNorm",
    "Sort",
    "ApplyOrtho",
    "random_nonsingular_upper",
    "random_tridiagonal",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show numlapack”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except Exception:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Optional: lightweight default logging config so users see warnings
# only if they deliberately enable them.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
