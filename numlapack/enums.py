# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Option flags shared by the BLAS backend and the native LAPACK routines.

Every flag is an ``Enum`` whose value is the single character used by the
Fortran reference, so ``Side("L")`` and ``Side.LEFT`` are interchangeable.
"""

from enum import Enum


class Side(Enum):
    LEFT = "L"
    RIGHT = "R"


class Transpose(Enum):
    NO_TRANS = "N"
    TRANS = "T"


class Uplo(Enum):
    UPPER = "U"
    LOWER = "L"
    ALL = "A"


class Diag(Enum):
    NON_UNIT = "N"
    UNIT = "U"


class Direct(Enum):
    """Order in which elementary reflectors or rotations are applied."""

    FORWARD = "F"
    BACKWARD = "B"


class StoreV(Enum):
    """How the vectors of a block reflector are laid out in ``v``."""

    COLUMN_WISE = "C"
    ROW_WISE = "R"


class Pivot(Enum):
    """Plane used by the k-th rotation of a ``dlasr`` sequence."""

    VARIABLE = "V"  # plane (k, k+1)
    TOP = "T"  # plane (1, k+1)
    BOTTOM = "B"  # plane (k, z)


class EigComp(Enum):
    """Eigenvector request for ``dsteqr``."""

    VALUES_ONLY = "N"
    ORIGINAL = "V"  # z holds the reducing orthogonal matrix on entry
    TRIDIAGONAL = "I"  # z is initialised to the identity


class SVDJob(Enum):
    ALL = "A"
    STORE = "S"
    OVERWRITE = "O"
    NONE = "N"


class MatrixNorm(Enum):
    MAX_ABS = "M"
    MAX_COLUMN_SUM = "O"
    MAX_ROW_SUM = "I"
    FROBENIUS = "F"


class Sort(Enum):
    INCREASING = "I"
    DECREASING = "D"


class ApplyOrtho(Enum):
    """Which factor of a bidiagonal reduction ``dorgbr`` generates."""

    APPLY_P = "P"
    APPLY_Q = "Q"
