# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np

from .errors import PreconditionError
from .native import Implementation

# Shared by the high-level helpers; it carries no mutable state.
default_impl = Implementation()


def query_work(routine, *args) -> np.ndarray:
    """
    Run ``routine(*args, work, -1)`` and return a workspace of the optimal
    size it reports.
    """
    query = np.zeros(1)
    routine(*args, query, -1)
    return np.zeros(max(1, int(query[0])))


def as_general_copy(A: np.ndarray):
    """Return a private row-major ``float64`` copy of the 2-D array ``A`` and its shape."""
    A = np.array(A, dtype=np.float64, order="C", copy=True)
    if A.ndim != 2:
        raise PreconditionError("Expected a 2-D array.")
    return A, A.shape


def random_nonsingular_upper(n, low=-100, high=100, seed=None) -> np.ndarray:
    """
    Build a matrix U that is upper-triangular with random entries
    everywhere and put only non-zero values on its diagonal

    Returns
    -------
    Matrix with float64 dtype
    """
    rng = np.random.default_rng(seed)
    U = rng.uniform(low, high, size=(n, n))
    # enforce upper-triangular
    U = np.triu(U)
    # replace any accidental zeros on the diagonal
    diag = rng.uniform(low if low != 0 else 1, high, size=n)
    U[np.diag_indices(n)] = diag
    return np.asarray(U)


def random_tridiagonal(n, seed=None):
    """
    Random symmetric tridiagonal matrix as its diagonal ``d`` (length n)
    and off-diagonal ``e`` (length n-1), plus the dense ``(n, n)`` form.
    """
    rng = np.random.default_rng(seed)
    d = rng.standard_normal(n)
    e = rng.standard_normal(max(0, n - 1))
    T = np.diag(d)
    if n > 1:
        T += np.diag(e, 1) + np.diag(e, -1)
    return d, e, T
