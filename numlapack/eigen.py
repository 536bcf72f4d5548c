# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .enums import EigComp
from .errors import ConvergenceError, PreconditionError
from .utils import default_impl

logger = logging.getLogger(__name__)


def _tridiagonal_copy(d, e):
    d = np.array(d, dtype=np.float64, copy=True).ravel()
    e = np.array(e, dtype=np.float64, copy=True).ravel()
    n = d.shape[0]
    if e.shape[0] != max(0, n - 1):
        raise PreconditionError("e must have length len(d) - 1.")
    return d, e, n


def _raise_unconverged(routine, d, e, n, impl):
    unconverged = int(np.count_nonzero(e[: max(0, n - 1)]))
    logger.warning("%s: %d off-diagonal entries failed to converge", routine, unconverged)
    raise ConvergenceError(
        f"{routine} did not converge",
        routine=routine,
        iterations=impl.max_sweeps * n,
        unconverged=unconverged,
    )


def eigh_tridiagonal(d, e, eigvals_only: bool = False, impl=None):
    """
    Eigen-decomposition of the real symmetric tridiagonal matrix T with
    diagonal ``d`` and off-diagonal ``e`` by implicit QL/QR iteration.

    Parameters
    ----------
    d : (n,) array_like
        Diagonal of T.
    e : (n-1,) array_like
        Sub- (= super-) diagonal of T.
    eigvals_only : bool
        Skip the eigenvectors.

    Returns
    -------
    w : (n,) ndarray
        Eigenvalues in ascending order.
    Z : (n, n) ndarray
        Orthonormal eigenvectors; column j pairs with w[j]. Not returned
        when ``eigvals_only`` is set.

    Raises
    ------
    ConvergenceError
        When the ``impl.max_sweeps * n`` sweep limit is reached.
    """
    impl = impl or default_impl
    d, e, n = _tridiagonal_copy(d, e)
    if eigvals_only:
        ok = impl.dsteqr(EigComp.VALUES_ONLY, n, d, e, np.zeros(1), 1, np.zeros(1))
        if not ok:
            _raise_unconverged("dsteqr", d, e, n, impl)
        return d

    Z = np.zeros((n, n))
    z = Z.reshape(-1) if n else np.zeros(1)
    work = np.zeros(max(1, 2 * n - 2))
    ok = impl.dsteqr(EigComp.TRIDIAGONAL, n, d, e, z, max(1, n), work)
    if not ok:
        _raise_unconverged("dsteqr", d, e, n, impl)
    return d, Z


def eigvalsh_tridiagonal(d, e, impl=None) -> np.ndarray:
    """
    Eigenvalues of the real symmetric tridiagonal matrix (d, e), in
    ascending order, with the square-root-free QL/QR variant.
    """
    impl = impl or default_impl
    d, e, n = _tridiagonal_copy(d, e)
    if not impl.dsterf(n, d, e):
        _raise_unconverged("dsterf", d, e, n, impl)
    return d
