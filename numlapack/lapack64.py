# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
lapack64
========

Convenience wrappers that take :class:`numlapack.blas64.General` values
instead of ``(rows, cols, data, stride)`` argument lists.

Data is shared with the caller: every wrapper works in place on the
``General``'s buffer, exactly like the native routine it forwards to.
The routines are served by an explicit backend object, so two wrappers
with different block configurations can coexist.

Example
-------
>>> import numpy as np
>>> from numlapack.blas64 import General
>>> from numlapack.lapack64 import Lapack64
>>> lp = Lapack64()
>>> a = General.from_array(np.random.randn(6, 4))
>>> tau = np.zeros(4)
>>> work = np.zeros(1)
>>> lp.geqrf(a, tau, work, -1)
>>> work = np.zeros(int(work[0]))
>>> lp.geqrf(a, tau, work, len(work))
"""

import numpy as np

from .blas64 import General
from .enums import EigComp
from .native import Implementation
from .native.general import bad_comp_z, flag


class Lapack64:
    """
    Structured front end to a LAPACK implementation.

    Parameters
    ----------
    impl : object, optional
        Anything exposing the native routines; defaults to
        :class:`numlapack.native.Implementation`.
    """

    def __init__(self, impl=None):
        self.impl = impl if impl is not None else Implementation()

    def geqrf(self, a: General, tau, work, lwork):
        """
        QR factorization of ``a`` in place: R in the upper triangle, the
        reflectors below it and their scales in ``tau``.
        """
        self.impl.dgeqrf(a.rows, a.cols, a.data, a.stride, tau, work, lwork)

    def gelqf(self, a: General, tau, work, lwork):
        """LQ factorization of ``a`` in place; see :meth:`geqrf`."""
        self.impl.dgelqf(a.rows, a.cols, a.data, a.stride, tau, work, lwork)

    def ormqr(self, side, trans, a: General, tau, c: General, work, lwork):
        """
        Overwrite ``c`` with op(Q) C or C op(Q), Q being held in ``a`` and
        ``tau`` as returned by :meth:`geqrf`.
        """
        self.impl.dormqr(
            side, trans, c.rows, c.cols, len(tau), a.data, a.stride, tau,
            c.data, c.stride, work, lwork,
        )

    def orgqr(self, a: General, tau, work, lwork):
        """Overwrite ``a`` with the first ``a.cols`` columns of Q."""
        self.impl.dorgqr(a.rows, a.cols, len(tau), a.data, a.stride, tau, work, lwork)

    def gesvd(self, jobu, jobvt, a: General, u: General, vt: General, s, work, lwork) -> bool:
        """
        SVD of ``a``. ``u`` and ``vt`` are only referenced when the matching
        job asks for them; pass ``General.zeros(0, 0)`` otherwise.
        """
        return self.impl.dgesvd(
            jobu, jobvt, a.rows, a.cols, a.data, a.stride, s,
            u.data, u.stride, vt.data, vt.stride, work, lwork,
        )

    def steqr(self, compz, d, e, z: General, work) -> bool:
        """
        Eigen-decomposition of the symmetric tridiagonal matrix (d, e);
        see :meth:`numlapack.native.Implementation.dsteqr`.
        """
        n = len(d)
        if flag(EigComp, compz, bad_comp_z) is EigComp.VALUES_ONLY:
            return self.impl.dsteqr(compz, n, d, e, np.zeros(1), 1, work)
        return self.impl.dsteqr(compz, n, d, e, z.data, z.stride, work)

    def sterf(self, d, e) -> bool:
        """Eigenvalues of the symmetric tridiagonal matrix (d, e), ascending."""
        return self.impl.dsterf(len(d), d, e)
