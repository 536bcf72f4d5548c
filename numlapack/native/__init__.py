# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
native
======

Row-major LAPACK routines written against a pluggable BLAS.

The routines are grouped in families (one sub-module each) and combined into
a single :class:`Implementation`, so a routine calls its siblings through
``self`` and BLAS through ``self.blas``.

Example
-------
>>> import numpy as np
>>> from numlapack.native import Implementation
>>> impl = Implementation()
>>> a = np.array([[3.0, 1.0], [1.0, 3.0], [0.0, 2.0]]).ravel()
>>> tau, work = np.zeros(2), np.zeros(64)
>>> impl.dgeqrf(3, 2, a, 2, tau, work, len(work))
"""

from ..blas64 import Implementation as _Blas
from .auxiliary import Auxiliary
from .bidiag import Bidiag
from .dbdsqr import Dbdsqr
from .dgesvd import Dgesvd
from .dsteqr import Dsteqr
from .dsterf import Dsterf
from .general import check_matrix, check_vector
from .givens import Givens
from .householder import Householder
from .ilaenv import BlockConfig, Ilaenv
from .lq import LQ
from .qr import QR
from .small import Small


class Implementation(
    Ilaenv,
    Auxiliary,
    Small,
    Givens,
    Householder,
    QR,
    LQ,
    Bidiag,
    Dsteqr,
    Dsterf,
    Dbdsqr,
    Dgesvd,
):
    """
    The native LAPACK routines.

    Parameters
    ----------
    blas : object, optional
        BLAS backend; defaults to :class:`numlapack.blas64.Implementation`.
    config : BlockConfig, optional
        Block sizes served by ``ilaenv``.
    """

    def __init__(self, blas=None, config=None):
        self.blas = blas if blas is not None else _Blas()
        self.config = config if config is not None else BlockConfig()

    def __repr__(self):
        return f"{type(self).__name__}(config={self.config!r})"


__all__ = ["Implementation", "BlockConfig", "check_matrix", "check_vector"]
