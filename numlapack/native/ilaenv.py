# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""Tuning parameters for the blocked routines."""

from dataclasses import dataclass

from ..errors import PreconditionError


@dataclass(frozen=True)
class BlockConfig:
    """
    Block sizes consulted by the blocked routines through ``ilaenv``.

    Parameters
    ----------
    nb : int
        Preferred panel width (ispec 1).
    nbmin : int
        Smallest panel width worth blocking for (ispec 2).
    nx : int
        Crossover point below which the unblocked code runs (ispec 3).
    crossover : float
        ``Dgesvd`` pre-reduces with QR/LQ once ``max(m, n)`` reaches
        ``crossover * min(m, n)`` (ispec 6).
    """

    nb: int = 32
    nbmin: int = 2
    nx: int = 128
    crossover: float = 1.6

    def __post_init__(self):
        if self.nb < 1 or self.nbmin < 1:
            raise PreconditionError("lapack: block sizes must be positive")
        if self.nx < 0:
            raise PreconditionError("lapack: negative crossover point")
        if self.crossover < 1:
            raise PreconditionError("lapack: crossover ratio below one")


class Ilaenv:
    config: BlockConfig

    def ilaenv(self, ispec, name, opts, n1, n2, n3, n4) -> int:
        """
        Return the tuning parameter ``ispec`` for routine ``name``.

        The same configuration is served to every routine; ``name`` and
        ``opts`` are kept for call-site readability.
        """
        cfg = self.config
        if ispec == 1:
            return cfg.nb
        if ispec == 2:
            return cfg.nbmin
        if ispec == 3:
            return cfg.nx
        if ispec == 6:
            return int(min(n1, n2) * cfg.crossover)
        raise PreconditionError(f"lapack: unsupported ilaenv ispec {ispec}")
