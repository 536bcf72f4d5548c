# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Exception hierarchy for numlapack.

Two kinds of failure exist and they are deliberately kept apart:

- ``PreconditionError`` is a programming error on the caller's side
  (bad dimension, stride, buffer length, workspace length or flag). The
  native routines raise it before touching any buffer and it must never be
  caught and retried.
- Numerical non-convergence is *not* an exception at the native level: the
  iterative solvers return ``ok = False``. The high-level helpers turn that
  flag into ``ConvergenceError``.
"""

from typing import Optional


class LapackError(Exception):
    """Base exception for all numlapack errors."""

    pass


class PreconditionError(LapackError, ValueError):
    """
    A routine was called with arguments that violate its contract.

    Subclasses ``ValueError`` so callers written against plain ``ValueError``
    keep working.
    """

    pass


class ConvergenceError(LapackError):
    """
    An iterative routine hit its iteration cap.

    Attributes:
        routine: Name of the native routine that failed (e.g. ``"dsteqr"``)
        iterations: Iteration cap that was reached, if known
        unconverged: Number of off-diagonal entries left non-zero
    """

    def __init__(
        self,
        message: str,
        routine: Optional[str] = None,
        iterations: Optional[int] = None,
        unconverged: Optional[int] = None,
    ):
        super().__init__(message)
        self.routine = routine
        self.iterations = iterations
        self.unconverged = unconverged
