# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""Machine constants, error messages and precondition checks."""

from ..errors import PreconditionError

# ---------------------------------------------------------------------
# Machine parameters for IEEE double precision
# ---------------------------------------------------------------------
dlamchE = 2.0**-53  # relative machine epsilon (unit roundoff)
dlamchB = 2.0  # radix
dlamchP = dlamchB * dlamchE  # eps * base
dlamchS = 2.0**-1022  # safe minimum, 1/dlamchS does not overflow

# ---------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------
bad_apply_ortho = "lapack: bad ApplyOrtho"
bad_comp_z = "lapack: bad EigComp"
bad_d = "lapack: d has insufficient length"
bad_direct = "lapack: bad direct"
bad_e = "lapack: e has insufficient length"
bad_job_u = "lapack: bad SVDJob for U"
bad_job_vt = "lapack: bad SVDJob for Vᵀ"
bad_job_overwrite = "lapack: both jobu and jobvt are SVDJob.OVERWRITE"
bad_ld_a = "lapack: stride less than number of columns"
bad_ld_c = "lapack: bad leading dimension of C"
bad_ld_t = "lapack: bad leading dimension of T"
bad_ld_u = "lapack: bad leading dimension of U"
bad_ld_vt = "lapack: bad leading dimension of Vᵀ"
bad_ld_work = "lapack: insufficient working array stride"
bad_ld_z = "lapack: bad leading dimension of Z"
bad_norm = "lapack: bad norm"
bad_pivot = "lapack: bad pivot"
bad_s = "lapack: s has insufficient length"
bad_side = "lapack: bad side"
bad_sort = "lapack: bad sort"
bad_store = "lapack: bad store"
bad_tau = "lapack: tau has insufficient length"
bad_tau_p = "lapack: tauP has insufficient length"
bad_tau_q = "lapack: tauQ has insufficient length"
bad_trans = "lapack: bad trans"
bad_uplo = "lapack: illegal triangle"
bad_work = "lapack: insufficient working memory"
backward_unsupported = "lapack: backward block reflectors are not implemented"
k_gt_m = "lapack: k > m"
k_gt_n = "lapack: k > n"
k_lt0 = "lapack: k < 0"
m_gt_n = "lapack: m > n"
m_lt0 = "lapack: m < 0"
m_lt_n = "lapack: m < n"
n_gt_m = "lapack: n > m"
nb_gt_m = "lapack: nb > m"
nb_gt_n = "lapack: nb > n"
nb_lt0 = "lapack: nb < 0"
n_lt0 = "lapack: n < 0"
n_lt_m = "lapack: n < m"
nan_cfrom = "lapack: cfrom is NaN"
nan_cto = "lapack: cto is NaN"
short_a = "lapack: insufficient matrix slice length"
short_c = "lapack: insufficient length of C"
short_t = "lapack: insufficient length of T"
short_u = "lapack: insufficient length of U"
short_vt = "lapack: insufficient length of Vᵀ"
short_work = "lapack: working array shorter than declared"
short_x = "lapack: insufficient length of x"
zero_cfrom = "lapack: zero cfrom"
zero_inc = "lapack: zero increment"


def flag(kind, value, msg):
    """Coerce ``value`` to the enum ``kind`` or fail with ``msg``."""
    try:
        return kind(value)
    except ValueError:
        raise PreconditionError(msg) from None


def check_matrix(m, n, a, lda, short_msg=short_a):
    """Fail unless ``a`` can hold an ``m x n`` row-major matrix with stride ``lda``."""
    if m < 0:
        raise PreconditionError("lapack: has negative number of rows")
    if n < 0:
        raise PreconditionError("lapack: has negative number of columns")
    if lda < max(1, n):
        raise PreconditionError(bad_ld_a)
    if m > 0 and n > 0 and len(a) < (m - 1) * lda + n:
        raise PreconditionError(short_msg)


def check_vector(n, x, inc, short_msg=short_x):
    if inc == 0:
        raise PreconditionError(zero_inc)
    if n > 0 and len(x) < 1 + (n - 1) * abs(inc):
        raise PreconditionError(short_msg)


def check_workspace(work, lwork, minimum):
    """
    Validate a workspace against the query protocol.

    ``lwork == -1`` is a size query and only needs ``work[0]``.
    """
    if lwork < max(1, minimum) and lwork != -1:
        raise PreconditionError(bad_work)
    if len(work) < max(1, lwork):
        raise PreconditionError(short_work)
