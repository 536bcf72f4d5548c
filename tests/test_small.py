# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pytest

from numlapack.native import Implementation

impl = Implementation()

SYMMETRIC = [
    (2.0, 1.0, 3.0),
    (-4.0, 2.0, -1.0),  # negative trace
    (1.0, 1.0, -1.0),  # zero trace
    (3.0, 2.0, 3.0),  # equal diagonal
    (1.0, 0.0, 5.0),  # already diagonal
    (1e-3, 1e3, -2.0),
]

TRIANGULAR = [
    (3.0, 1.0, 2.0),
    (1.0, 5.0, 2.0),  # g largest
    (1.0, 0.0, 4.0),  # diagonal, |h| > |f|
    (2.0, -3.0, -1.0),
    (0.0, 1.0, 2.0),
    (-2.0, 1.0, 0.0),
]


def _rot(c, s):
    return np.array([[c, -s], [s, c]])


@pytest.mark.parametrize("a, b, c", SYMMETRIC)
def test_dlae2_matches_eigvalsh(a, b, c):
    rt1, rt2 = impl.dlae2(a, b, c)
    assert abs(rt1) >= abs(rt2)
    want = np.linalg.eigvalsh([[a, b], [b, c]])
    np.testing.assert_allclose(sorted([rt1, rt2]), want, rtol=1e-13, atol=1e-13)


@pytest.mark.parametrize("a, b, c", SYMMETRIC)
def test_dlaev2_rotation_diagonalises(a, b, c):
    rt1, rt2, cs, sn = impl.dlaev2(a, b, c)
    assert (rt1, rt2) == impl.dlae2(a, b, c)
    assert np.isclose(cs * cs + sn * sn, 1.0, rtol=1e-15)

    A = np.array([[a, b], [b, c]])
    # (cs, sn) is the eigenvector for rt1.
    scale = max(1.0, np.abs(A).max())
    np.testing.assert_allclose(A @ [cs, sn], rt1 * np.array([cs, sn]), atol=1e-13 * scale)
    R = _rot(cs, sn)
    np.testing.assert_allclose(R.T @ A @ R, np.diag([rt1, rt2]), atol=1e-13 * scale)


def test_dlae2_sign_follows_trace():
    assert impl.dlae2(-4.0, 2.0, -1.0)[0] < 0
    assert impl.dlae2(4.0, 2.0, 1.0)[0] > 0
    rt1, rt2 = impl.dlae2(1.0, 0.0, -1.0)
    assert (rt1, rt2) == (1.0, -1.0)


@pytest.mark.parametrize("f, g, h", TRIANGULAR)
def test_dlas2_matches_numpy(f, g, h):
    ssmin, ssmax = impl.dlas2(f, g, h)
    assert 0 <= ssmin <= ssmax
    want = np.linalg.svd([[f, g], [0.0, h]], compute_uv=False)
    np.testing.assert_allclose([ssmax, ssmin], want, rtol=1e-13, atol=1e-14 * max(abs(f), abs(g), abs(h)))


@pytest.mark.parametrize("f, g, h", TRIANGULAR + [(1.0, 1e20, 1.0)])
def test_dlasv2_factors_the_triangle(f, g, h):
    ssmin, ssmax, snr, csr, snl, csl = impl.dlasv2(f, g, h)
    assert abs(ssmax) >= abs(ssmin)
    np.testing.assert_allclose(
        [abs(ssmax), abs(ssmin)], impl.dlas2(f, g, h)[::-1], rtol=1e-13, atol=1e-300
    )

    M = np.array([[f, g], [0.0, h]])
    L = _rot(csl, snl).T
    R = _rot(csr, snr)
    scale = np.abs(M).max()
    np.testing.assert_allclose(L @ M @ R, np.diag([ssmax, ssmin]), atol=1e-14 * scale)
    # Both rotations have determinant one, so the signed values keep det(M).
    assert np.isclose(ssmax * ssmin, f * h, rtol=1e-12, atol=1e-14)


def test_huge_off_diagonal_keeps_small_singular_value():
    # Cancellation-free: the tiny value is exact, not eps * 1e20.
    assert impl.dlas2(1.0, 1e20, 1.0) == (1e-20, 1e20)
    ssmin, ssmax = impl.dlasv2(1.0, 1e20, 1.0)[:2]
    assert (ssmin, ssmax) == (1e-20, 1e20)


def test_dlasv2_zero_triangle():
    assert impl.dlasv2(0.0, 0.0, 0.0)[:2] == (0.0, 0.0)
    assert impl.dlas2(0.0, 3.0, 0.0) == (0.0, 3.0)
