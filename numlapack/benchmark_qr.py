#!/usr/bin/python3
# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import json
import platform
import time

import numpy as np
import pandas as pd

from numlapack import householder_qr, least_squares_householder_qr, svd

REPEATS = 5  # best of 5 runs leads to stable numbers
SIZES = [(100, 100), (300, 300), (1000, 200)]
COLUMNS = ["kernel", "size", "sec", "sec/NumPy", "residual/NumPy", "orth_err"]


def wall(f, *args, **kwargs):
    t0 = time.perf_counter()
    f(*args, **kwargs)
    return time.perf_counter() - t0


def run(sizes=SIZES, repeats=REPEATS, seed=0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    records = []
    for m, n in sizes:
        A = rng.standard_normal((m, n))
        b = rng.standard_normal(m)

        # reference
        t_np = min(wall(np.linalg.lstsq, A, b, rcond=None) for _ in range(repeats))
        x_ref, *_ = np.linalg.lstsq(A, b, rcond=None)
        r_ref = np.linalg.norm(A @ x_ref - b, np.inf)

        # ---------- Householder QR ---------------------------------
        t_hh = min(wall(householder_qr, A) for _ in range(repeats))
        Qh, Rh = householder_qr(A)
        ortho = np.linalg.norm(Qh.T @ Qh - np.eye(n), np.inf)
        x_hh = least_squares_householder_qr(A, b)
        r_hh = np.linalg.norm(A @ x_hh - b, np.inf)
        records.append(("HH-QR", f"{m}×{n}", t_hh, t_hh / t_np, r_hh / r_ref, ortho))

        # ---------- SVD ---------------------------------------------
        t_svd_np = min(
            wall(np.linalg.svd, A, full_matrices=False) for _ in range(repeats)
        )
        t_svd = min(wall(svd, A) for _ in range(repeats))
        U, s, Vt = svd(A)
        ortho_svd = np.linalg.norm(U.T @ U - np.eye(min(m, n)), np.inf)
        recon = np.linalg.norm(U * s @ Vt - A, np.inf)
        recon_np = max(np.finfo(float).eps, np.linalg.norm(A, np.inf) * np.finfo(float).eps)
        records.append(
            ("SVD", f"{m}×{n}", t_svd, t_svd / t_svd_np, recon / recon_np, ortho_svd)
        )

    return pd.DataFrame(records, columns=COLUMNS)


def main():
    df = run(SIZES, REPEATS)
    print(df.to_markdown(index=False))
    df.to_csv("bench_results.csv", index=False)
    meta = {"python": platform.python_version(), "numpy": np.__version__}
    with open("bench_meta.json", "w") as fh:
        json.dump(meta, fh, indent=2)


if __name__ == "__main__":
    main()
