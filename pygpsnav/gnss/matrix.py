# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Normal equation assembly and small matrix inversion"""

from typing import Optional, Tuple

import numpy as np
from numba import njit

from ..core.constants import MAX_M, MAX_N, SINGULAR_EPS
from ..core.exceptions import SingularMatrixError

__all__ = ['invert_matrix', 'compute_solution']


@njit(cache=True)
def _gauss_jordan(a, eps):
    """Invert a in place by Gauss-Jordan elimination on [a | I]

    Pivots are taken from the diagonal without row exchange. Returns False,
    leaving a untouched, when a pivot magnitude is at or below eps.
    """
    m = a.shape[0]
    b = np.zeros((m, 2 * m))
    for i in range(m):
        for j in range(m):
            b[i, j] = a[i, j]
        b[i, i + m] = 1.0

    for i in range(m):
        p = b[i, i]
        if abs(p) <= eps:
            return False
        for j in range(2 * m - 1, i - 1, -1):
            b[i, j] /= p
        for k in range(m):
            if k == i:
                continue
            f = b[k, i]
            for j in range(2 * m - 1, i - 1, -1):
                b[k, j] -= f * b[i, j]

    for i in range(m):
        for j in range(m):
            a[i, j] = b[i, j + m]
    return True


def invert_matrix(a: np.ndarray) -> np.ndarray:
    """
    Invert a small square matrix in place.

    Parameters
    ----------
    a : np.ndarray
        float64 square matrix of dimension at most 4, overwritten with its
        inverse

    Returns
    -------
    np.ndarray
        ``a`` itself

    Raises
    ------
    ValueError
        If ``a`` is not a float64 square matrix of supported size
    SingularMatrixError
        If a diagonal pivot vanishes during elimination. ``a`` is then left
        unchanged.

    Notes
    -----
    No pivoting is done. A symmetric positive definite normal matrix never
    needs it; a matrix with a zero on the diagonal is reported singular even
    when a row exchange would have rescued it.
    """
    if not isinstance(a, np.ndarray) or a.dtype != np.float64:
        raise ValueError("invert_matrix needs a float64 numpy array")
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {a.shape}")
    if not 1 <= a.shape[0] <= MAX_M:
        raise ValueError(f"Matrix dimension must be 1..{MAX_M}, got {a.shape[0]}")

    if not _gauss_jordan(a, SINGULAR_EPS):
        raise SingularMatrixError("inverse_matrix: singular matrix")
    return a


def compute_solution(G: np.ndarray, dr: np.ndarray,
                     weights: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Solve the weighted normal equations GᵀWG dx = GᵀW dr.

    Parameters
    ----------
    G : np.ndarray
        Design matrix, shape (n, m) with n <= 16 and m <= 4
    dr : np.ndarray
        Observation residuals, shape (n,)
    weights : np.ndarray, optional
        Per-observation weights (diagonal of W), shape (n,). None gives
        unit weights.

    Returns
    -------
    dx : np.ndarray
        Correction to the unknowns, shape (m,)
    cov : np.ndarray
        (GᵀWG)⁻¹, shape (m, m)

    Raises
    ------
    ValueError
        If dimensions are out of range or do not agree
    SingularMatrixError
        If GᵀWG cannot be inverted
    """
    G = np.asarray(G, dtype=float)
    dr = np.asarray(dr, dtype=float)
    if G.ndim != 2:
        raise ValueError(f"Design matrix must be 2-D, got shape {G.shape}")
    n, m = G.shape
    if not 1 <= n <= MAX_N:
        raise ValueError(f"Number of observations must be 1..{MAX_N}, got {n}")
    if not 1 <= m <= MAX_M:
        raise ValueError(f"Number of unknowns must be 1..{MAX_M}, got {m}")
    if dr.shape != (n,):
        raise ValueError(f"Residual vector shape {dr.shape} does not match {n} rows")

    if weights is None:
        w = np.ones(n)
    else:
        w = np.asarray(weights, dtype=float)
        if w.shape != (n,):
            raise ValueError(f"Weight vector shape {w.shape} does not match {n} rows")

    GtW = G.T * w
    cov = np.ascontiguousarray(GtW @ G)
    invert_matrix(cov)
    dx = cov @ (GtW @ dr)
    return dx, cov
