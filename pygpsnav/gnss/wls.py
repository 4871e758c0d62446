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

"""Iterative weighted least squares position refinement"""

import logging
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..coordinate import covecef2enu, ecef2llh
from ..core.config import REFINEMENT, IterationOptions
from ..core.constants import SOLQ_SINGLE
from ..core.data_structures import HISTORY_COLUMNS, Solution
from ..core.time import GPSTime
from .matrix import compute_solution

logger = logging.getLogger(__name__)

__all__ = ['iterate_position', 'compute_dop']


def iterate_position(sat_pos: np.ndarray, ranges: np.ndarray,
                     weights: Optional[np.ndarray] = None,
                     x0: Optional[np.ndarray] = None,
                     estimate_clock: bool = False,
                     options: IterationOptions = REFINEMENT,
                     time: Optional[GPSTime] = None,
                     prns: Optional[Sequence[int]] = None) -> Solution:
    """
    Refine a receiver position from satellite positions and ranges.

    Each iteration linearizes the range model about the current estimate,
    builds one design matrix row per satellite (unit vector from satellite
    to receiver, plus 1 for the clock column) and applies the weighted least
    squares correction.

    Parameters
    ----------
    sat_pos : np.ndarray
        Satellite ECEF positions (m), shape (n, 3)
    ranges : np.ndarray
        Clock-corrected pseudoranges (m), shape (n,)
    weights : np.ndarray, optional
        Per-satellite weights, shape (n,)
    x0 : np.ndarray, optional
        Initial position (3,) or state (4,); the earth centre by default
    estimate_clock : bool
        Add the receiver clock bias (m) as a fourth unknown
    options : IterationOptions
        Iteration budget. The default runs exactly 8 iterations.
    time : GPSTime, optional
        Epoch stamped on the solution
    prns : sequence of int, optional
        Satellite identifiers in row order, for reporting

    Returns
    -------
    Solution
        Final estimate. ``qr`` is the covariance from the last iteration and
        ``history`` holds one row per iteration, where ``residual_norm`` is
        measured before that iteration's update.

    Raises
    ------
    ValueError
        If array shapes disagree or exceed the solver limits
    SingularMatrixError
        If the geometry cannot determine the unknowns
    """
    sat_pos = np.asarray(sat_pos, dtype=float)
    ranges = np.asarray(ranges, dtype=float)
    if sat_pos.ndim != 2 or sat_pos.shape[1] != 3:
        raise ValueError(f"Satellite positions must have shape (n, 3), got {sat_pos.shape}")
    n = sat_pos.shape[0]
    if ranges.shape != (n,):
        raise ValueError(f"Expected {n} ranges, got shape {ranges.shape}")

    m = 4 if estimate_clock else 3
    x = np.zeros(m)
    if x0 is not None:
        x0 = np.asarray(x0, dtype=float)
        k = min(len(x0), m)
        x[:k] = x0[:k]

    G = np.zeros((n, m))
    rows = []
    cov = np.zeros((m, m))
    converged = False
    iteration = 0

    for iteration in range(1, options.max_iterations + 1):
        clock = x[3] if estimate_clock else 0.0

        diff = x[:3] - sat_pos
        r = np.linalg.norm(diff, axis=1)
        G[:, :3] = diff / r[:, None]
        if estimate_clock:
            G[:, 3] = 1.0
        dr = ranges - r - clock

        dx, cov = compute_solution(G, dr, weights)
        x += dx

        dx_norm = float(np.linalg.norm(dx))
        residual_norm = float(np.linalg.norm(dr))
        rows.append([iteration, x[0], x[1], x[2], x[3] if estimate_clock else 0.0,
                     residual_norm, dx_norm])
        logger.trace(f"LOOP {iteration}: X = {x[0]:.4f}, Y = {x[1]:.4f}, Z = {x[2]:.4f} "
                     f"|dr| = {residual_norm:.4f} |dx| = {dx_norm:.4f}")

        if options.converged(dx_norm):
            converged = True
            break

    return Solution(
        time=time,
        type=SOLQ_SINGLE,
        rr=x[:3].copy(),
        clock_bias=float(x[3]) if estimate_clock else 0.0,
        qr=cov,
        ns=n,
        prns=list(prns) if prns is not None else list(range(n)),
        iterations=iteration,
        converged=converged,
        history=pd.DataFrame(rows, columns=HISTORY_COLUMNS),
    )


def _safe_sqrt(x):
    return float(np.sqrt(x)) if x >= 0 else np.nan


def compute_dop(cov: np.ndarray, position: Optional[np.ndarray] = None) -> dict:
    """
    Dilution of precision from an unweighted solution covariance.

    Parameters
    ----------
    cov : np.ndarray
        Covariance (GᵀG)⁻¹ of size (3, 3) or (4, 4) in ECEF
    position : np.ndarray, optional
        Receiver ECEF position. When given, the position block is rotated to
        East-North-Up and HDOP and VDOP are added.

    Returns
    -------
    dict
        "GDOP" and "PDOP", "TDOP" when a clock column was estimated, and
        "HDOP"/"VDOP" when ``position`` is given. Negative variances give NaN.
    """
    cov = np.asarray(cov, dtype=float)
    dop = {
        'GDOP': _safe_sqrt(np.trace(cov)),
        'PDOP': _safe_sqrt(cov[0, 0] + cov[1, 1] + cov[2, 2]),
    }
    if cov.shape[0] > 3:
        dop['TDOP'] = _safe_sqrt(cov[3, 3])
    if position is not None:
        enu = covecef2enu(ecef2llh(position), cov[:3, :3])
        dop['HDOP'] = _safe_sqrt(enu[0, 0] + enu[1, 1])
        dop['VDOP'] = _safe_sqrt(enu[2, 2])
    return dop
