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

"""Satellite position computation from broadcast ephemeris"""

import logging

import numpy as np
from numba import njit

from ..core.config import KEPLER, IterationOptions
from ..core.constants import MU_GPS, OMGE, SECONDS_WEEK
from ..core.data_structures import NavigationParameterSet
from ..core.time import GPSTime

logger = logging.getLogger(__name__)

__all__ = [
    'solve_kepler', 'time_from_ephemeris', 'satellite_position',
    'satellite_position_from_store',
]


@njit(cache=True)
def _solve_kepler(mk, e, max_iterations, tolerance):
    """Fixed-point iteration E = M + e sin E seeded at M

    A non-positive tolerance runs all iterations.
    """
    ek = mk
    n = 0
    while n < max_iterations:
        ek_new = mk + e * np.sin(ek)
        n += 1
        step = abs(ek_new - ek)
        ek = ek_new
        if tolerance > 0.0 and step < tolerance:
            break
    return ek, n


def solve_kepler(mean_anomaly: float, eccentricity: float,
                 options: IterationOptions = KEPLER) -> float:
    """
    Eccentric anomaly from Kepler's equation.

    Parameters
    ----------
    mean_anomaly : float
        Mean anomaly (rad)
    eccentricity : float
        Orbit eccentricity, 0 <= e < 1
    options : IterationOptions
        Iteration budget. The default runs exactly 10 iterations.

    Returns
    -------
    float
        Eccentric anomaly (rad)
    """
    tol = options.convergence_tolerance if options.convergence_tolerance is not None else 0.0
    ek, n = _solve_kepler(float(mean_anomaly), float(eccentricity),
                          options.max_iterations, tol)
    logger.trace(f"Kepler: M={mean_anomaly:.12f} E={ek:.12f} after {n} iterations")
    return float(ek)


def time_from_ephemeris(eph: NavigationParameterSet, t: GPSTime) -> float:
    """Seconds from toe to t, across weeks"""
    return (t.week - eph.reference_week) * SECONDS_WEEK + (t.sec - eph.toe)


def satellite_position(eph: NavigationParameterSet, t: GPSTime,
                       options: IterationOptions = KEPLER) -> np.ndarray:
    """
    Compute satellite ECEF position from a broadcast parameter set.

    Parameters
    ----------
    eph : NavigationParameterSet
        Selected parameter set; not modified
    t : GPSTime
        Signal transmission time
    options : IterationOptions
        Kepler iteration budget

    Returns
    -------
    np.ndarray
        Satellite position in ECEF (m), shape (3,)

    Notes
    -----
    Follows the IS-GPS-200 user algorithm with two simplifications: the
    position is not rotated for signal travel time and there is no
    relativistic clock term (see ``satellite_clock``).
    """
    tk = time_from_ephemeris(eph, t)

    a = eph.sqrt_a * eph.sqrt_a
    e = eph.eccentricity
    n = np.sqrt(MU_GPS / (a * a * a)) + eph.delta_n
    mk = eph.mean_anomaly0 + n * tk
    ek = solve_kepler(mk, e, options)

    # True anomaly and argument of latitude
    vk = np.arctan2(np.sqrt(1.0 - e * e) * np.sin(ek), np.cos(ek) - e)
    pk = vk + eph.omega

    # Second harmonic corrections
    cos2p = np.cos(2.0 * pk)
    sin2p = np.sin(2.0 * pk)
    duk = eph.cuc * cos2p + eph.cus * sin2p
    drk = eph.crc * cos2p + eph.crs * sin2p
    dik = eph.cic * cos2p + eph.cis * sin2p

    uk = pk + duk
    rk = a * (1.0 - e * np.cos(ek)) + drk
    ik = eph.i0 + dik + eph.delta_i * tk

    # Position in orbital plane
    xk = rk * np.cos(uk)
    yk = rk * np.sin(uk)

    # Corrected longitude of ascending node
    omk = eph.omega0 + (eph.delta_omega_dot - OMGE) * tk - OMGE * eph.toe

    cos_om = np.cos(omk)
    sin_om = np.sin(omk)
    cos_i = np.cos(ik)
    return np.array([
        xk * cos_om - yk * cos_i * sin_om,
        xk * sin_om + yk * cos_i * cos_om,
        yk * np.sin(ik),
    ])


def satellite_position_from_store(store, prn: int, t: GPSTime,
                                  options: IterationOptions = KEPLER) -> np.ndarray:
    """Satellite position from the store's current selection

    Raises
    ------
    MissingEphemerisError
        If nothing is selected for ``prn``
    """
    return satellite_position(store.current(prn), t, options)
