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

"""ECEF, geodetic and local ENU conversions on the WGS84 ellipsoid"""

import numpy as np

from ..core.constants import FE_WGS84, RE_WGS84

__all__ = [
    'ecef2llh', 'llh2ecef', 'ecef2enu', 'covecef2enu',
    'compute_rotation_matrix_enu',
]

_E2 = FE_WGS84 * (2.0 - FE_WGS84)  # first eccentricity squared


def ecef2llh(xyz: np.ndarray) -> np.ndarray:
    """Convert ECEF coordinates to geodetic coordinates

    Parameters
    ----------
    xyz : np.ndarray
        ECEF coordinates [x, y, z] in meters

    Returns
    -------
    np.ndarray
        [lat (rad), lon (rad), height above ellipsoid (m)]

    Notes
    -----
    Fixed-point iteration on latitude; five passes reach sub-millimetre
    height for terrestrial points. On the polar axis the height is taken
    from |z| directly.

    Examples
    --------
    >>> llh = ecef2llh(np.array([-3961904.9, 3348993.8, 3698211.7]))
    >>> np.degrees(llh[:2])
    array([ 35.71...,  139.78...])
    """
    x, y, z = float(xyz[0]), float(xyz[1]), float(xyz[2])
    p = np.hypot(x, y)
    lon = np.arctan2(y, x)
    lat = np.arctan2(z, p * (1.0 - _E2))

    for _ in range(5):
        N = RE_WGS84 / np.sqrt(1.0 - _E2 * np.sin(lat)**2)
        lat = np.arctan2(z + _E2 * N * np.sin(lat), p)

    N = RE_WGS84 / np.sqrt(1.0 - _E2 * np.sin(lat)**2)
    if p > 1e-9:
        h = p / np.cos(lat) - N
    else:
        h = abs(z) - N * (1.0 - _E2)
    return np.array([lat, lon, h])


def llh2ecef(llh: np.ndarray) -> np.ndarray:
    """Convert geodetic [lat (rad), lon (rad), height (m)] to ECEF meters"""
    lat, lon, h = llh[0], llh[1], llh[2]
    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    N = RE_WGS84 / np.sqrt(1.0 - _E2 * sin_lat**2)
    return np.array([
        (N + h) * cos_lat * np.cos(lon),
        (N + h) * cos_lat * np.sin(lon),
        (N * (1.0 - _E2) + h) * sin_lat,
    ])


def compute_rotation_matrix_enu(llh: np.ndarray) -> np.ndarray:
    """Rotation taking ECEF vectors to East-North-Up at a geodetic point

    Only latitude and longitude are used: ``v_enu = R @ v_ecef``.
    """
    lat, lon = llh[0], llh[1]
    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    sin_lon = np.sin(lon)
    cos_lon = np.cos(lon)

    return np.array([
        [-sin_lon, cos_lon, 0.0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat]
    ])


def ecef2enu(xyz: np.ndarray, org_llh: np.ndarray) -> np.ndarray:
    """Convert an ECEF point to ENU offsets (m) from a geodetic origin"""
    dx = np.asarray(xyz, dtype=float) - llh2ecef(org_llh)
    return compute_rotation_matrix_enu(org_llh) @ dx


def covecef2enu(llh: np.ndarray, P_ecef: np.ndarray) -> np.ndarray:
    """Transform covariance matrix from ECEF to ENU coordinate system

    Parameters
    ----------
    llh : np.ndarray
        Geodetic position where the local frame is defined
    P_ecef : np.ndarray
        3x3 covariance in ECEF

    Returns
    -------
    np.ndarray
        3x3 covariance ``R @ P_ecef @ R.T`` in ENU
    """
    R = compute_rotation_matrix_enu(llh)
    return R @ np.asarray(P_ecef, dtype=float) @ R.T
