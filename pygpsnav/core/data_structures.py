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

"""Core data structures for GPS navigation processing"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd

from .constants import SECONDS_WEEK, SOLQ_NONE
from .time import GPSTime

__all__ = [
    'NavigationParameterSet', 'IngestResult', 'SatelliteState', 'Solution',
    'HISTORY_COLUMNS',
]


@dataclass
class NavigationParameterSet:
    """One broadcast ephemeris record for one GPS satellite.

    Attributes
    ----------
    prn : int
        Satellite PRN number (1-32)
    reference_week : int
        GPS week that toc, toe and tot are counted from
    toc, toe, tot : float
        Time of clock, time of ephemeris and transmission time of message,
        seconds of ``reference_week``
    toc_week : int or None
        Week the record reader expressed ``toc`` in. Set only while a record
        is waiting to be normalized by the ephemeris store; None afterwards.
    af0, af1, af2 : float
        Clock bias polynomial coefficients (s, s/s, s/s^2)
    tgd : float
        Group delay (s)
    iode, iodc : int
        Issue of data, ephemeris and clock
    sqrt_a : float
        Square root of the semi-major axis (m^1/2)
    eccentricity : float
        Orbit eccentricity
    mean_anomaly0 : float
        Mean anomaly at toe (rad)
    delta_n : float
        Mean motion difference (rad/s)
    omega : float
        Argument of perigee (rad)
    omega0 : float
        Longitude of ascending node at weekly epoch (rad)
    i0 : float
        Inclination at toe (rad)
    delta_omega_dot : float
        Rate of right ascension (rad/s)
    delta_i : float
        Rate of inclination (rad/s)
    cuc, cus, crc, crs, cic, cis : float
        Second harmonic corrections to argument of latitude (rad), orbit
        radius (m) and inclination (rad)
    accuracy, health, fit_interval, l2_codes, l2p_flag : float
        Remaining broadcast fields, carried but not used by the orbit model

    Notes
    -----
    Angles are in radians as broadcast in RINEX navigation files.
    """
    prn: int
    reference_week: int
    toc: float
    toe: float
    tot: float
    af0: float = 0.0
    af1: float = 0.0
    af2: float = 0.0
    tgd: float = 0.0
    iode: int = 0
    iodc: int = 0
    sqrt_a: float = 0.0
    eccentricity: float = 0.0
    mean_anomaly0: float = 0.0
    delta_n: float = 0.0
    omega: float = 0.0
    omega0: float = 0.0
    i0: float = 0.0
    delta_omega_dot: float = 0.0
    delta_i: float = 0.0
    cuc: float = 0.0
    cus: float = 0.0
    crc: float = 0.0
    crs: float = 0.0
    cic: float = 0.0
    cis: float = 0.0
    accuracy: float = 0.0
    health: float = 0.0
    fit_interval: float = 0.0
    l2_codes: float = 0.0
    l2p_flag: float = 0.0
    toc_week: Optional[int] = None

    @property
    def week(self) -> int:
        return self.reference_week

    @property
    def A(self) -> float:
        """Semi-major axis (m)"""
        return self.sqrt_a * self.sqrt_a

    def value(self, name: str) -> float:
        """Return a named parameter as float.

        Raises
        ------
        KeyError
            If ``name`` is not a parameter of the set
        """
        if name not in _FIELD_NAMES:
            raise KeyError(f"Unknown ephemeris parameter: {name}")
        return float(getattr(self, name))

    def absolute_toc(self, week: int) -> float:
        """toc counted in seconds from the start of ``week``"""
        return (self.reference_week - week) * SECONDS_WEEK + self.toc

    def absolute_tot(self, week: int) -> float:
        """Transmission time counted in seconds from the start of ``week``"""
        return (self.reference_week - week) * SECONDS_WEEK + self.tot

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


_FIELD_NAMES = frozenset(f.name for f in fields(NavigationParameterSet))


class IngestResult(Enum):
    """Outcome of adding one record to the ephemeris store"""
    INSERTED = 1     # stored as a new set
    REPLACED = 2     # same issue, this earlier broadcast replaced the stored one
    DUPLICATE = 3    # same issue, stored broadcast kept


@dataclass
class SatelliteState:
    """Satellite position and clock computed from the selected ephemeris

    Attributes
    ----------
    prn : int
        Satellite PRN number
    position : np.ndarray
        ECEF position (m), shape (3,)
    clock_bias : float
        Satellite clock bias (s)
    iode : int
        Issue of data of the ephemeris used
    """
    prn: int
    position: np.ndarray
    clock_bias: float
    iode: int = -1


HISTORY_COLUMNS = ['iteration', 'x', 'y', 'z', 'clock_bias', 'residual_norm', 'dx_norm']


@dataclass
class Solution:
    """GPS positioning solution with covariance and iteration record.

    Attributes
    ----------
    time : GPSTime or None
        Solution epoch
    type : int
        Solution type (SOLQ_NONE when the fix failed, SOLQ_SINGLE otherwise)
    rr : np.ndarray
        Position in ECEF coordinates (X, Y, Z in meters), shape (3,)
    clock_bias : float
        Receiver clock bias (m); zero when it was not estimated
    qr : np.ndarray
        Covariance of the estimated unknowns, shape (m, m), unit weights
        give the DOP matrix
    ns : int
        Number of satellites used
    prns : list[int]
        Satellites used, in design-matrix row order
    iterations : int
        Refinement iterations performed
    converged : bool
        True if the convergence tolerance ended the loop
    history : pd.DataFrame
        One row per iteration, columns ``HISTORY_COLUMNS``
    message : str
        Reason for a failed fix
    """
    time: Optional[GPSTime] = None
    type: int = SOLQ_NONE

    rr: np.ndarray = field(default_factory=lambda: np.zeros(3))
    clock_bias: float = 0.0
    qr: np.ndarray = field(default_factory=lambda: np.zeros((3, 3)))

    ns: int = 0
    prns: list = field(default_factory=list)
    iterations: int = 0
    converged: bool = False
    history: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=HISTORY_COLUMNS))
    message: str = ''

    @property
    def valid(self) -> bool:
        return self.type != SOLQ_NONE

    def get_llh(self):
        """Get geodetic position [lat (rad), lon (rad), height (m)] on WGS84"""
        from ..coordinate import ecef2llh
        return ecef2llh(self.rr)

    def get_enu_cov(self):
        """Get position covariance rotated into local East-North-Up

        Returns
        -------
        np.ndarray
            3x3 covariance matrix in ENU coordinates (m²)
        """
        from ..coordinate import covecef2enu
        return covecef2enu(self.get_llh(), self.qr[:3, :3])

    def dop(self) -> dict:
        """Dilution of precision from the solution covariance"""
        from ..gnss.wls import compute_dop
        return compute_dop(self.qr, self.rr if self.valid else None)
