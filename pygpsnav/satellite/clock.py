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

"""Satellite clock computation"""

from ..core.constants import SECONDS_WEEK
from ..core.data_structures import NavigationParameterSet
from ..core.time import GPSTime

__all__ = [
    'time_from_clock', 'satellite_clock', 'satellite_clock_drift',
    'satellite_clock_from_store',
]


def time_from_clock(eph: NavigationParameterSet, t: GPSTime) -> float:
    """Seconds from toc to t, across weeks"""
    return (t.week - eph.reference_week) * SECONDS_WEEK + (t.sec - eph.toc)


def satellite_clock(eph: NavigationParameterSet, t: GPSTime) -> float:
    """
    Compute satellite clock bias

    Parameters:
    -----------
    eph : NavigationParameterSet
        Selected parameter set
    t : GPSTime
        Time of interest (GPST)

    Returns:
    --------
    float
        Satellite clock bias (s), group delay removed. The relativistic
        eccentricity term is not applied.
    """
    dt = time_from_clock(eph, t)
    return eph.af0 + eph.af1 * dt + eph.af2 * dt * dt - eph.tgd


def satellite_clock_drift(eph: NavigationParameterSet, t: GPSTime) -> float:
    """Time derivative of the clock polynomial (s/s)"""
    return eph.af1 + 2.0 * eph.af2 * time_from_clock(eph, t)


def satellite_clock_from_store(store, prn: int, t: GPSTime) -> float:
    """Clock bias from the store's current selection

    Raises MissingEphemerisError when nothing is selected for ``prn``.
    """
    return satellite_clock(store.current(prn), t)
