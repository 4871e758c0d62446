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

"""Single Point Positioning (SPP) from broadcast ephemeris"""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..core.config import KEPLER, REFINEMENT, IterationOptions
from ..core.constants import CLIGHT, MAX_N, SOLQ_NONE, valid_prn
from ..core.data_structures import SatelliteState, Solution
from ..core.exceptions import EphemerisNotFoundError, SingularMatrixError
from ..core.time import GPSTime
from ..satellite.clock import satellite_clock
from ..satellite.ephemeris import EphemerisStore
from ..satellite.satellite_position import satellite_position
from .wls import iterate_position

logger = logging.getLogger(__name__)

__all__ = ['compute_satellite_states', 'single_point_positioning']


def compute_satellite_states(store: EphemerisStore, prns: Iterable[int], t: GPSTime,
                             kepler: IterationOptions = KEPLER) -> List[SatelliteState]:
    """
    Satellite positions and clocks at one epoch.

    Parameters
    ----------
    store : EphemerisStore
        Ephemeris source; each satellite's current selection is updated
    prns : iterable of int
        Satellites of interest
    t : GPSTime
        Epoch
    kepler : IterationOptions
        Kepler iteration budget

    Returns
    -------
    list of SatelliteState
        One entry per satellite with a usable ephemeris, in input order.
        Satellites without one, and PRNs outside 1..32, are left out.
    """
    states = []
    for prn in prns:
        if not valid_prn(prn):
            logger.warning(f"Skipping satellite with PRN {prn}")
            continue
        try:
            eph = store.require(prn, t)
        except EphemerisNotFoundError:
            logger.debug(f"PRN {prn:02d}: no valid ephemeris at {t}")
            continue
        states.append(SatelliteState(
            prn=prn,
            position=satellite_position(eph, t, kepler),
            clock_bias=satellite_clock(eph, t),
            iode=eph.iode,
        ))
    return states


def single_point_positioning(store: EphemerisStore, pseudoranges: Dict[int, float],
                             t: GPSTime, x0: Optional[np.ndarray] = None,
                             estimate_clock: bool = True,
                             options: IterationOptions = REFINEMENT,
                             weights: Optional[Dict[int, float]] = None,
                             kepler: IterationOptions = KEPLER) -> Solution:
    """
    Perform single point positioning using iterative least squares

    Parameters:
    -----------
    store : EphemerisStore
        Ephemeris source
    pseudoranges : dict
        Observed pseudorange (m) per PRN
    t : GPSTime
        Epoch used to evaluate orbits and clocks
    x0 : np.ndarray, optional
        Initial position (ECEF) or position and clock bias
    estimate_clock : bool
        Estimate the receiver clock bias (m) as a fourth unknown
    options : IterationOptions
        Refinement iteration budget
    weights : dict, optional
        Observation weight per PRN; unit weights otherwise
    kepler : IterationOptions
        Kepler iteration budget

    Returns:
    --------
    Solution
        Position solution. On failure ``type`` is SOLQ_NONE and ``message``
        says why; nothing is raised for too few satellites or singular
        geometry.

    Notes
    -----
    Pseudoranges are corrected by the satellite clock only
    (pr + c * dts). At most 16 satellites are used, lowest PRN first.
    """
    n_unknowns = 4 if estimate_clock else 3
    prns = sorted(pseudoranges)
    states = compute_satellite_states(store, prns, t, kepler)

    if len(states) > MAX_N:
        logger.debug(f"{len(states)} satellites available, using the first {MAX_N}")
        states = states[:MAX_N]

    if len(states) < n_unknowns:
        msg = f"Too few satellites: {len(states)} < {n_unknowns}"
        logger.warning(f"{t}: {msg}")
        return Solution(time=t, type=SOLQ_NONE, ns=len(states),
                        prns=[s.prn for s in states], message=msg)

    used = [s.prn for s in states]
    sat_pos = np.array([s.position for s in states])
    ranges = np.array([pseudoranges[s.prn] + CLIGHT * s.clock_bias for s in states])
    w = None
    if weights is not None:
        w = np.array([weights.get(prn, 1.0) for prn in used])

    try:
        solution = iterate_position(sat_pos, ranges, weights=w, x0=x0,
                                    estimate_clock=estimate_clock, options=options,
                                    time=t, prns=used)
    except SingularMatrixError as e:
        logger.error(f"{t}: {e}; epoch skipped")
        return Solution(time=t, type=SOLQ_NONE, ns=len(states), prns=used,
                        message=str(e))

    logger.debug(f"{t}: fix from {solution.ns} satellites, "
                 f"rr = {np.array2string(solution.rr, precision=3)}")
    return solution
