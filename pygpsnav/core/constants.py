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

"""GPS Constants and System Parameters"""

import numpy as np

# Physical Constants
CLIGHT = 299792458.0  # speed of light (m/s)

# GPS L1 frequency, used only for reporting
FREQ_L1 = 1.57542E9   # L1 frequency (Hz)

# Time System Parameters
GPST0 = [1980, 1, 6, 0, 0, 0]  # GPS time reference epoch
SECONDS_DAY = 86400            # seconds per day
SECONDS_WEEK = 604800          # seconds per GPS week

# Earth Parameters (WGS84)
RE_WGS84 = 6378137.0           # earth semimajor axis (m)
FE_WGS84 = 1.0 / 298.257223563 # earth flattening
OMGE = 7.2921151467E-5         # earth angular velocity (rad/s)
MU_GPS = 3.986005E14           # GPS gravitational constant (m^3/s^2)

# Unit conversions
R2D = 180.0 / np.pi            # radians to degrees
D2R = np.pi / 180.0            # degrees to radians

# Store and solver dimensions
MAX_PRN = 32        # highest GPS PRN number
MAX_EPHMS = 20      # ephemeris sets kept per satellite
MAX_N = 16          # max observations (satellites) per solve
MAX_M = 4           # max unknowns (x, y, z, clock)

# Ephemeris validity
EPHEMERIS_EXPIRE = 2.0   # hours
SELECT_EPSILON = 0.1     # toc tolerance when selecting by time (s)

# Iteration budgets
KEPLER_ITERATIONS = 10   # fixed-point iterations for Kepler's equation
MAXITR = 8               # position refinement iterations

# Matrix kernel
SINGULAR_EPS = 1E-10     # pivot magnitude treated as singular

# Ionosphere coefficients carried in the navigation header
IONO_PARAMETERS = 4      # alpha (and beta) terms

# Solution Status
SOLQ_NONE = 0       # no solution
SOLQ_SINGLE = 5     # single point positioning


def valid_prn(prn):
    """Return True if prn is a GPS PRN handled by the store"""
    return 1 <= prn <= MAX_PRN
