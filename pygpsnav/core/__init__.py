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

"""Core GPS Navigation Module.

Fundamental components shared by the store, the orbit model and the solver:

- **Constants**: physical parameters, WGS-84 values and the store and solver
  dimensions (32 PRNs, 20 sets per satellite, 16 observations, 4 unknowns)
- **Data Structures**: broadcast parameter sets, satellite states and
  positioning solutions
- **Time**: GPS week and seconds-of-week with calendar conversion
- **Configuration**: iteration budgets and ephemeris store limits
- **Exceptions**: satellite-scoped and epoch-scoped navigation errors

Example Usage:
    >>> from pygpsnav.core import GPSTime, NavigationParameterSet
    >>>
    >>> t = epoch_to_gpstime(6, 3, 1, 2, 0, 0.0)
    >>> eph = NavigationParameterSet(prn=5, reference_week=t.week,
    ...                              toc=t.sec, toe=t.sec, tot=t.sec - 30)
"""

from .config import *
from .constants import *
from .data_structures import *
from .exceptions import *
from .time import *
