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

"""GPS positioning from broadcast ephemeris.

Key Components:
- Gauss-Jordan inversion and weighted normal equations (matrix)
- Iterative least squares position refinement and DOP (wls)
- Per-epoch satellite states and single point positioning (spp)

Examples:
    >>> from pygpsnav.gnss import single_point_positioning
    >>> sol = single_point_positioning(store, {5: 23634878.5, 14: 20292688.4,
    ...                                       16: 24032055.0, 22: 24383229.4}, t)
    >>> sol.get_llh()
"""

from .matrix import compute_solution, invert_matrix
from .spp import compute_satellite_states, single_point_positioning
from .wls import compute_dop, iterate_position

__all__ = [
    'invert_matrix', 'compute_solution', 'iterate_position', 'compute_dop',
    'compute_satellite_states', 'single_point_positioning',
]
