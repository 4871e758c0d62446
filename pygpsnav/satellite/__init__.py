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

"""
Satellite orbit and clock from GPS broadcast ephemeris.

Modules
-------
ephemeris : module
    Per-satellite ephemeris store with versioning, capacity limits and
    time or IODE based selection
satellite_position : module
    Kepler orbit propagation with second harmonic corrections
clock : module
    Satellite clock polynomial with group delay

Usage Examples
--------------
    >>> from pygpsnav.satellite import EphemerisStore, satellite_position
    >>> store = EphemerisStore()
    >>> store.ingest(eph)
    >>> if store.select(5, t):
    ...     pos = satellite_position(store.current(5), t)
"""

from .clock import *
from .ephemeris import *
from .satellite_position import *
