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

"""Errors raised by the navigation core.

Store and orbit model errors are scoped to one satellite; callers drop that
satellite and carry on with the rest of the epoch. A singular normal matrix
aborts only the position fix being attempted.
"""

__all__ = [
    'NavigationError', 'CapacityExceededError', 'EphemerisNotFoundError',
    'MissingEphemerisError', 'SingularMatrixError',
    'UnexpectedEndOfInputError',
]


class NavigationError(RuntimeError):
    """Base class for navigation core errors"""


class CapacityExceededError(NavigationError):
    """The per-satellite ephemeris buffer is full; the record was dropped"""

    def __init__(self, prn: int, capacity: int):
        super().__init__(f"Too many ephemerides for PRN {prn:02d} (capacity {capacity})")
        self.prn = prn
        self.capacity = capacity


class EphemerisNotFoundError(NavigationError, LookupError):
    """No stored ephemeris is usable for the requested satellite and time"""

    def __init__(self, prn: int, time=None):
        msg = f"No valid ephemeris: PRN={prn:02d}"
        if time is not None:
            msg += f" at {time}"
        super().__init__(msg)
        self.prn = prn
        self.time = time


class MissingEphemerisError(NavigationError):
    """Ephemeris queried without a successful prior selection"""

    def __init__(self, prn: int):
        super().__init__(f"Missing ephemeris: PRN={prn:02d}")
        self.prn = prn


class SingularMatrixError(NavigationError):
    """Normal matrix could not be inverted (degenerate geometry)"""


class UnexpectedEndOfInputError(NavigationError):
    """Navigation file ended in the middle of a record"""
