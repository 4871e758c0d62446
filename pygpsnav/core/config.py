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
Processing Options
==================

Iteration budgets and ephemeris store limits. The defaults reproduce the
legacy receiver behaviour: a fixed number of Kepler and refinement iterations
with no convergence test.
"""

from dataclasses import dataclass
from typing import Optional

from .constants import (
    EPHEMERIS_EXPIRE, KEPLER_ITERATIONS, MAX_EPHMS, MAXITR, SELECT_EPSILON
)


@dataclass(frozen=True)
class IterationOptions:
    """Iteration budget for a fixed-point or Gauss-Newton loop

    Attributes
    ----------
    max_iterations : int
        Hard upper bound on the number of iterations
    convergence_tolerance : float or None
        Early-exit threshold on the update magnitude. None runs the full
        ``max_iterations``.
    """
    max_iterations: int
    convergence_tolerance: Optional[float] = None

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be positive: {self.max_iterations}")
        if self.convergence_tolerance is not None and self.convergence_tolerance <= 0.0:
            raise ValueError("convergence_tolerance must be positive or None")

    def converged(self, step: float) -> bool:
        """Check an update magnitude against the tolerance"""
        return self.convergence_tolerance is not None and step < self.convergence_tolerance


@dataclass(frozen=True)
class StoreOptions:
    """Ephemeris store limits

    Attributes
    ----------
    capacity : int
        Maximum ephemeris sets kept per satellite
    expire_hours : float
        Validity window around toc used by selection (hours)
    select_epsilon : float
        Tolerance when comparing toc against the query time (s)
    reject_stale : bool
        Also reject sets whose toc is more than ``expire_hours`` before the
        query time
    """
    capacity: int = MAX_EPHMS
    expire_hours: float = EPHEMERIS_EXPIRE
    select_epsilon: float = SELECT_EPSILON
    reject_stale: bool = False

    @property
    def expire_seconds(self) -> float:
        return self.expire_hours * 3600.0


KEPLER = IterationOptions(max_iterations=KEPLER_ITERATIONS)
REFINEMENT = IterationOptions(max_iterations=MAXITR)
DEFAULT_STORE_OPTIONS = StoreOptions()
