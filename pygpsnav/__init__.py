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
pygpsnav - GPS broadcast navigation core

Maintains broadcast ephemerides per satellite, computes satellite orbits and
clocks from them, and solves a receiver position from pseudoranges by
iterative weighted least squares.
"""

__version__ = "1.0.0"
__author__ = "pygpsnav Development Team"
__title__ = "pygpsnav"
__description__ = "GPS broadcast ephemeris store, orbit model and least-squares positioning"

from .logger import LogContext, get_logger, setup_logger
from .core import *
from .satellite import *
from .gnss import *
from .coordinate import *
from .io import *
