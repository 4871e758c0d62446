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

"""GPS Time representation and calendar conversions"""

from datetime import datetime, timedelta
from typing import Union

from .constants import GPST0, SECONDS_WEEK

__all__ = ['GPSTime', 'epoch_to_gpstime']


class GPSTime:
    """GPS time as a week number and seconds into the week

    Seconds are kept normalized to [0, SECONDS_WEEK); carrying into the
    week number happens on construction.
    """

    __slots__ = ('week', 'sec')

    def __init__(self, week: int = 0, sec: float = 0.0):
        """
        Initialize GPS time

        Parameters:
        -----------
        week : int
            GPS week number
        sec : float
            Seconds of week
        """
        self.week = int(week)
        self.sec = float(sec)

        # Normalize seconds to [0, 604800)
        while self.sec >= SECONDS_WEEK:
            self.week += 1
            self.sec -= SECONDS_WEEK
        while self.sec < 0:
            self.week -= 1
            self.sec += SECONDS_WEEK

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'GPSTime':
        """Create GPSTime from a (GPS time scale) datetime"""
        delta = dt - datetime(*GPST0)
        weeks = delta.days // 7
        sec = (delta.days % 7) * 86400 + delta.seconds + delta.microseconds * 1e-6
        return cls(weeks, sec)

    @classmethod
    def from_gps_seconds(cls, gps_seconds: float) -> 'GPSTime':
        """Create GPSTime from seconds since the GPS epoch"""
        week = int(gps_seconds // SECONDS_WEEK)
        return cls(week, gps_seconds - week * SECONDS_WEEK)

    def to_datetime(self) -> datetime:
        return datetime(*GPST0) + timedelta(weeks=self.week, seconds=self.sec)

    def to_gps_seconds(self) -> float:
        return self.week * SECONDS_WEEK + self.sec

    def seconds_since(self, week: int) -> float:
        """Seconds of this time counted from the start of ``week``"""
        return (self.week - week) * SECONDS_WEEK + self.sec

    def add_seconds(self, seconds: float) -> 'GPSTime':
        return GPSTime(self.week, self.sec + seconds)

    def __add__(self, seconds: float) -> 'GPSTime':
        if isinstance(seconds, (int, float)):
            return self.add_seconds(seconds)
        return NotImplemented

    def __sub__(self, other: Union['GPSTime', float]) -> Union[float, 'GPSTime']:
        """Subtract a time (giving seconds) or seconds (giving a time)"""
        if isinstance(other, GPSTime):
            return (self.week - other.week) * SECONDS_WEEK + (self.sec - other.sec)
        if isinstance(other, (int, float)):
            return self.add_seconds(-other)
        return NotImplemented

    def _key(self):
        return (self.week, self.sec)

    def __lt__(self, other: 'GPSTime') -> bool:
        if not isinstance(other, GPSTime):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other: 'GPSTime') -> bool:
        if not isinstance(other, GPSTime):
            return NotImplemented
        return self._key() <= other._key()

    def __gt__(self, other: 'GPSTime') -> bool:
        if not isinstance(other, GPSTime):
            return NotImplemented
        return self._key() > other._key()

    def __ge__(self, other: 'GPSTime') -> bool:
        if not isinstance(other, GPSTime):
            return NotImplemented
        return self._key() >= other._key()

    def __eq__(self, other) -> bool:
        if not isinstance(other, GPSTime):
            return NotImplemented
        return self.week == other.week and abs(self.sec - other.sec) < 1e-9

    def __str__(self):
        return f"GPS Week: {self.week}, TOW: {self.sec:.3f}"

    def __repr__(self):
        return f"GPSTime({self.week}, {self.sec})"


def epoch_to_gpstime(year: int, month: int, day: int, hour: int = 0,
                     minute: int = 0, second: float = 0.0) -> GPSTime:
    """Convert a calendar epoch to GPS week and seconds

    Two-digit years follow the RINEX 2 convention: values below 80 are
    in the 2000s, the rest in the 1900s.
    """
    if year < 100:
        year += 2000 if year < 80 else 1900
    t = GPSTime.from_datetime(datetime(year, month, day, hour, minute))
    return t.add_seconds(second)
