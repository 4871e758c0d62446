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

"""Ephemeris storage, versioning and selection"""

import dataclasses
import logging
import threading
from bisect import bisect_left
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from ..core.config import DEFAULT_STORE_OPTIONS, StoreOptions
from ..core.constants import IONO_PARAMETERS, MAX_PRN, SECONDS_WEEK, valid_prn
from ..core.data_structures import IngestResult, NavigationParameterSet
from ..core.exceptions import (
    CapacityExceededError, EphemerisNotFoundError, MissingEphemerisError
)
from ..core.time import GPSTime

logger = logging.getLogger(__name__)

__all__ = ['EphemerisStore', 'normalize_week', 'SUMMARY_COLUMNS']

SUMMARY_COLUMNS = ['prn', 'week', 'toc', 'toe', 'tot', 'iode', 'iodc',
                   'health', 'selected']


def normalize_week(record: NavigationParameterSet) -> NavigationParameterSet:
    """
    Express toc in the record's reference week.

    The record reader takes toc from the calendar epoch of the first record
    line, while toe and tot are broadcast relative to the ephemeris week. Near
    a week rollover the two weeks differ; toc is then shifted by whole weeks
    so that toc, toe and tot share ``reference_week``.

    Parameters
    ----------
    record : NavigationParameterSet
        Record as decoded, possibly with ``toc_week`` set

    Returns
    -------
    NavigationParameterSet
        New record with ``toc_week`` cleared
    """
    if record.toc_week is None:
        return dataclasses.replace(record)
    shift = (record.toc_week - record.reference_week) * SECONDS_WEEK
    return dataclasses.replace(record, toc=record.toc + shift, toc_week=None)


class EphemerisStore:
    """
    Per-satellite broadcast ephemeris collections.

    Each GPS PRN (1-32) holds up to ``options.capacity`` parameter sets in
    ascending transmission time. A set with the same IODC in the same week is
    the same issue and is stored once, keeping the earliest broadcast.
    Selection picks one set per satellite as "current"; the orbit and clock
    model read only the current set.

    Mutating and scanning methods hold an internal re-entrant lock.
    :meth:`current`, :meth:`sets` and :meth:`snapshot` hand out copies so
    readers on other threads never observe a partially shifted collection.

    Attributes
    ----------
    options : StoreOptions
        Capacity and validity window
    current_week : int or None
        Process week; None until the first record has been ingested
    ionosphere : np.ndarray
        Klobuchar coefficients alpha0..alpha3, beta0..beta3 (stored only)
    leap_seconds : int
        GPS-UTC leap seconds from the navigation header
    capacity_failures : int
        Records dropped because their satellite was full

    Examples
    --------
    >>> store = EphemerisStore()
    >>> store.ingest(eph)
    <IngestResult.INSERTED: 1>
    >>> if store.select(eph.prn, t):
    ...     pos = satellite_position_from_store(store, eph.prn, t)
    """

    def __init__(self, options: StoreOptions = DEFAULT_STORE_OPTIONS):
        self.options = options
        self._lock = threading.RLock()
        self._sets: Dict[int, List[NavigationParameterSet]] = {}
        self._current: Dict[int, Optional[int]] = {}
        self.current_week: Optional[int] = None
        self.ionosphere = np.zeros(2 * IONO_PARAMETERS)
        self.leap_seconds = 0
        self.capacity_failures = 0
        self._reset_collections()

    def _reset_collections(self):
        self._sets = {prn: [] for prn in range(1, MAX_PRN + 1)}
        self._current = {prn: None for prn in range(1, MAX_PRN + 1)}
        self.capacity_failures = 0

    @staticmethod
    def _check_prn(prn: int):
        if not valid_prn(prn):
            raise ValueError(f"PRN out of range 1..{MAX_PRN}: {prn}")

    def begin_session(self) -> None:
        """Prepare for a navigation file

        Until the first record is ingested this clears the header values and
        all collections. Once the store holds data it is a no-op, so a later
        file adds to what an earlier one loaded.
        """
        with self._lock:
            if self.current_week is not None:
                return
            self.ionosphere = np.zeros(2 * IONO_PARAMETERS)
            self.leap_seconds = 0
            self._reset_collections()

    def set_ionosphere(self, alpha, beta) -> None:
        alpha = np.asarray(alpha, dtype=float)
        beta = np.asarray(beta, dtype=float)
        if alpha.shape != (IONO_PARAMETERS,) or beta.shape != (IONO_PARAMETERS,):
            raise ValueError(f"Expected {IONO_PARAMETERS} alpha and beta coefficients")
        with self._lock:
            self.ionosphere = np.concatenate([alpha, beta])

    def ingest(self, record: NavigationParameterSet) -> IngestResult:
        """
        Add one decoded navigation record.

        Parameters
        ----------
        record : NavigationParameterSet
            Decoded record. It is copied; the caller keeps ownership.

        Returns
        -------
        IngestResult
            INSERTED for a new issue, REPLACED when this broadcast of a stored
            issue is earlier than the stored one, DUPLICATE otherwise

        Raises
        ------
        ValueError
            If the PRN is outside 1..32
        CapacityExceededError
            If the satellite already holds ``options.capacity`` sets. Nothing
            is stored and ``capacity_failures`` is incremented.
        """
        self._check_prn(record.prn)
        eph = normalize_week(record)

        with self._lock:
            if self.current_week is None:
                self._reset_collections()
            if self.current_week != eph.reference_week:
                if self.current_week is not None:
                    logger.info(f"GPS week changed: {self.current_week} -> {eph.reference_week}")
                self.current_week = eph.reference_week

            sets = self._sets[eph.prn]

            # Same week and IODC is the same issue broadcast again
            for i, stored in enumerate(sets):
                if stored.reference_week != eph.reference_week or stored.iodc != eph.iodc:
                    continue
                if eph.tot < stored.tot:
                    # Earlier broadcast moves back to its place in transmission order
                    sets.pop(i)
                    pos = self._insert(eph, sets)
                    current = self._current[eph.prn]
                    if current == i:
                        self._current[eph.prn] = pos
                    elif current is not None:
                        if current > i:
                            current -= 1
                        if current >= pos:
                            current += 1
                        self._current[eph.prn] = current
                    logger.debug(f"PRN {eph.prn:02d}: IODC {eph.iodc} replaced by earlier broadcast")
                    return IngestResult.REPLACED
                logger.trace(f"PRN {eph.prn:02d}: IODC {eph.iodc} already stored")
                return IngestResult.DUPLICATE

            if len(sets) >= self.options.capacity:
                self.capacity_failures += 1
                raise CapacityExceededError(eph.prn, self.options.capacity)

            pos = self._insert(eph, sets)

            # Keep the current selection pointing at the same set
            current = self._current[eph.prn]
            if current is not None and current >= pos:
                self._current[eph.prn] = current + 1

            logger.debug(f"PRN {eph.prn:02d}: stored IODE {eph.iode} toc {eph.toc:.0f} "
                         f"({len(sets)} sets)")
            return IngestResult.INSERTED

    @staticmethod
    def _insert(eph: NavigationParameterSet, sets: List[NavigationParameterSet]) -> int:
        """Insert before the first set transmitted at or after eph; return its index"""
        keys = [s.absolute_tot(eph.reference_week) for s in sets]
        pos = bisect_left(keys, eph.tot)
        sets.insert(pos, eph)
        return pos

    def _query_seconds(self, query_time: Union[GPSTime, float]) -> float:
        if isinstance(query_time, GPSTime):
            return query_time.seconds_since(self.current_week)
        return float(query_time)

    def select(self, prn: int, query_time: Union[GPSTime, float],
               wanted_iode: Optional[int] = None) -> bool:
        """
        Select the set to use for a satellite at a query time.

        Sets are scanned from the most recently transmitted backwards. A set
        whose toc is more than the validity window after the query time is
        never usable. With ``wanted_iode`` the first set carrying exactly that
        IODE wins; otherwise the first set whose toc is not after the query
        time (within ``options.select_epsilon``) wins.

        Parameters
        ----------
        prn : int
            Satellite PRN
        query_time : GPSTime or float
            Query time, or seconds counted from the start of the process week
        wanted_iode : int, optional
            Require this issue of data; None or a negative value selects by time

        Returns
        -------
        bool
            True if a set was selected. The previous selection is cleared
            either way.
        """
        self._check_prn(prn)
        with self._lock:
            self._current[prn] = None
            if self.current_week is None:
                return False

            query = self._query_seconds(query_time)
            window = self.options.expire_seconds
            by_iode = wanted_iode is not None and wanted_iode >= 0
            sets = self._sets[prn]

            for i in range(len(sets) - 1, -1, -1):
                eph = sets[i]
                toc = eph.absolute_toc(self.current_week)

                if query < toc - window:
                    continue
                if self.options.reject_stale and query > toc + window:
                    continue

                if by_iode:
                    if eph.iode == wanted_iode:
                        self._current[prn] = i
                        return True
                    continue

                if toc < query + self.options.select_epsilon:
                    self._current[prn] = i
                    return True

            logger.debug(f"PRN {prn:02d}: no ephemeris selected at {query:.1f}")
            return False

    def require(self, prn: int, query_time: Union[GPSTime, float],
                wanted_iode: Optional[int] = None) -> NavigationParameterSet:
        """Select and return the current set, raising when none is usable

        Raises
        ------
        EphemerisNotFoundError
            If :meth:`select` finds nothing
        """
        with self._lock:
            if not self.select(prn, query_time, wanted_iode):
                raise EphemerisNotFoundError(prn, query_time)
            return self.current(prn)

    def _current_set(self, prn: int) -> NavigationParameterSet:
        self._check_prn(prn)
        index = self._current[prn]
        if not self._sets[prn] or index is None:
            raise MissingEphemerisError(prn)
        return self._sets[prn][index]

    def current(self, prn: int) -> NavigationParameterSet:
        """Copy of the selected set

        Raises
        ------
        MissingEphemerisError
            If the satellite has no sets or nothing was selected
        """
        with self._lock:
            return dataclasses.replace(self._current_set(prn))

    def get(self, prn: int, field: str) -> float:
        """One parameter of the selected set (see :meth:`current`)"""
        with self._lock:
            return self._current_set(prn).value(field)

    def current_index(self, prn: int) -> Optional[int]:
        self._check_prn(prn)
        return self._current[prn]

    def count(self, prn: int) -> int:
        self._check_prn(prn)
        with self._lock:
            return len(self._sets[prn])

    def satellite_count(self) -> int:
        """Number of satellites holding at least one set"""
        with self._lock:
            return sum(1 for sets in self._sets.values() if sets)

    def prns(self) -> List[int]:
        with self._lock:
            return [prn for prn, sets in self._sets.items() if sets]

    def sets(self, prn: int) -> List[NavigationParameterSet]:
        """Copies of a satellite's sets in transmission order"""
        self._check_prn(prn)
        with self._lock:
            return [dataclasses.replace(s) for s in self._sets[prn]]

    def __len__(self):
        with self._lock:
            return sum(len(sets) for sets in self._sets.values())

    def snapshot(self) -> 'EphemerisStore':
        """Independent copy of the whole store, selections included"""
        with self._lock:
            copy = EphemerisStore(self.options)
            copy._sets = {prn: [dataclasses.replace(s) for s in sets]
                          for prn, sets in self._sets.items()}
            copy._current = dict(self._current)
            copy.current_week = self.current_week
            copy.ionosphere = self.ionosphere.copy()
            copy.leap_seconds = self.leap_seconds
            copy.capacity_failures = self.capacity_failures
            return copy

    def summary(self) -> pd.DataFrame:
        """
        Table of all stored sets.

        Returns
        -------
        pd.DataFrame
            One row per set with columns ``SUMMARY_COLUMNS``; ``selected``
            marks each satellite's current set
        """
        rows = []
        with self._lock:
            for prn, sets in self._sets.items():
                for i, eph in enumerate(sets):
                    rows.append({
                        'prn': prn,
                        'week': eph.reference_week,
                        'toc': eph.toc,
                        'toe': eph.toe,
                        'tot': eph.tot,
                        'iode': eph.iode,
                        'iodc': eph.iodc,
                        'health': eph.health,
                        'selected': self._current[prn] == i,
                    })
        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
