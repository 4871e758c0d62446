#!/usr/bin/env python3
"""Test suite for the ephemeris store"""

import threading
import unittest

import pandas as pd

from pygpsnav.core.config import StoreOptions
from pygpsnav.core.constants import SECONDS_WEEK
from pygpsnav.core.data_structures import IngestResult, NavigationParameterSet
from pygpsnav.core.exceptions import (
    CapacityExceededError, EphemerisNotFoundError, MissingEphemerisError
)
from pygpsnav.core.time import GPSTime
from pygpsnav.satellite.ephemeris import SUMMARY_COLUMNS, EphemerisStore, normalize_week

WEEK = 1364
T0 = 266400.0  # 2006-03-01 02:00 GPST


def make_eph(prn=5, toc=T0, iode=10, iodc=None, tot=None, week=WEEK, **kwargs):
    """Ephemeris with plausible orbit values"""
    return NavigationParameterSet(
        prn=prn, reference_week=week, toc=toc, toe=toc,
        tot=toc - 30.0 if tot is None else tot,
        iode=iode, iodc=iode if iodc is None else iodc,
        af0=1e-5, sqrt_a=5153.7, eccentricity=0.01, i0=0.96,
        **kwargs)


class TestIngest(unittest.TestCase):
    """Test record ingestion"""

    def setUp(self):
        self.store = EphemerisStore()

    def test_first_ingest(self):
        """First record sets the process week"""
        self.assertIsNone(self.store.current_week)
        result = self.store.ingest(make_eph())
        self.assertIs(result, IngestResult.INSERTED)
        self.assertEqual(self.store.current_week, WEEK)
        self.assertEqual(self.store.count(5), 1)
        self.assertEqual(self.store.satellite_count(), 1)
        self.assertEqual(len(self.store), 1)

    def test_record_is_copied(self):
        """Store keeps its own copy of the record"""
        eph = make_eph()
        self.store.ingest(eph)
        eph.af0 = 99.0
        self.assertEqual(self.store.sets(5)[0].af0, 1e-5)

    def test_duplicate_is_idempotent(self):
        """Same issue ingested twice is stored once"""
        self.store.ingest(make_eph())
        result = self.store.ingest(make_eph())
        self.assertIs(result, IngestResult.DUPLICATE)
        self.assertEqual(self.store.count(5), 1)

    def test_earlier_broadcast_replaces(self):
        """Same issue with an earlier transmission time replaces the stored one"""
        self.store.ingest(make_eph(tot=T0 - 30.0))
        result = self.store.ingest(make_eph(tot=T0 - 600.0))
        self.assertIs(result, IngestResult.REPLACED)
        self.assertEqual(self.store.count(5), 1)
        self.assertEqual(self.store.sets(5)[0].tot, T0 - 600.0)

        # A later broadcast does not replace it
        result = self.store.ingest(make_eph(tot=T0 - 10.0))
        self.assertIs(result, IngestResult.DUPLICATE)
        self.assertEqual(self.store.sets(5)[0].tot, T0 - 600.0)

    def test_replacement_keeps_transmission_order(self):
        """An earlier rebroadcast moves to its place in transmission order"""
        self.store.ingest(make_eph(iode=1, tot=T0 + 1000.0))
        self.store.ingest(make_eph(iode=2, tot=T0 + 2000.0))
        result = self.store.ingest(make_eph(iode=2, tot=T0 + 500.0))
        self.assertIs(result, IngestResult.REPLACED)
        self.store.ingest(make_eph(iode=3, tot=T0 + 800.0))
        self.assertEqual([s.tot for s in self.store.sets(5)],
                         [T0 + 500.0, T0 + 800.0, T0 + 1000.0])
        self.assertEqual([s.iode for s in self.store.sets(5)], [2, 3, 1])

    def test_replacement_keeps_selection(self):
        """The selected set stays selected when a replacement moves"""
        self.store.ingest(make_eph(iode=1, tot=T0 + 1000.0))
        self.store.ingest(make_eph(iode=2, tot=T0 + 2000.0))
        self.assertTrue(self.store.select(5, T0, wanted_iode=2))
        self.store.ingest(make_eph(iode=2, tot=T0 + 500.0))
        self.assertEqual(self.store.current_index(5), 0)
        self.assertEqual(self.store.current(5).tot, T0 + 500.0)

        self.assertTrue(self.store.select(5, T0, wanted_iode=1))
        self.store.ingest(make_eph(iode=3, tot=T0 + 1500.0))
        self.store.ingest(make_eph(iode=3, tot=T0 + 200.0))
        self.assertEqual([s.iode for s in self.store.sets(5)], [3, 2, 1])
        self.assertEqual(self.store.current(5).iode, 1)
        self.assertEqual(self.store.current_index(5), 2)

    def test_same_iodc_other_week_is_new(self):
        """IODC is only compared within the same week"""
        self.store.ingest(make_eph())
        result = self.store.ingest(make_eph(week=WEEK + 1))
        self.assertIs(result, IngestResult.INSERTED)
        self.assertEqual(self.store.count(5), 2)

    def test_transmission_order(self):
        """Sets are kept in ascending transmission time"""
        for iode, tot in [(1, 3000.0), (2, 1000.0), (3, 2000.0)]:
            self.store.ingest(make_eph(iode=iode, toc=T0 + tot, tot=T0 + tot))
        self.assertEqual([s.iode for s in self.store.sets(5)], [2, 3, 1])

    def test_equal_transmission_time_inserted_first(self):
        """New set goes before an existing one with the same transmission time"""
        self.store.ingest(make_eph(iode=1, tot=T0))
        self.store.ingest(make_eph(iode=2, tot=T0))
        self.assertEqual([s.iode for s in self.store.sets(5)], [2, 1])

    def test_order_across_weeks(self):
        """Transmission order accounts for the week number"""
        self.store.ingest(make_eph(iode=1, toc=1000.0, tot=1000.0, week=WEEK + 1))
        self.store.ingest(make_eph(iode=2, toc=SECONDS_WEEK - 1000.0,
                                   tot=SECONDS_WEEK - 1000.0))
        self.assertEqual([s.iode for s in self.store.sets(5)], [2, 1])

    def test_capacity(self):
        """Full satellite rejects further sets without changing the store"""
        store = EphemerisStore(StoreOptions(capacity=3))
        for i in range(3):
            store.ingest(make_eph(iode=i, toc=T0 + 7200.0 * i, tot=T0 + 7200.0 * i))
        with self.assertRaises(CapacityExceededError) as ctx:
            store.ingest(make_eph(iode=9, toc=T0 + 30000.0, tot=T0 + 30000.0))
        self.assertEqual(ctx.exception.prn, 5)
        self.assertEqual(store.count(5), 3)
        self.assertEqual(store.capacity_failures, 1)
        self.assertNotIn(9, [s.iode for s in store.sets(5)])

        # Other satellites are unaffected
        self.assertIs(store.ingest(make_eph(prn=6)), IngestResult.INSERTED)

    def test_default_capacity(self):
        """Twenty sets per satellite by default"""
        for i in range(20):
            self.store.ingest(make_eph(iode=i, toc=T0 + 100.0 * i, tot=T0 + 100.0 * i))
        with self.assertRaises(CapacityExceededError):
            self.store.ingest(make_eph(iode=20, toc=T0 + 5000.0, tot=T0 + 5000.0))

    def test_invalid_prn(self):
        """PRN outside 1..32 is rejected"""
        with self.assertRaises(ValueError):
            self.store.ingest(make_eph(prn=0))
        with self.assertRaises(ValueError):
            self.store.ingest(make_eph(prn=33))
        with self.assertRaises(ValueError):
            self.store.select(40, T0)

    def test_week_change_logged(self):
        """A record from another week moves the process week"""
        self.store.ingest(make_eph())
        with self.assertLogs('pygpsnav.satellite.ephemeris', level='INFO') as cm:
            self.store.ingest(make_eph(prn=6, week=WEEK + 1))
        self.assertEqual(self.store.current_week, WEEK + 1)
        self.assertTrue(any("GPS week changed" in line for line in cm.output))


class TestWeekNormalization(unittest.TestCase):
    """Test toc alignment to the ephemeris week"""

    def test_toc_in_next_week(self):
        """toc taken from a calendar epoch in the following week is shifted"""
        eph = make_eph(toc=0.0, toc_week=WEEK + 1)
        eph.toe = SECONDS_WEEK
        normalized = normalize_week(eph)
        self.assertEqual(normalized.toc, SECONDS_WEEK)
        self.assertIsNone(normalized.toc_week)
        self.assertEqual(normalized.toe, SECONDS_WEEK)

    def test_same_week_unchanged(self):
        eph = make_eph(toc_week=WEEK)
        self.assertEqual(normalize_week(eph).toc, T0)

    def test_store_normalizes(self):
        """Stored sets have toc relative to their reference week"""
        store = EphemerisStore()
        store.ingest(make_eph(toc=3600.0, toc_week=WEEK + 1))
        self.assertEqual(store.sets(5)[0].toc, SECONDS_WEEK + 3600.0)
        self.assertIsNone(store.sets(5)[0].toc_week)


class TestSelect(unittest.TestCase):
    """Test ephemeris selection"""

    def setUp(self):
        self.store = EphemerisStore()
        self.store.ingest(make_eph(iode=10, toc=T0, tot=T0 - 30.0))
        self.store.ingest(make_eph(iode=11, toc=T0 + 7200.0, tot=T0 + 7170.0))

    def test_empty_store(self):
        self.assertFalse(EphemerisStore().select(5, T0))

    def test_recency(self):
        """Latest set whose toc is not after the query time"""
        self.assertTrue(self.store.select(5, T0 + 3600.0))
        self.assertEqual(self.store.current(5).iode, 10)

        self.assertTrue(self.store.select(5, T0 + 7200.0))
        self.assertEqual(self.store.current(5).iode, 11)

        self.assertTrue(self.store.select(5, T0 + 9000.0))
        self.assertEqual(self.store.current(5).iode, 11)

    def test_recency_epsilon(self):
        """toc within 0.1 s after the query still counts as not after it"""
        self.assertTrue(self.store.select(5, T0 + 7200.0 - 0.05))
        self.assertEqual(self.store.current(5).iode, 11)
        self.assertTrue(self.store.select(5, T0 + 7200.0 - 0.2))
        self.assertEqual(self.store.current(5).iode, 10)

    def test_before_all_sets(self):
        """No set has toc before the query"""
        self.assertFalse(self.store.select(5, T0 - 60.0))

    def test_exact_version(self):
        """Requested IODE wins over recency"""
        self.assertTrue(self.store.select(5, T0 + 9000.0, wanted_iode=10))
        self.assertEqual(self.store.current(5).iode, 10)
        self.assertFalse(self.store.select(5, T0 + 9000.0, wanted_iode=99))

    def test_negative_iode_selects_by_time(self):
        self.assertTrue(self.store.select(5, T0 + 9000.0, wanted_iode=-1))
        self.assertEqual(self.store.current(5).iode, 11)

    def test_freshness(self):
        """Sets with toc more than the window after the query are never used"""
        window = 2.0 * 3600.0
        self.assertFalse(self.store.select(5, T0 - window - 10.0, wanted_iode=10))
        self.assertTrue(self.store.select(5, T0 - window + 10.0, wanted_iode=10))

    def test_stale_sets_accepted_by_default(self):
        """Without reject_stale an old set is still selected"""
        self.assertTrue(self.store.select(5, T0 + 7200.0 + 10 * 3600.0))
        self.assertEqual(self.store.current(5).iode, 11)

    def test_reject_stale(self):
        store = EphemerisStore(StoreOptions(reject_stale=True))
        store.ingest(make_eph(iode=10))
        self.assertTrue(store.select(5, T0 + 7000.0))
        self.assertFalse(store.select(5, T0 + 7300.0))

    def test_gpstime_query(self):
        """GPSTime queries are counted from the process week"""
        self.assertTrue(self.store.select(5, GPSTime(WEEK, T0 + 3600.0)))
        self.assertEqual(self.store.current(5).iode, 10)
        self.assertTrue(self.store.select(5, GPSTime(WEEK + 1, 0.0)))
        self.assertEqual(self.store.current(5).iode, 11)

    def test_failed_select_clears_current(self):
        self.store.select(5, T0 + 3600.0)
        self.assertFalse(self.store.select(5, T0 - 60.0))
        with self.assertRaises(MissingEphemerisError):
            self.store.current(5)

    def test_selection_follows_insert(self):
        """Inserting an earlier set keeps the same set selected"""
        self.store.select(5, T0 + 7200.0)
        self.store.ingest(make_eph(iode=9, toc=T0 - 7200.0, tot=T0 - 7230.0))
        self.assertEqual(self.store.current(5).iode, 11)
        self.assertEqual(self.store.current_index(5), 2)

    def test_require(self):
        eph = self.store.require(5, T0 + 60.0)
        self.assertEqual(eph.iode, 10)
        with self.assertRaises(EphemerisNotFoundError):
            self.store.require(5, T0 - 60.0)
        with self.assertRaises(LookupError):
            self.store.require(7, T0)


class TestAccess(unittest.TestCase):
    """Test parameter access and introspection"""

    def setUp(self):
        self.store = EphemerisStore()
        self.store.ingest(make_eph(prn=5, iode=10, af1=2e-12))
        self.store.ingest(make_eph(prn=12, iode=20))

    def test_get_requires_selection(self):
        """Parameters are only readable after a successful selection"""
        with self.assertRaises(MissingEphemerisError):
            self.store.get(5, 'af0')
        with self.assertRaises(MissingEphemerisError):
            self.store.get(7, 'af0')
        self.store.select(5, T0)
        self.assertEqual(self.store.get(5, 'af1'), 2e-12)
        self.assertEqual(self.store.get(5, 'iode'), 10.0)
        with self.assertRaises(KeyError):
            self.store.get(5, 'no_such_field')

    def test_current_is_copy(self):
        self.store.select(5, T0)
        eph = self.store.current(5)
        eph.af1 = 1.0
        self.assertEqual(self.store.get(5, 'af1'), 2e-12)

    def test_prns(self):
        self.assertEqual(self.store.prns(), [5, 12])

    def test_summary(self):
        """Summary has one row per set and marks the selection"""
        self.store.select(12, T0)
        df = self.store.summary()
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(list(df.columns), SUMMARY_COLUMNS)
        self.assertEqual(len(df), 2)
        selected = df[df['selected']]
        self.assertEqual(list(selected['prn']), [12])

    def test_empty_summary(self):
        df = EphemerisStore().summary()
        self.assertEqual(len(df), 0)
        self.assertEqual(list(df.columns), SUMMARY_COLUMNS)

    def test_snapshot_is_independent(self):
        self.store.select(5, T0)
        snap = self.store.snapshot()
        self.store.ingest(make_eph(prn=5, iode=11, toc=T0 + 7200.0, tot=T0 + 7170.0))
        self.assertEqual(snap.count(5), 1)
        self.assertEqual(snap.current(5).iode, 10)
        self.assertEqual(snap.current_week, WEEK)

    def test_ionosphere(self):
        self.store.set_ionosphere([1.0, 2.0, 3.0, 4.0], [5.0, 6.0, 7.0, 8.0])
        self.assertEqual(list(self.store.ionosphere), [1, 2, 3, 4, 5, 6, 7, 8])
        with self.assertRaises(ValueError):
            self.store.set_ionosphere([1.0], [2.0])


class TestSession(unittest.TestCase):
    """Test session start behaviour"""

    def test_begin_session_resets_before_first_ingest(self):
        store = EphemerisStore()
        store.set_ionosphere([1.0] * 4, [2.0] * 4)
        store.leap_seconds = 14
        store.begin_session()
        self.assertEqual(list(store.ionosphere), [0.0] * 8)
        self.assertEqual(store.leap_seconds, 0)

    def test_begin_session_keeps_loaded_data(self):
        store = EphemerisStore()
        store.ingest(make_eph())
        store.set_ionosphere([1.0] * 4, [2.0] * 4)
        store.begin_session()
        self.assertEqual(store.count(5), 1)
        self.assertEqual(store.ionosphere[0], 1.0)


class TestConcurrentReaders(unittest.TestCase):
    """Readers on other threads see consistent copies"""

    def test_snapshots_during_ingest(self):
        store = EphemerisStore()
        errors = []

        def reader():
            for _ in range(200):
                snap = store.snapshot()
                for prn in snap.prns():
                    tots = [s.absolute_tot(WEEK) for s in snap.sets(prn)]
                    if tots != sorted(tots):
                        errors.append(prn)

        thread = threading.Thread(target=reader)
        thread.start()
        for prn in range(1, 33):
            for i in range(10):
                t = T0 + 3600.0 * ((i * 7) % 10)
                store.ingest(make_eph(prn=prn, iode=i, toc=t, tot=t))
        thread.join()
        self.assertEqual(errors, [])
        self.assertEqual(len(store), 320)


if __name__ == '__main__':
    unittest.main()
