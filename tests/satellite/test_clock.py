#!/usr/bin/env python3
"""Test suite for satellite clock computation"""

import unittest

from pygpsnav.core.constants import SECONDS_WEEK
from pygpsnav.core.data_structures import NavigationParameterSet
from pygpsnav.core.exceptions import MissingEphemerisError
from pygpsnav.core.time import GPSTime
from pygpsnav.satellite.clock import (
    satellite_clock, satellite_clock_drift, satellite_clock_from_store, time_from_clock
)
from pygpsnav.satellite.ephemeris import EphemerisStore

WEEK = 1364
TOC = 266400.0


def make_eph(**kwargs):
    values = dict(prn=5, reference_week=WEEK, toc=TOC, toe=TOC, tot=TOC - 30.0,
                  af0=1.5e-4, af1=-2.0e-11, af2=1.0e-18, tgd=-5.1e-9)
    values.update(kwargs)
    return NavigationParameterSet(**values)


class TestSatelliteClock(unittest.TestCase):
    """Test clock polynomial"""

    def test_at_toc(self):
        """Bias at toc is af0 minus group delay"""
        eph = make_eph()
        self.assertAlmostEqual(satellite_clock(eph, GPSTime(WEEK, TOC)),
                               1.5e-4 + 5.1e-9, places=15)

    def test_polynomial(self):
        eph = make_eph()
        dt = 3600.0
        expected = 1.5e-4 - 2.0e-11 * dt + 1.0e-18 * dt * dt + 5.1e-9
        self.assertAlmostEqual(satellite_clock(eph, GPSTime(WEEK, TOC + dt)),
                               expected, places=15)

    def test_across_week(self):
        """Clock time difference crosses the week boundary"""
        eph = make_eph(toc=SECONDS_WEEK - 60.0)
        t = GPSTime(WEEK + 1, 60.0)
        self.assertEqual(time_from_clock(eph, t), 120.0)

    def test_drift(self):
        eph = make_eph()
        self.assertAlmostEqual(satellite_clock_drift(eph, GPSTime(WEEK, TOC + 100.0)),
                               -2.0e-11 + 2.0e-16, places=20)

    def test_from_store(self):
        store = EphemerisStore()
        store.ingest(make_eph())
        t = GPSTime(WEEK, TOC + 10.0)
        with self.assertRaises(MissingEphemerisError):
            satellite_clock_from_store(store, 5, t)
        store.select(5, t)
        self.assertEqual(satellite_clock_from_store(store, 5, t), satellite_clock(make_eph(), t))


if __name__ == '__main__':
    unittest.main()
