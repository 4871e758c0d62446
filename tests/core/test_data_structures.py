#!/usr/bin/env python3
"""Test suite for core data structures"""

import unittest

import numpy as np
import pandas as pd

from pygpsnav.core.constants import SOLQ_NONE, SOLQ_SINGLE
from pygpsnav.core.data_structures import (
    HISTORY_COLUMNS, NavigationParameterSet, SatelliteState, Solution
)


class TestNavigationParameterSet(unittest.TestCase):
    """Test the broadcast ephemeris record"""

    def setUp(self):
        self.eph = NavigationParameterSet(prn=12, reference_week=1364, toc=266400.0,
                                          toe=266400.0, tot=266370.0, sqrt_a=5153.7,
                                          iode=42, iodc=298)

    def test_defaults(self):
        self.assertEqual(self.eph.af0, 0.0)
        self.assertIsNone(self.eph.toc_week)
        self.assertEqual(self.eph.week, 1364)

    def test_semi_major_axis(self):
        self.assertAlmostEqual(self.eph.A, 5153.7 ** 2)

    def test_value(self):
        self.assertEqual(self.eph.value('sqrt_a'), 5153.7)
        self.assertIsInstance(self.eph.value('iode'), float)
        with self.assertRaises(KeyError):
            self.eph.value('not_a_field')

    def test_absolute_times(self):
        self.assertEqual(self.eph.absolute_toc(1364), 266400.0)
        self.assertEqual(self.eph.absolute_toc(1363), 266400.0 + 604800.0)
        self.assertEqual(self.eph.absolute_tot(1365), 266370.0 - 604800.0)

    def test_to_dict(self):
        d = self.eph.to_dict()
        self.assertEqual(d['prn'], 12)
        self.assertEqual(d['iodc'], 298)
        self.assertIn('cis', d)


class TestSolution(unittest.TestCase):
    """Test solution containers"""

    def test_empty_solution(self):
        sol = Solution()
        self.assertEqual(sol.type, SOLQ_NONE)
        self.assertFalse(sol.valid)
        self.assertEqual(sol.rr.shape, (3,))
        self.assertIsInstance(sol.history, pd.DataFrame)
        self.assertEqual(list(sol.history.columns), HISTORY_COLUMNS)
        self.assertEqual(sol.prns, [])

    def test_defaults_not_shared(self):
        a = Solution()
        b = Solution()
        a.rr[0] = 1.0
        a.prns.append(5)
        self.assertEqual(b.rr[0], 0.0)
        self.assertEqual(b.prns, [])

    def test_llh(self):
        sol = Solution(type=SOLQ_SINGLE, rr=np.array([6378137.0, 0.0, 0.0]))
        self.assertTrue(sol.valid)
        np.testing.assert_allclose(sol.get_llh(), [0.0, 0.0, 0.0], atol=1e-6)

    def test_enu_covariance_at_origin(self):
        """At lat 0, lon 0 east is +Y, north is +Z and up is +X"""
        sol = Solution(type=SOLQ_SINGLE, rr=np.array([6378137.0, 0.0, 0.0]),
                       qr=np.diag([1.0, 2.0, 3.0, 4.0]))
        np.testing.assert_allclose(np.diag(sol.get_enu_cov()), [2.0, 3.0, 1.0], atol=1e-12)

    def test_dop_without_position(self):
        sol = Solution(qr=np.eye(4))
        dop = sol.dop()
        self.assertAlmostEqual(dop['GDOP'], 2.0)
        self.assertNotIn('HDOP', dop)

    def test_satellite_state(self):
        state = SatelliteState(prn=3, position=np.zeros(3), clock_bias=1e-4)
        self.assertEqual(state.iode, -1)


if __name__ == '__main__':
    unittest.main()
