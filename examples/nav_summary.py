#!/usr/bin/env python3
"""
Navigation file summary

Loads a RINEX 2 GPS navigation file, lists the stored ephemerides and prints
each satellite's position and clock at a chosen epoch.

Example:
    python nav_summary.py brdc0600.06n --epoch 2006 3 1 2 0 0
"""

import argparse
import sys
from pathlib import Path

import pandas as pd

from pygpsnav.core import R2D, GPSTime, epoch_to_gpstime
from pygpsnav.coordinate import ecef2llh
from pygpsnav.gnss import compute_satellite_states
from pygpsnav.io import load_rinex_nav
from pygpsnav.logger import get_logger, setup_logger
from pygpsnav.satellite import EphemerisStore

logger = get_logger("examples.nav_summary")


def main():
    parser = argparse.ArgumentParser(description='RINEX navigation file summary')
    parser.add_argument('nav_file', type=str, help='RINEX 2 GPS navigation file')
    parser.add_argument('--epoch', type=float, nargs=6, default=None,
                        metavar=('YEAR', 'MONTH', 'DAY', 'HOUR', 'MIN', 'SEC'),
                        help='Epoch for satellite positions (GPS time)')
    parser.add_argument('--list', action='store_true',
                        help='Print every stored ephemeris set')
    parser.add_argument('--log-level', type=str, default='INFO')
    args = parser.parse_args()

    setup_logger(level=args.log_level)

    nav_file = Path(args.nav_file)
    if not nav_file.exists():
        logger.error(f"File not found: {nav_file}")
        sys.exit(1)

    store = EphemerisStore()
    report = load_rinex_nav(nav_file, store)
    print(f"Records: {report.records}, inserted: {report.inserted}, "
          f"replaced: {report.replaced}, duplicates: {report.duplicates}, "
          f"dropped: {report.failures}")
    if report.week is None:
        sys.exit(1)

    if args.list:
        with pd.option_context('display.max_rows', None, 'display.width', 120):
            print(store.summary())

    if args.epoch is not None:
        y, mo, d, h, mi, s = args.epoch
        t = epoch_to_gpstime(int(y), int(mo), int(d), int(h), int(mi), s)
    else:
        # First toc of the file
        first = store.summary().sort_values(['week', 'toc']).iloc[0]
        t = GPSTime(int(first.week), float(first.toc))

    print(f"Epoch: {t}")
    for state in compute_satellite_states(store, store.prns(), t):
        llh = ecef2llh(state.position)
        print(f"PRN {state.prn:02d} IODE {state.iode:3d}: "
              f"X = {state.position[0]:15.4f}, Y = {state.position[1]:15.4f}, "
              f"Z = {state.position[2]:15.4f}, dts = {state.clock_bias * 1e6:9.4f} us "
              f"(sub-satellite lat {llh[0] * R2D:7.2f}, lon {llh[1] * R2D:8.2f})")


if __name__ == "__main__":
    main()
