#!/usr/bin/env python3
"""
Position calculation from five fixed satellites

Runs the least squares refinement on a known set of satellite positions and
geometric ranges, starting from the centre of the earth, and prints the
estimate after every iteration.
"""

import argparse

import numpy as np

from pygpsnav.core import R2D, IterationOptions
from pygpsnav.gnss import iterate_position
from pygpsnav.logger import setup_logger

PRNS = [5, 14, 16, 22, 25]

SAT_POS = np.array([
    [-13897607.6294, -10930188.6233, 19676689.6804],   # PRN 05
    [-17800899.1998, 15689920.8120, 11943543.3888],    # PRN 14
    [-1510958.2282, 26280096.7818, -3117646.1949],     # PRN 16
    [-12210758.3517, 20413597.0201, -11649499.5474],   # PRN 22
    [-170032.6981, 17261822.6784, 20555984.4061],      # PRN 25
])

RANGES = np.array([
    23634878.5219,   # PRN 05
    20292688.3557,   # PRN 14
    24032055.0372,   # PRN 16
    24383229.3740,   # PRN 22
    22170992.8187,   # PRN 25
])


def main():
    parser = argparse.ArgumentParser(description='Least squares position from five satellites')
    parser.add_argument('--loops', type=int, default=8,
                        help='Number of refinement iterations')
    parser.add_argument('--tolerance', type=float, default=None,
                        help='Stop early once the update is smaller than this (m)')
    parser.add_argument('--clock', action='store_true',
                        help='Estimate receiver clock bias as a fourth unknown')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        help='TRACE, DEBUG, INFO, WARNING or ERROR')
    args = parser.parse_args()

    setup_logger(level=args.log_level)

    options = IterationOptions(max_iterations=args.loops,
                               convergence_tolerance=args.tolerance)
    sol = iterate_position(SAT_POS, RANGES, estimate_clock=args.clock,
                           options=options, prns=PRNS)

    for row in sol.history.itertuples():
        print(f"LOOP {row.iteration}: X = {row.x:.4f}, Y = {row.y:.4f}, Z = {row.z:.4f}")

    llh = sol.get_llh()
    print(f"Lat = {llh[0] * R2D:.6f} deg, Lon = {llh[1] * R2D:.6f} deg, H = {llh[2]:.3f} m")
    if args.clock:
        print(f"Clock bias = {sol.clock_bias:.3f} m")
    dop = sol.dop()
    print(", ".join(f"{k} = {v:.2f}" for k, v in dop.items()))


if __name__ == "__main__":
    main()
