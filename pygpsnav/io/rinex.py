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

"""RINEX 2 GPS navigation file reader"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

import numpy as np

from ..core.constants import IONO_PARAMETERS, valid_prn
from ..core.data_structures import IngestResult, NavigationParameterSet
from ..core.exceptions import CapacityExceededError, UnexpectedEndOfInputError
from ..core.time import epoch_to_gpstime
from ..satellite.ephemeris import EphemerisStore

logger = logging.getLogger(__name__)

__all__ = [
    'NavHeader', 'NavReadReport', 'RinexNavReader', 'parse_float',
    'read_nav_header', 'iter_nav_records', 'load_rinex_nav',
]

LABEL_COLUMN = 60          # header labels start here
NAV_LINES = 8              # lines per ephemeris record
FIELD_WIDTH = 19
FIRST_FIELD_WIDTH = 22     # continuation lines: 3 blanks + one field


def parse_float(text: str) -> float:
    """Parse a RINEX number; D exponents are accepted and blanks read as 0"""
    s = text.strip().replace('D', 'E').replace('d', 'E')
    return float(s) if s else 0.0


def _parse_int(text: str) -> int:
    s = text.strip()
    return int(s) if s else 0


def _fields(line: str, start: int, count: int, width: int = FIELD_WIDTH) -> List[float]:
    return [parse_float(line[start + i * width:start + (i + 1) * width]) for i in range(count)]


@dataclass
class NavHeader:
    """Values taken from a navigation file header

    Entries the header does not carry stay None.
    """
    ion_alpha: Optional[np.ndarray] = None
    ion_beta: Optional[np.ndarray] = None
    leap_seconds: Optional[int] = None
    complete: bool = False


def _label(line: str) -> str:
    return line[LABEL_COLUMN:].strip()


def _iono(line: str) -> np.ndarray:
    # 2X then 4D12.4: the first value spans 14 columns
    values = [parse_float(line[0:14])]
    values += [parse_float(line[14 + i * 12:26 + i * 12]) for i in range(IONO_PARAMETERS - 1)]
    return np.array(values)


def read_nav_header(lines: Iterable[str]) -> NavHeader:
    """
    Consume header lines up to and including END OF HEADER.

    Parameters
    ----------
    lines : iterator of str
        File lines; advanced past the header

    Returns
    -------
    NavHeader
        Ionosphere coefficients and leap seconds when present.
        ``complete`` is False if the input ended inside the header.
    """
    lines = iter(lines)
    header = NavHeader()
    for line in lines:
        label = _label(line)
        if label.startswith("ION ALPHA"):
            header.ion_alpha = _iono(line)
        elif label.startswith("ION BETA"):
            header.ion_beta = _iono(line)
        elif label.startswith("LEAP SECONDS"):
            header.leap_seconds = _parse_int(line[0:6])
        elif label.startswith("END OF HEADER"):
            header.complete = True
            break
    return header


def _decode_record(first: str, rest: List[str]) -> NavigationParameterSet:
    prn = _parse_int(first[0:2])
    toc = epoch_to_gpstime(_parse_int(first[2:5]), _parse_int(first[5:8]),
                           _parse_int(first[8:11]), _parse_int(first[11:14]),
                           _parse_int(first[14:17]), parse_float(first[17:22]))
    af0, af1, af2 = _fields(first, 22, 3)

    values = []
    for line in rest:
        values.append(parse_float(line[0:FIRST_FIELD_WIDTH]))
        values += _fields(line, FIRST_FIELD_WIDTH, 3)

    (iode, crs, delta_n, m0,
     cuc, e, cus, sqrt_a,
     toe, cic, omega0, cis,
     i0, crc, omega, omega_dot,
     idot, l2_codes, week, l2p,
     accuracy, health, tgd, iodc,
     tot, fit, _, _) = values

    return NavigationParameterSet(
        prn=prn, reference_week=int(week), toc_week=toc.week,
        toc=toc.sec, toe=toe, tot=tot,
        af0=af0, af1=af1, af2=af2, tgd=tgd,
        iode=int(iode), iodc=int(iodc),
        sqrt_a=sqrt_a, eccentricity=e, mean_anomaly0=m0, delta_n=delta_n,
        omega=omega, omega0=omega0, i0=i0,
        delta_omega_dot=omega_dot, delta_i=idot,
        cuc=cuc, cus=cus, crc=crc, crs=crs, cic=cic, cis=cis,
        accuracy=accuracy, health=health, fit_interval=fit,
        l2_codes=l2_codes, l2p_flag=l2p,
    )


def iter_nav_records(lines: Iterable[str]) -> Iterator[NavigationParameterSet]:
    """
    Decode ephemeris records following the header.

    Each record is eight lines: PRN, epoch of toc and the clock polynomial,
    then seven lines of four broadcast values. Blank lines between records
    and records with a PRN outside 1..32 are skipped.

    Parameters
    ----------
    lines : iterator of str
        Lines positioned after END OF HEADER

    Yields
    ------
    NavigationParameterSet
        Record with ``toc_week`` set to the calendar week of its epoch

    Raises
    ------
    UnexpectedEndOfInputError
        If the input ends inside a record. Records already yielded are valid.
    ValueError
        If a field is not a number
    """
    lines = iter(lines)
    for first in lines:
        if not first.strip():
            continue
        rest = []
        for _ in range(NAV_LINES - 1):
            line = next(lines, None)
            if line is None:
                raise UnexpectedEndOfInputError(
                    f"Unexpected EOF in record starting: {first.strip()[:22]}")
            rest.append(line)

        record = _decode_record(first, rest)
        if not valid_prn(record.prn):
            logger.warning(f"Skipping record with PRN {record.prn}")
            continue
        yield record


@dataclass
class NavReadReport:
    """Outcome of loading one navigation file

    Attributes
    ----------
    week : int or None
        Store process week after loading; None if it holds no ephemeris
    satellites : int
        Satellites holding at least one set after loading
    records : int
        Records decoded from the file
    inserted, replaced, duplicates : int
        Ingestion outcomes
    failures : int
        Records dropped because their satellite was full
    complete : bool
        False if the file ended inside a record
    """
    week: Optional[int] = None
    satellites: int = 0
    records: int = 0
    inserted: int = 0
    replaced: int = 0
    duplicates: int = 0
    failures: int = 0
    complete: bool = True
    errors: List[str] = field(default_factory=list)


def _open_lines(source) -> Iterator[str]:
    if isinstance(source, (str, os.PathLike)):
        with open(source, 'r', encoding='ascii', errors='replace') as f:
            for line in f:
                yield line.rstrip('\r\n')
    else:
        for line in source:
            yield line.rstrip('\r\n')


def load_rinex_nav(source: Union[str, os.PathLike, Iterable[str]],
                   store: EphemerisStore) -> NavReadReport:
    """
    Load a RINEX 2 GPS navigation file into an ephemeris store.

    Parameters
    ----------
    source : path or iterable of str
        File path, open text file or any iterable of lines
    store : EphemerisStore
        Destination; header values and records are added to it

    Returns
    -------
    NavReadReport
        Counts of what was read and stored

    Notes
    -----
    A satellite that is already full drops the record, logs a warning and
    reading continues. A file cut short inside a record keeps everything
    ingested before it and is reported with ``complete=False``.
    """
    report = NavReadReport()
    lines = _open_lines(source)

    store.begin_session()
    header = read_nav_header(lines)
    if header.ion_alpha is not None or header.ion_beta is not None:
        alpha = header.ion_alpha if header.ion_alpha is not None else store.ionosphere[:IONO_PARAMETERS]
        beta = header.ion_beta if header.ion_beta is not None else store.ionosphere[IONO_PARAMETERS:]
        store.set_ionosphere(alpha, beta)
    if header.leap_seconds is not None:
        store.leap_seconds = header.leap_seconds

    logger.info("Reading RINEX NAV ...")
    try:
        for record in iter_nav_records(lines):
            report.records += 1
            try:
                result = store.ingest(record)
            except CapacityExceededError as e:
                report.failures += 1
                report.errors.append(str(e))
                logger.warning(f"Too long nav file: {e}")
                continue
            if result is IngestResult.INSERTED:
                report.inserted += 1
            elif result is IngestResult.REPLACED:
                report.replaced += 1
            else:
                report.duplicates += 1
    except UnexpectedEndOfInputError as e:
        report.complete = False
        report.errors.append(str(e))

    report.week = store.current_week
    report.satellites = store.satellite_count()

    if store.current_week is None:
        logger.warning("No ephemeris information")
        return report

    logger.info(f"week {report.week}: {report.satellites} satellites")
    if not report.complete:
        logger.error(f"Error: Unexpected EOF ({report.errors[-1]})")
    return report


class RinexNavReader:
    """Read a navigation file into a new or existing store

    Example
    -------
    >>> reader = RinexNavReader("brdc0600.06n")
    >>> store = reader.read()
    >>> reader.report.satellites
    29
    """

    def __init__(self, filename: Union[str, os.PathLike]):
        self.filename = Path(filename)
        self.report: Optional[NavReadReport] = None

    def read(self, store: Optional[EphemerisStore] = None) -> EphemerisStore:
        if store is None:
            store = EphemerisStore()
        self.report = load_rinex_nav(self.filename, store)
        return store
