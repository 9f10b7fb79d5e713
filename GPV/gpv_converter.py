from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Optional, TextIO

import numpy as np

from gpv_errors import InvalidRunLength, RunLengthCountMismatch
from gpv_fields import read_bytes
from gpv_runlength import iter_runs
from gpv_sections import (
    CompressionParams,
    GridGeometry,
    check_point_counts,
    read_section0,
    read_section1,
    read_section3,
    read_section4,
    read_section5,
    read_section6,
    read_section7_head,
    read_section8,
)
from gpv_walker import Boundary, Emit, walk_runs


@dataclass
class Session:
    f: BinaryIO
    referenced_at: datetime
    geometry: GridGeometry
    compression: CompressionParams
    data_offset: Optional[int] = None  # start of section 7, if seekable


def open_session(f: BinaryIO) -> Session:
    """
    Parse sections 0-6 and leave f at the start of section 7.
    Any deviation from the supported profile raises a Grib2Error.
    """
    read_section0(f)
    referenced_at = read_section1(f)
    geometry = read_section3(f)
    read_section4(f)
    compression = read_section5(f)
    check_point_counts(geometry, compression)
    read_section6(f)
    offset = f.tell() if f.seekable() else None
    return Session(f, referenced_at, geometry, compression, offset)


def _read_payload(session: Session) -> bytes:
    f = session.f
    if session.data_offset is not None:
        f.seek(session.data_offset)
    nbytes = read_section7_head(f)
    return read_bytes(f, nbytes, "run-length data")


def _runs(session: Session, payload: bytes):
    c = session.compression
    return iter_runs(payload, c.max_level_used, c.lngu)


def convert(session: Session, sink: Emit, boundary: Optional[Boundary] = None):
    """
    Decode section 7 and push (lon, lat, value) rows to sink in raster
    order, then check the end marker.
    """
    if boundary is None:
        boundary = Boundary()
    g = session.geometry
    payload = _read_payload(session)
    total = walk_runs(_runs(session, payload), g,
                      session.compression.level_to_value, boundary, sink)
    if total != g.point_count:
        raise RunLengthCountMismatch(g.point_count, total)
    read_section8(session.f)


def to_array(session: Session) -> np.ndarray:
    """Whole grid as float32 (rows, columns), north row first, NaN = missing."""
    g = session.geometry
    table = np.asarray(session.compression.level_to_value, dtype=np.float32)
    payload = _read_payload(session)

    out = np.full(g.point_count, np.nan, dtype=np.float32)
    pos = 0
    for level, count in _runs(session, payload):
        end = pos + count
        if end > g.point_count:
            raise RunLengthCountMismatch(g.point_count, end)
        if level > 0:
            if level > table.size:
                raise InvalidRunLength(f"level {level} has no entry in the level table")
            out[pos:end] = table[level - 1]
        pos = end
    if pos != g.point_count:
        raise RunLengthCountMismatch(g.point_count, pos)
    read_section8(session.f)
    return out.reshape(g.rows, g.columns)


class CsvWriter:
    HEADER = "longitude,latitude,value\n"

    def __init__(self, f: TextIO, with_header: bool = False):
        self.f = f
        self.rows = 0
        if with_header:
            f.write(self.HEADER)

    def write_row(self, longitude: float, latitude: float, value: int):
        self.f.write(f"{longitude:.6f},{latitude:.6f},{value}\n")
        self.rows += 1
