import struct
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from gpv_errors import (
    InvalidDateTime,
    LevelTableError,
    MalformedMagic,
    MissingEndMarker,
    PointCountMismatch,
    SectionNumberMismatch,
    UnexpectedConstant,
)
from gpv_fields import read_bytes, read_u8, read_u32, skip

MAGIC = b"GRIB"
END_MARKER = b"7777"

# Product profile: JMA 1km grid, run-length packed (template 5.200)
DISCIPLINE = 0                  # meteorological products
EDITION = 2
MASTER_TABLE_VERSION = 2
LOCAL_TABLE_VERSION = 1
PRODUCTION_STATUS = 0           # operational products
DATA_TYPE = 0                   # analysis products
GRID_DEFINITION_SOURCE = 0
GRID_TEMPLATE = 0               # latitude/longitude grid
EARTH_FIGURE = 4                # GRS80 oblate spheroid
POINTS_ALONG_PARALLEL = 2560    # Ni, columns
POINTS_ALONG_MERIDIAN = 3360    # Nj, rows
BASIC_ANGLE = 0
SCANNING_MODE = 0x00
DATA_TEMPLATE = 200             # run-length packing with level values
BITS_PER_CODE = 8
DECIMAL_SCALE = 1

# Section head: length(u32) number(u8)
HEAD_FMT = ">IB"
HEAD_SIZE = struct.calcsize(HEAD_FMT)

# Section 0: magic(4) reserved(2) discipline(1) edition(1) total_length(u64)
SEC0_FMT = ">4s2sBBQ"
SEC0_SIZE = struct.calcsize(SEC0_FMT)

# Section 1 body:
# centre(u16) subcentre(u16) master_ver(1) local_ver(1) ref_significance(1)
# year(u16) month(1) day(1) hour(1) minute(1) second(1) status(1) data_type(1)
SEC1_FMT = ">HHBBBHBBBBBBB"
SEC1_SIZE = HEAD_SIZE + struct.calcsize(SEC1_FMT)

# Section 3 body:
# source(1) npoints(u32) list_octets(1) list_interp(1) template(u16) earth(1)
# radius/axes(15) Ni(u32) Nj(u32) basic_angle(u32) subdivisions(4)
# La1(u32) Lo1(u32) res_flags(1) La2(u32) Lo2(u32) Di(u32) Dj(u32) scan(1)
SEC3_FMT = ">BIBBHB15sIII4sIIBIIIIB"

# Section 5 body (level table follows):
# npoints(u32) template(u16) nbit(1) maxv(u16) max_level(u16) scale(1)
SEC5_FMT = ">IHBHHB"
SEC5_FIXED = HEAD_SIZE + struct.calcsize(SEC5_FMT)


@dataclass(frozen=True)
class GridGeometry:
    """Grid definition, all angles in micro-degrees."""
    point_count: int
    columns: int
    rows: int
    northernmost: int
    southernmost: int
    westernmost: int
    easternmost: int
    lon_increment: int
    lat_increment: int


@dataclass(frozen=True)
class CompressionParams:
    point_count: int
    bits_per_code: int
    max_level_used: int      # MAXV
    max_level_defined: int
    level_to_value: Tuple[int, ...]  # indexed by level - 1

    @property
    def lngu(self) -> int:
        return 2 ** self.bits_per_code - 1 - self.max_level_used


def _expect(field: str, expected, actual):
    if actual != expected:
        raise UnexpectedConstant(field, expected, actual)


def _unpack(f, fmt: str, field: str):
    return struct.unpack(fmt, read_bytes(f, struct.calcsize(fmt), field))


def read_section_head(f, number: int) -> int:
    """Read length + section number; return the declared section length."""
    length = read_u32(f, f"section {number} length")
    actual = read_u8(f, f"section {number} number")
    if actual != number:
        raise SectionNumberMismatch(number, actual)
    if length < HEAD_SIZE:
        raise UnexpectedConstant(f"section {number} length", f">= {HEAD_SIZE}", length)
    return length


def read_section0(f):
    magic, _, discipline, edition, _ = _unpack(f, SEC0_FMT, "section 0")
    if magic != MAGIC:
        raise MalformedMagic(magic)
    _expect("discipline", DISCIPLINE, discipline)
    _expect("GRIB edition", EDITION, edition)


def read_section1(f) -> datetime:
    """Validate the identification section, return the reference time."""
    length = read_section_head(f, 1)
    (_, _, master, local, _,
     year, month, day, hour, minute, second,
     status, data_type) = _unpack(f, SEC1_FMT, "section 1")
    _expect("master table version", MASTER_TABLE_VERSION, master)
    _expect("local table version", LOCAL_TABLE_VERSION, local)
    try:
        referenced_at = datetime(year, month, day, hour, minute, second)
    except ValueError as e:
        raise InvalidDateTime(
            f"Invalid reference time {year:04d}-{month:02d}-{day:02d} "
            f"{hour:02d}:{minute:02d}:{second:02d}: {e}"
        ) from e
    _expect("production status", PRODUCTION_STATUS, status)
    _expect("type of data", DATA_TYPE, data_type)
    if length > SEC1_SIZE:
        skip(f, length - SEC1_SIZE, "section 1 reserved")
    return referenced_at


def read_section3(f) -> GridGeometry:
    read_section_head(f, 3)
    (source, npoints, _, _, template, earth, _,
     ni, nj, basic_angle, _,
     la1, lo1, _, la2, lo2, di, dj, scan) = _unpack(f, SEC3_FMT, "section 3")
    _expect("grid definition source", GRID_DEFINITION_SOURCE, source)
    _expect("grid definition template", GRID_TEMPLATE, template)
    _expect("shape of the earth", EARTH_FIGURE, earth)
    _expect("points along a parallel", POINTS_ALONG_PARALLEL, ni)
    _expect("points along a meridian", POINTS_ALONG_MERIDIAN, nj)
    _expect("basic angle", BASIC_ANGLE, basic_angle)
    _expect("scanning mode", SCANNING_MODE, scan)
    _expect("number of data points", ni * nj, npoints)
    if not (lo1 < lo2 and la2 < la1):
        raise UnexpectedConstant("grid corners", "west < east and south < north",
                                 f"({lo1}, {la1})-({lo2}, {la2})")
    if di == 0 or dj == 0:
        raise UnexpectedConstant("direction increments", "non-zero", (di, dj))
    return GridGeometry(
        point_count=npoints, columns=ni, rows=nj,
        northernmost=la1, southernmost=la2,
        westernmost=lo1, easternmost=lo2,
        lon_increment=di, lat_increment=dj,
    )


def read_section4(f):
    """Product definition; nothing in it is used, skip by length."""
    length = read_section_head(f, 4)
    skip(f, length - HEAD_SIZE, "section 4")


def read_section5(f) -> CompressionParams:
    length = read_section_head(f, 5)
    npoints, template, nbit, maxv, max_level, scale = _unpack(f, SEC5_FMT, "section 5")
    _expect("data representation template", DATA_TEMPLATE, template)
    _expect("bits per code", BITS_PER_CODE, nbit)
    _expect("decimal scale factor", DECIMAL_SCALE, scale)
    if maxv > max_level:
        raise LevelTableError(f"MAXV {maxv} exceeds max level {max_level}")
    nlevels, pad = divmod(max(0, length - SEC5_FIXED), 2)
    levels = _unpack(f, f">{nlevels}H", "level table")
    if pad:
        skip(f, 1, "level table padding")
    if maxv > nlevels:
        raise LevelTableError(f"MAXV {maxv} exceeds level table size {nlevels}")
    return CompressionParams(
        point_count=npoints, bits_per_code=nbit,
        max_level_used=maxv, max_level_defined=max_level,
        level_to_value=tuple(levels),
    )


def check_point_counts(geometry: GridGeometry, compression: CompressionParams):
    if geometry.point_count != compression.point_count:
        raise PointCountMismatch(geometry.point_count, compression.point_count)


def read_section6(f):
    read_section_head(f, 6)
    skip(f, 1, "bitmap indicator")


def read_section7_head(f) -> int:
    """Return the number of run-length bytes that follow."""
    return read_section_head(f, 7) - HEAD_SIZE


def read_section8(f):
    marker = f.read(len(END_MARKER))
    if marker != END_MARKER:
        raise MissingEndMarker(marker)
