import io
from datetime import datetime

import pytest

from gpv_converter import convert, open_session
from gpv_errors import (
    InvalidDateTime,
    LevelTableError,
    MalformedMagic,
    PointCountMismatch,
    SectionNumberMismatch,
    TruncatedRead,
    UnexpectedConstant,
)
from gpv_fields import read_u8, read_u16, read_u32, skip
from gpv_phantom import GRID, LEVEL_VALUES
from gpv_sections import GridGeometry


def test_fields_big_endian():
    f = io.BytesIO(bytes([0x01, 0x02, 0x03, 0x00, 0x00, 0x01, 0x00, 0xff]))
    assert read_u8(f, "a") == 1
    assert read_u16(f, "b") == 0x0203
    assert read_u32(f, "c") == 0x00000100
    with pytest.raises(TruncatedRead) as e:
        read_u16(f, "d")
    assert (e.value.field, e.value.expected, e.value.actual) == ("d", 2, 1)


def test_skip_short():
    with pytest.raises(TruncatedRead):
        skip(io.BytesIO(b"abc"), 4, "pad")


def test_open_session(levels, make_file):
    s = open_session(make_file(levels))
    assert s.referenced_at == datetime(2020, 7, 7, 7, 30, 0)
    assert s.geometry == GridGeometry(point_count=2560 * 3360, columns=2560, rows=3360, **GRID)
    c = s.compression
    assert c.point_count == 2560 * 3360
    assert c.bits_per_code == 8
    assert c.max_level_used == 77
    assert c.max_level_defined == 98
    assert c.max_level_used <= c.max_level_defined
    assert c.level_to_value == LEVEL_VALUES
    assert c.lngu == 255 - 77


def test_bad_magic(levels, make_file):
    with pytest.raises(MalformedMagic):
        open_session(make_file(levels, magic=b"GRIC"))


@pytest.mark.parametrize("override, field", [
    (dict(discipline=1), "discipline"),
    (dict(edition=1), "GRIB edition"),
    (dict(master_table_version=3), "master table version"),
    (dict(local_table_version=0), "local table version"),
    (dict(production_status=1), "production status"),
    (dict(data_type=1), "type of data"),
    (dict(grid_definition_source=1), "grid definition source"),
    (dict(grid_template=1), "grid definition template"),
    (dict(earth_figure=6), "shape of the earth"),
    (dict(columns=2000), "points along a parallel"),
    (dict(rows=3000), "points along a meridian"),
    (dict(basic_angle=1), "basic angle"),
    (dict(scanning_mode=0x40), "scanning mode"),
    (dict(data_template=0), "data representation template"),
    (dict(bits_per_code=4, payload=b""), "bits per code"),
    (dict(decimal_scale=0), "decimal scale factor"),
    (dict(sec3_points=1), "number of data points"),
])
def test_unexpected_constant(levels, make_file, override, field):
    with pytest.raises(UnexpectedConstant) as e:
        open_session(make_file(levels, **override))
    assert e.value.field == field
    assert field in str(e.value)


def test_earth_figure_message(levels, make_file):
    with pytest.raises(UnexpectedConstant) as e:
        open_session(make_file(levels, earth_figure=6))
    assert (e.value.expected, e.value.actual) == (4, 6)


def test_section_number_mismatch(levels, make_file):
    with pytest.raises(SectionNumberMismatch) as e:
        open_session(make_file(levels, numbers={4: 9}))
    assert (e.value.expected, e.value.actual) == (4, 9)


def test_point_count_mismatch_before_decoding(levels, make_file):
    # garbage payload: open must fail on the counts, not on the data
    f = make_file(levels, sec5_points=2560 * 3360 - 1, payload=b"\xff\xff")
    with pytest.raises(PointCountMismatch) as e:
        open_session(f)
    assert (e.value.section_a, e.value.section_b) == (2560 * 3360, 2560 * 3360 - 1)


def test_invalid_reference_time(levels, make_file):
    with pytest.raises(InvalidDateTime):
        open_session(make_file(levels, reference_time=(2020, 13, 1, 0, 0, 0)))


def test_max_level_used_above_defined(levels, make_file):
    with pytest.raises(LevelTableError):
        open_session(make_file(levels, max_level_defined=50))


def test_level_table_too_short(levels, make_file):
    with pytest.raises(LevelTableError):
        open_session(make_file(levels, level_values=LEVEL_VALUES[:50], max_level_defined=98))


def test_truncated_header(levels, make_file):
    data = make_file(levels).getvalue()
    with pytest.raises(TruncatedRead):
        open_session(io.BytesIO(data[:60]))


@pytest.mark.parametrize("number", [4, 7])
def test_section_length_below_head(levels, make_file, number):
    with pytest.raises(UnexpectedConstant) as e:
        s = open_session(make_file(levels, lengths={number: 3}))
        convert(s, lambda *r: None)
    assert e.value.field == f"section {number} length"
    assert e.value.actual == 3
