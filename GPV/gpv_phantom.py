import struct
from datetime import datetime

import numpy as np

import gpv_sections as S
from gpv_runlength import rle_encode

# Level table of the 1km precipitation analysis (mm/h x 10), level m -> LEVEL_VALUES[m-1]
LEVEL_VALUES = (
    0, 4, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 110, 120, 130, 140, 150, 160, 170, 180,
    190, 200, 210, 220, 230, 240, 250, 260, 270, 280, 290, 300, 310, 320, 330, 340, 350,
    360, 370, 380, 390, 400, 410, 420, 430, 440, 450, 460, 470, 480, 490, 500, 510, 520,
    530, 540, 550, 560, 570, 580, 590, 600, 610, 620, 630, 640, 650, 660, 670, 680, 690,
    700, 710, 720, 730, 740, 750, 760, 770, 800, 850, 900, 950, 1000, 1050, 1100, 1150,
    1200, 1250, 1300, 1400, 1500, 1600, 1700, 1800, 1900, 2000, 2550,
)

GRID = dict(
    northernmost=47_995_833,
    southernmost=20_004_167,
    westernmost=118_006_250,
    easternmost=149_993_750,
    lon_increment=12_500,
    lat_increment=8_333,
)

PROFILE = dict(
    magic=S.MAGIC,
    discipline=S.DISCIPLINE,
    edition=S.EDITION,
    master_table_version=S.MASTER_TABLE_VERSION,
    local_table_version=S.LOCAL_TABLE_VERSION,
    production_status=S.PRODUCTION_STATUS,
    data_type=S.DATA_TYPE,
    grid_definition_source=S.GRID_DEFINITION_SOURCE,
    grid_template=S.GRID_TEMPLATE,
    earth_figure=S.EARTH_FIGURE,
    basic_angle=S.BASIC_ANGLE,
    scanning_mode=S.SCANNING_MODE,
    data_template=S.DATA_TEMPLATE,
    bits_per_code=S.BITS_PER_CODE,
    decimal_scale=S.DECIMAL_SCALE,
    end_marker=S.END_MARKER,
)


def generate_rain_phantom(rows=S.POINTS_ALONG_MERIDIAN, columns=S.POINTS_ALONG_PARALLEL,
                          seed=0, land=0.08, cells=3, max_level=60):
    """
    Synthetic level grid: 0 (missing) outside an elliptic "land" patch,
    level 1 (no rain) on land, gaussian rain cells on top.
    land is the ellipse semi-axis as a fraction of the grid size.
    """
    rng = np.random.default_rng(seed)
    yy, xx = np.ogrid[:rows, :columns]
    cy, cx = rows / 2, columns / 2
    ry, rx = max(1.0, land * rows), max(1.0, land * columns)
    inside = ((yy - cy) ** 2 / ry ** 2 + (xx - cx) ** 2 / rx ** 2) <= 1

    rain = np.zeros((rows, columns), dtype=np.float32)
    for _ in range(cells):
        py = cy + rng.uniform(-0.6, 0.6) * ry
        px = cx + rng.uniform(-0.6, 0.6) * rx
        s = rng.uniform(0.1, 0.3) * min(ry, rx)
        peak = rng.uniform(0.5, 1.0) * (max_level - 1)
        rain += peak * np.exp(-((yy - py) ** 2 + (xx - px) ** 2) / (2 * s * s))

    levels = np.zeros((rows, columns), dtype=np.uint8)
    levels[inside] = 1 + np.clip(np.round(rain[inside]), 0, max_level - 1).astype(np.uint8)
    return levels


def _section(number: int, body: bytes, length=None) -> bytes:
    if length is None:
        length = S.HEAD_SIZE + len(body)
    return struct.pack(S.HEAD_FMT, length, number) + body


def write_grib2(f, levels: np.ndarray, *, level_values=LEVEL_VALUES,
                reference_time=(2020, 7, 7, 7, 30, 0), max_level_used=None,
                max_level_defined=None, sec3_points=None, sec5_points=None,
                numbers=None, lengths=None, payload=None, sec1_extra=b"",
                sec5_pad=b"", **overrides):
    """
    Write a single-message file of the supported profile.

    levels: (rows, columns) array of level codes in raster order.
    Keyword overrides replace GRID / PROFILE entries, numbers={n: m} rewrites
    section numbers, lengths={n: L} rewrites declared section lengths and
    payload replaces the run-length bytes, so corrupt files can be produced
    on purpose. sec1_extra and sec5_pad append bytes to sections 1 and 5.
    """
    p = {**PROFILE, **GRID, **overrides}
    levels = np.asarray(levels)
    rows, columns = levels.shape
    rows = p.get("rows", rows)
    columns = p.get("columns", columns)
    numbers = numbers or {}
    lengths = lengths or {}
    if isinstance(reference_time, datetime):
        reference_time = (reference_time.year, reference_time.month, reference_time.day,
                          reference_time.hour, reference_time.minute, reference_time.second)
    maxv = int(levels.max()) if max_level_used is None else max_level_used
    max_level = len(level_values) if max_level_defined is None else max_level_defined
    npoints = rows * columns

    def num(n):
        return numbers.get(n, n)

    def section(n, body):
        return _section(num(n), body, lengths.get(n))

    sec1 = section(1, struct.pack(
        S.SEC1_FMT, 34, 0, p["master_table_version"], p["local_table_version"], 0,
        *reference_time, p["production_status"], p["data_type"]) + sec1_extra)
    sec3 = section(3, struct.pack(
        S.SEC3_FMT, p["grid_definition_source"],
        npoints if sec3_points is None else sec3_points,
        0, 0, p["grid_template"], p["earth_figure"], bytes(15),
        columns, rows, p["basic_angle"], b"\xff" * 4,
        p["northernmost"], p["westernmost"], 0x30,
        p["southernmost"], p["easternmost"],
        p["lon_increment"], p["lat_increment"], p["scanning_mode"]))
    sec4 = section(4, bytes(34 - S.HEAD_SIZE))
    sec5 = section(5, struct.pack(
        S.SEC5_FMT, npoints if sec5_points is None else sec5_points,
        p["data_template"], p["bits_per_code"], maxv, max_level, p["decimal_scale"])
        + struct.pack(f">{len(level_values)}H", *level_values) + sec5_pad)
    sec6 = section(6, struct.pack(">B", 255))
    if payload is None:
        payload = rle_encode(levels, maxv, p["bits_per_code"])
    sec7 = section(7, payload)

    body = sec1 + sec3 + sec4 + sec5 + sec6 + sec7
    total = S.SEC0_SIZE + len(body) + len(p["end_marker"])
    f.write(struct.pack(S.SEC0_FMT, p["magic"], b"\x00\x00",
                        p["discipline"], p["edition"], total))
    f.write(body)
    f.write(p["end_marker"])
    return total
