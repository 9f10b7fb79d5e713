import io

import numpy as np
import pytest

from gpv_phantom import GRID, LEVEL_VALUES, write_grib2
from gpv_sections import GridGeometry, POINTS_ALONG_MERIDIAN, POINTS_ALONG_PARALLEL

ROWS = POINTS_ALONG_MERIDIAN
COLUMNS = POINTS_ALONG_PARALLEL


@pytest.fixture
def levels():
    """Full-size grid, almost all missing, a few known non-missing cells."""
    x = np.zeros((ROWS, COLUMNS), dtype=np.uint8)
    x[0, 0] = 3
    x[10, COLUMNS - 1] = 5
    x[11, 0] = 5                 # continues the run across the row wrap
    x[100:103, 200:205] = 1
    x[2000, 1000:1300] = 77
    x[ROWS - 1, COLUMNS - 1] = 2
    return x


@pytest.fixture
def make_file():
    def make(levels, **kwargs):
        buf = io.BytesIO()
        write_grib2(buf, levels, **kwargs)
        buf.seek(0)
        return buf
    return make


@pytest.fixture
def profile_geometry():
    return GridGeometry(point_count=ROWS * COLUMNS, columns=COLUMNS, rows=ROWS, **GRID)


@pytest.fixture
def expected_rows():
    """Rows a correct decoder emits for levels, computed cell by cell."""
    return _expected_rows


def _expected_rows(levels, boundary=None):
    out = []
    for r, c in np.argwhere(levels > 0):
        lon = GRID["westernmost"] + int(c) * GRID["lon_increment"]
        lat = GRID["northernmost"] - int(r) * GRID["lat_increment"]
        if boundary is not None and not boundary.contains(lon, lat):
            continue
        out.append((lon / 1e6, lat / 1e6, LEVEL_VALUES[levels[r, c] - 1]))
    return out
