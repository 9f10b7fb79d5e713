from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Tuple

from gpv_errors import InvalidRunLength, RunLengthCountMismatch
from gpv_sections import GridGeometry

MICRO = 1_000_000

Emit = Callable[[float, float, int], None]


@dataclass(frozen=True)
class Boundary:
    """Inclusive output window in micro-degrees; None leaves a side open."""
    northernmost: Optional[int] = None
    southernmost: Optional[int] = None
    westernmost: Optional[int] = None
    easternmost: Optional[int] = None

    def contains(self, longitude: int, latitude: int) -> bool:
        if self.northernmost is not None and self.northernmost < latitude:
            return False
        if self.southernmost is not None and latitude < self.southernmost:
            return False
        if self.westernmost is not None and longitude < self.westernmost:
            return False
        if self.easternmost is not None and self.easternmost < longitude:
            return False
        return True


class ScanCursor:
    """Raster position: west->east within a row, rows north->south."""

    def __init__(self, geometry: GridGeometry):
        self.west = geometry.westernmost
        self.east = geometry.easternmost
        self.dlon = geometry.lon_increment
        self.dlat = geometry.lat_increment
        self.columns = (self.east - self.west) // self.dlon + 1
        self.longitude = geometry.westernmost
        self.latitude = geometry.northernmost

    @property
    def position(self) -> Tuple[int, int]:
        return self.longitude, self.latitude

    def step(self):
        self.longitude += self.dlon
        if self.east < self.longitude:
            self.longitude = self.west
            self.latitude -= self.dlat

    def skip(self, count: int):
        """Same end position as calling step() count times."""
        column = (self.longitude - self.west) // self.dlon
        rows, column = divmod(column + count, self.columns)
        self.longitude = self.west + column * self.dlon
        self.latitude -= rows * self.dlat


def walk_runs(runs: Iterable[Tuple[int, int]], geometry: GridGeometry,
              level_to_value: Sequence[int], boundary: Boundary, emit: Emit) -> int:
    """
    Place decoded runs on the grid in raster order and emit
    (lon, lat, value) for non-missing cells inside the boundary.
    Returns the number of cells visited.
    """
    cursor = ScanCursor(geometry)
    total = 0
    for level, count in runs:
        total += count
        if total > geometry.point_count:
            raise RunLengthCountMismatch(geometry.point_count, total)
        if level == 0:
            # missing: no output, jump straight to the end of the run
            cursor.skip(count)
            continue
        if level > len(level_to_value):
            raise InvalidRunLength(f"level {level} has no entry in the level table")
        value = level_to_value[level - 1]
        for _ in range(count):
            if boundary.contains(cursor.longitude, cursor.latitude):
                emit(cursor.longitude / MICRO, cursor.latitude / MICRO, value)
            cursor.step()
    return total
