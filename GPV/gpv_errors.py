class Grib2Error(ValueError):
    """Base class for every fatal decoding error."""


class MalformedMagic(Grib2Error):
    def __init__(self, marker: bytes):
        self.marker = marker
        super().__init__(f"Malformed stream: bad magic {marker!r} (not GRIB)")


class UnexpectedConstant(Grib2Error):
    def __init__(self, field: str, expected, actual):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(f"Unsupported {field}: expected {expected}, got {actual}")


class SectionNumberMismatch(Grib2Error):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Section number mismatch: expected {expected}, got {actual}")


class PointCountMismatch(Grib2Error):
    def __init__(self, section_a: int, section_b: int):
        self.section_a = section_a
        self.section_b = section_b
        super().__init__(
            f"Number of points differs (section 3: {section_a}, section 5: {section_b})"
        )


class InvalidDateTime(Grib2Error):
    pass


class TruncatedRead(Grib2Error):
    def __init__(self, field: str, expected: int, actual: int):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Malformed stream: {field} truncated (wanted {expected} bytes, got {actual})"
        )


class RunLengthCountMismatch(Grib2Error):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Failed to read points (expected {expected}, read {actual})")


class MissingEndMarker(Grib2Error):
    def __init__(self, marker: bytes):
        self.marker = marker
        super().__init__(f"Malformed stream: end marker is {marker!r}, not b'7777'")


class LevelTableError(Grib2Error):
    pass


class InvalidRunLength(Grib2Error):
    pass
