import struct

from gpv_errors import TruncatedRead

U8 = struct.Struct(">B")
U16 = struct.Struct(">H")
U32 = struct.Struct(">I")


def read_bytes(f, n: int, field: str) -> bytes:
    data = f.read(n)
    if len(data) != n:
        raise TruncatedRead(field, n, len(data))
    return data


def skip(f, n: int, field: str):
    """Read and drop n bytes (works on streams that cannot seek)."""
    read_bytes(f, n, field)


def _read(f, fmt: struct.Struct, field: str) -> int:
    (value,) = fmt.unpack(read_bytes(f, fmt.size, field))
    return value


def read_u8(f, field: str) -> int:
    return _read(f, U8, field)


def read_u16(f, field: str) -> int:
    return _read(f, U16, field)


def read_u32(f, field: str) -> int:
    return _read(f, U32, field)
