import numpy as np
from typing import Iterable, Iterator, List, Sequence, Tuple

from gpv_errors import InvalidRunLength

# Set-boundary states while scanning codewords
_START = 0          # no level code seen yet
_ACCUMULATING = 1   # a level code is open, continuation codes may follow


def expand_run_length(codes: Sequence[int], maxv: int, lngu: int) -> Tuple[int, int]:
    """
    Expand one run-length set into (level, count).

    codes[0] is a level (0..maxv); any codes after it are continuation codes
    (> maxv) forming a base-LNGU number, least significant digit first:
        count = 1 + sum((codes[i] - (maxv + 1)) * lngu ** (i - 1))

    NBIT=4, MAXV=10 -> LNGU=5:
        [9, 12]     -> (9, 2)
        [0, 13, 12] -> (0, 2 + 5 + 1) = (0, 8)
    """
    level = codes[0]
    if level > maxv:
        raise InvalidRunLength(f"set starts with {level}, above MAXV {maxv}")
    if len(codes) == 1:
        return level, 1
    count = 0
    weight = 1
    for v in codes[1:]:
        count += (v - (maxv + 1)) * weight
        weight *= lngu
    return level, count + 1


def iter_runs(codes: Iterable[int], maxv: int, lngu: int) -> Iterator[Tuple[int, int]]:
    """Split a codeword stream into sets and yield (level, count) per set."""
    state = _START
    run: List[int] = []
    for v in codes:
        if v <= maxv:
            # a level code closes the open set and starts the next one
            if state == _ACCUMULATING:
                yield expand_run_length(run, maxv, lngu)
            run = [v]
            state = _ACCUMULATING
        elif state == _ACCUMULATING:
            run.append(v)
        else:
            raise InvalidRunLength(f"continuation code {v} before any level code")
    if state == _ACCUMULATING:
        yield expand_run_length(run, maxv, lngu)


def encode_run(level: int, count: int, maxv: int, lngu: int) -> List[int]:
    if count < 1:
        raise ValueError("run count must be positive")
    if lngu < 2:
        raise ValueError(f"LNGU {lngu} cannot encode repeats")
    out = [level]
    n = count - 1
    while n > 0:
        n, digit = divmod(n, lngu)
        out.append(digit + maxv + 1)
    return out


def rle_encode(levels: np.ndarray, maxv: int, nbit: int = 8) -> bytes:
    """
    Input: level array in raster order (any shape, flattened C-order)
    Output: run-length codeword bytes (one byte per code, nbit == 8)
    """
    flat = np.asarray(levels).ravel()
    if flat.size == 0:
        return b""
    if int(flat.max()) > maxv:
        raise ValueError("level above MAXV")
    lngu = 2 ** nbit - 1 - maxv
    starts = np.concatenate(([0], np.flatnonzero(np.diff(flat)) + 1))
    counts = np.diff(np.concatenate((starts, [flat.size])))
    out = bytearray()
    for s, c in zip(starts, counts):
        out.extend(encode_run(int(flat[s]), int(c), maxv, lngu))
    return bytes(out)
