import re
from typing import Iterator, Tuple

import numpy as np
from numba import njit

NEWLINE = ord("\n")
CARRIAGE_RETURN = ord("\r")
SPACE = ord(" ")
TAB = ord("\t")

INTEGER_TOKEN = re.compile(rb"-?[0-9]+")
DECIMAL_TOKEN = re.compile(rb"-?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][-+]?[0-9]+)?")


def iter_line_segments(chunk: np.ndarray) -> Iterator[Tuple[int, int, bool]]:
    """
    Split a refill into line segments.
    Yields: (begin, end, terminated) where chunk[begin:end] excludes the newline and
    terminated tells whether a newline follows the segment inside this refill.
    """
    begin = 0
    for newline in np.flatnonzero(chunk == NEWLINE):
        end = int(newline)
        yield begin, end, True
        begin = end + 1
    if begin < chunk.shape[0]:
        yield begin, chunk.shape[0], False


@njit
def is_space(c):
    # ' ', '\t', '\n', '\v', '\f', '\r'
    return c == 32 or (c >= 9 and c <= 13)


@njit
def strip_bounds(data, begin, end):
    """
    Trim surrounding whitespace from data[begin:end].

    WARNING: This function is JIT-compiled with @njit. Only pass numpy uint8 arrays and ints.

    Returns: (begin, end) of the trimmed span
    """
    while begin < end and is_space(data[begin]):
        begin += 1
    while end > begin and is_space(data[end - 1]):
        end -= 1
    return begin, end


@njit
def split_fields(line, begin, end, delimiter, bounds):
    """
    Tokenize line[begin:end] on a single delimiter byte, left to right.
    Bounds of the first bounds.shape[0] tokens are written into bounds as (begin, end) rows,
    every token is counted so arity errors can be reported.

    WARNING: This function is JIT-compiled with @njit. Only pass numpy arrays and ints.

    Returns: number of tokens in the line
    """
    capacity = bounds.shape[0]
    count = 0
    start = begin
    for i in range(begin, end):
        if line[i] == delimiter:
            if count < capacity:
                bounds[count, 0] = start
                bounds[count, 1] = i
            count += 1
            start = i + 1
    if count < capacity:
        bounds[count, 0] = start
        bounds[count, 1] = end
    return count + 1



def parse_int(token: bytes) -> int:
    """Plain decimal integer with an optional leading '-'. Raises: ValueError"""
    token = token.strip()
    if not INTEGER_TOKEN.fullmatch(token):
        raise ValueError(f"invalid integer {token!r}")
    return int(token)


def parse_float(token: bytes) -> float:
    """Decimal or exponent notation, no 'nan'/'inf' spellings. Raises: ValueError"""
    token = token.strip()
    if not DECIMAL_TOKEN.fullmatch(token):
        raise ValueError(f"invalid decimal {token!r}")
    return float(token)
