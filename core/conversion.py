"""
Conversions between integers, byte strings and alphabet strings, plus the
byte-array helpers used to build codes and OT masks.

All integers are non-negative and encoded big-endian.
"""

import math
from typing import Optional


def integer_to_bytes(x: int, length: Optional[int] = None) -> bytes:
    """Encode x big-endian, left padded to `length` bytes (minimal when omitted)"""
    if x < 0:
        raise ValueError("x must be non-negative")
    minimal_length = (x.bit_length() + 7) // 8
    if length is None:
        length = minimal_length
    if length < minimal_length:
        raise ValueError(f"{x} does not fit into {length} bytes")
    return x.to_bytes(length, 'big')


def bytes_to_integer(data: bytes) -> int:
    return int.from_bytes(data, 'big')


def string_to_bytes(s: str) -> bytes:
    return s.encode('utf-8')


def integer_to_string(x: int, k: int, alphabet: str) -> str:
    """Encode x as exactly k characters of `alphabet` (most significant first)"""
    if x < 0:
        raise ValueError("x should be a non-negative integer")
    base = len(alphabet)
    if base ** k <= x:
        raise ValueError(f"x is too large to be encoded with {k} characters of the alphabet")

    chars = []
    current = x
    for _ in range(k):
        current, remainder = divmod(current, base)
        chars.append(alphabet[remainder])
    return ''.join(reversed(chars))


def string_to_integer(s: str, alphabet: str) -> int:
    base = len(alphabet)
    x = 0
    for char in s:
        rank = alphabet.find(char)
        if rank < 0:
            raise ValueError(f"character {char!r} not found in alphabet {alphabet!r}")
        x = x * base + rank
    return x


def bytes_to_string(data: bytes, alphabet: str) -> str:
    k = math.ceil(8 * len(data) / math.log2(len(alphabet)))
    return integer_to_string(bytes_to_integer(data), k, alphabet)


# ============================================================================
# BYTE ARRAY UTILITIES
# ============================================================================


def xor_bytes(a: bytes, b: bytes) -> bytes:
    if len(a) != len(b):
        raise ValueError(
            f"The arrays should have the same size. |a| = [{len(a)}], |b| = [{len(b)}]")
    return bytes(x ^ y for x, y in zip(a, b))


def concatenate(*parts: bytes) -> bytes:
    return b''.join(parts)


def truncate(data: bytes, length: int) -> bytes:
    if len(data) < length:
        raise ValueError("The given array is smaller than the requested length")
    return data[:length]


def extract(data: bytes, start: int, end: int) -> bytes:
    if start < 0:
        raise ValueError("Start index must be non-negative")
    if start >= end:
        raise ValueError("The starting position must be strictly smaller than the ending position")
    if len(data) < end:
        raise ValueError("The ending position may not be larger than the array's length")
    return data[start:end]


def set_bit(data: bytes, i: int, bit: bool) -> bytes:
    """Copy of `data` with bit i (little-endian within each byte) set to `bit`"""
    if not 0 <= i < 8 * len(data):
        raise ValueError("i must index a bit of the array")
    result = bytearray(data)
    mask = 1 << (i % 8)
    if bit:
        result[i // 8] |= mask
    else:
        result[i // 8] &= 0xFF - mask
    return bytes(result)


def mark_byte_array(data: bytes, m: int, m_max: int) -> bytes:
    """
    Embed m into `data` by overwriting bit_length(m_max) bits spread evenly
    over the array, so that codes of different positions always differ.
    """
    if m < 0:
        raise ValueError("m must be non-negative")
    if m > m_max:
        raise ValueError("m must be smaller or equal to m_max")
    l = m_max.bit_length()
    if l > 8 * len(data):
        raise ValueError("m_max must be smaller or equal to the number of bits in the array")

    spacing = (8 * len(data)) / l
    result = data
    for i in range(l):
        result = set_bit(result, math.floor(i * spacing), m % 2 == 1)
        m //= 2
    return result
