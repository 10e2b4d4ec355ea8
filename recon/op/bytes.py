# recon/op/bytes.py
# WO-00: Canonical encodings (uint32_le tables, field elements, varints)
# Every receipt hash is taken over these encodings only

from __future__ import annotations
from typing import Iterable
import numpy as np
from .contracts import U32_MAX, FIELD_MODULUS

FIELD_BYTES = 32


def check_u32(n: int, name: str = "value") -> int:
    """
    Validate n is an unsigned 32-bit integer.

    Raises:
        ValueError: if n is negative or exceeds U32_MAX
    """
    n = int(n)
    if n < 0 or n > U32_MAX:
        raise ValueError(f"{name} must be a u32, got {n}")
    return n


def check_field(x: int, name: str = "value") -> int:
    """
    Validate x is a canonical field element in [0, FIELD_MODULUS).

    Raises:
        ValueError: if x is out of range
    """
    x = int(x)
    if x < 0 or x >= FIELD_MODULUS:
        raise ValueError(f"{name} must be a field element in [0, p), got {x}")
    return x


def to_u32_table(values: Iterable[int]) -> np.ndarray:
    """
    Normalize a sequence of u32 values to a 1-D uint32 array.

    Range is checked on the Python ints before the cast so that
    negative or oversized entries fail instead of wrapping.

    Raises:
        ValueError: if any entry is not a u32 or the table is not 1-D
    """
    if isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise ValueError(f"u32 table must be 1-D, got shape {values.shape}")
        if values.dtype.kind not in "iu":
            raise TypeError("u32 table must be integer dtype")
    checked = [check_u32(v, "table entry") for v in values]
    return np.array(checked, dtype=np.uint32)


def to_bytes_u32(values: Iterable[int]) -> bytes:
    """
    Encode a u32 table as uint32 little-endian bytes.

    Args:
        values: u32 entries (list or numpy array)

    Returns:
        bytes: 4 bytes per entry, little-endian
    """
    t = to_u32_table(values)
    return t.astype(np.dtype("<u4"), copy=False).tobytes(order="C")


def field_bytes(x: int) -> bytes:
    """Encode a field element as 32 little-endian bytes."""
    return check_field(x).to_bytes(FIELD_BYTES, "little")


def varu(n: int) -> bytes:
    """
    Encode unsigned integer as LEB128 varint.

    Args:
        n: unsigned integer (must be >= 0)

    Returns:
        bytes: LEB128 varint

    Raises:
        ValueError: if n < 0
    """
    if n < 0:
        raise ValueError("varu expects unsigned (n >= 0)")

    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            break
    return bytes(out)


def unvaru(b: bytes) -> tuple[int, bytes]:
    """
    Decode LEB128 varint from bytes.

    Returns:
        (value, remaining_bytes): decoded value and unconsumed bytes
    """
    result = 0
    shift = 0
    i = 0

    while i < len(b):
        byte = b[i]
        i += 1
        result |= (byte & 0x7F) << shift
        if not (byte & 0x80):
            return result, b[i:]
        shift += 7

    raise ValueError("Incomplete LEB128 varint")


def frame_fields(*fields: int) -> bytes:
    """
    Frame a record's fields as <count><f1>...<fk>.

    count is a LEB128 varint, each field a 32-byte little-endian element.
    """
    out = bytearray()
    out += varu(len(fields))
    for f in fields:
        out += field_bytes(f)
    return bytes(out)


def unframe_fields(b: bytes) -> list[int]:
    """
    Inverse of frame_fields.

    Raises:
        ValueError: if the buffer is truncated or has trailing bytes
    """
    count, remaining = unvaru(b)
    if len(remaining) != count * FIELD_BYTES:
        raise ValueError(f"Expected {count * FIELD_BYTES} field bytes, got {len(remaining)}")
    return [
        int.from_bytes(remaining[i * FIELD_BYTES:(i + 1) * FIELD_BYTES], "little")
        for i in range(count)
    ]
