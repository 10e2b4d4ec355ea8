# recon/op/hash.py
# WO-00: BLAKE3 hashing helpers
# Receipt fingerprints only; these are not commitments

from __future__ import annotations
from typing import Iterable, Sequence
from blake3 import blake3
from .bytes import to_bytes_u32, frame_fields


def hash_bytes(b: bytes) -> str:
    """
    Hash bytes with BLAKE3, return hex digest.

    Args:
        b: bytes to hash

    Returns:
        str: hex digest (64 hex chars = 256 bits)
    """
    return blake3(b).hexdigest()


def hash_u32_table(values: Iterable[int]) -> str:
    """Hash a u32 table using its uint32_le serialization."""
    return hash_bytes(to_bytes_u32(values))


def hash_records(arr: Sequence) -> str:
    """
    Hash a fixed-capacity record array, padding included.

    Each record contributes frame_fields(*record.to_fields()); records are
    concatenated in slot order so the digest also pins the capacity.
    """
    h = blake3()
    for item in arr:
        h.update(frame_fields(*item.to_fields()))
    return h.hexdigest()
