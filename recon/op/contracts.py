# recon/op/contracts.py
# WO-01: Capability contracts (Ordered, Positioned, Empty, Eq) and trusted array primitives
# Algorithms in recon.op are generic over any record type satisfying these protocols

from __future__ import annotations
from typing import Protocol, Sequence, TypeVar, runtime_checkable
from .errors import PaddingInvalid

# Frozen constants
U32_MAX = 2**32 - 1
# BN254 scalar field: positions and payloads are field-sized keys
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

T = TypeVar("T")


@runtime_checkable
class Ordered(Protocol):
    """Record tagged with an execution-order counter (u32, 0 = public)."""

    def counter(self) -> int:
        ...


@runtime_checkable
class Positioned(Protocol):
    """Record carrying the storage key it is grouped and deduplicated by."""

    def position(self) -> int:
        ...


@runtime_checkable
class Empty(Protocol):
    """Record type with a designated "no record here" sentinel."""

    @classmethod
    def empty(cls):
        ...


@runtime_checkable
class Eq(Protocol):
    """Structural equality (dataclass __eq__ satisfies it)."""

    def __eq__(self, other: object) -> bool:
        ...


def is_empty(x: Empty) -> bool:
    """
    True iff x equals its type's empty sentinel.

    Contract:
    Emptiness is decided by equality with Self::empty(), never by a flag,
    so a record whose fields all equal the sentinel's fields IS empty.
    """
    return x == type(x).empty()


def array_length(arr: Sequence[T]) -> int:
    """
    Count of the non-empty prefix (index of the first empty item).

    Trusted primitive: assumes arr is validly padded. Scans all N slots
    so the loop shape does not depend on where the padding begins.

    Args:
        arr: fixed-capacity array of Empty records

    Returns:
        int: logical length in [0, N]
    """
    length = len(arr)
    found = False
    for i, item in enumerate(arr):
        hit = is_empty(item) and not found
        length = i if hit else length
        found = found or hit
    return length


def validate_array(arr: Sequence[T]) -> int:
    """
    Check empty padding is a contiguous suffix and return the logical length.

    Contract:
    No empty item may appear before a non-empty item.

    Args:
        arr: fixed-capacity array of Empty records

    Returns:
        int: number of non-empty items

    Raises:
        PaddingInvalid: if a non-empty item follows an empty one
    """
    seen_empty = False
    length = 0
    for i, item in enumerate(arr):
        empty = is_empty(item)
        if seen_empty and not empty:
            raise PaddingInvalid(f"non-empty item at index {i} follows padding")
        seen_empty = seen_empty or empty
        length += 0 if empty else 1
    return length


def count_private_items(arr: Sequence[T]) -> int:
    """
    Number of non-empty items whose counter is nonzero.

    A non-empty record with counter == 0 (a public-domain record) is
    excluded here but still counted by array_length.
    """
    count = 0
    for item in arr:
        count += 1 if (not is_empty(item)) and item.counter() != 0 else 0
    return count


def check_capacity(*arrays: Sequence) -> int:
    """
    Check all arrays share one fixed capacity N and return it.

    Raises:
        ValueError: if capacities differ (calling-convention error)
    """
    sizes = {len(a) for a in arrays}
    if len(sizes) != 1:
        raise ValueError(f"Arrays must share one capacity, got lengths {[len(a) for a in arrays]}")
    return sizes.pop()
