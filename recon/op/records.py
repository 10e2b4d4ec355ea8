# recon/op/records.py
# WO-01: Concrete record types satisfying the capability contracts
# CounterValue: Ordered + Empty + Eq; DataWrite: Ordered + Positioned + Empty + Eq

from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, TypeVar
from .bytes import check_u32, check_field

T = TypeVar("T")


@dataclass(frozen=True)
class CounterValue:
    """
    Side-effect record ordered by counter only (combiner input).

    Fields:
        value: opaque payload (field element)
        counter_: execution-order tag, 0 = public
    """
    value: int
    counter_: int

    def __post_init__(self):
        check_field(self.value, "value")
        check_u32(self.counter_, "counter")

    def counter(self) -> int:
        return self.counter_

    @classmethod
    def empty(cls) -> "CounterValue":
        return cls(0, 0)

    def to_fields(self) -> tuple[int, ...]:
        return (self.value, self.counter_)


@dataclass(frozen=True)
class DataWrite:
    """
    Storage write keyed by position (dedup input).

    Fields:
        position_: storage slot key (field element)
        value: written value (field element)
        counter_: execution-order tag, 0 = public
    """
    position_: int
    value: int
    counter_: int

    def __post_init__(self):
        check_field(self.position_, "position")
        check_field(self.value, "value")
        check_u32(self.counter_, "counter")

    def counter(self) -> int:
        return self.counter_

    def position(self) -> int:
        return self.position_

    @classmethod
    def empty(cls) -> "DataWrite":
        return cls(0, 0, 0)

    def to_fields(self) -> tuple[int, ...]:
        return (self.position_, self.value, self.counter_)


@dataclass(frozen=True)
class OrderHint:
    """
    Combined-order hint for one output slot.

    counter: counter of the record placed in the slot
    original_index: index of that record in its source array
    """
    counter: int
    original_index: int

    def __post_init__(self):
        check_u32(self.counter, "counter")
        check_u32(self.original_index, "original_index")

    @classmethod
    def empty(cls) -> "OrderHint":
        return cls(0, 0)

    def to_fields(self) -> tuple[int, ...]:
        return (self.counter, self.original_index)


@dataclass(frozen=True)
class SortedTuple(Generic[T]):
    """One entry of a witness sort: the element and where it came from."""
    original_index: int
    elem: T
