# recon/op/order_hints.py
# WO-03: Order-hint combiner (lt ▷ gte, private ▷ public)
# Merges two counter-sorted arrays into one combined-order hint layout

"""
Contract (WO-03):
Given A ("lt") and B ("gte"), each of capacity N, the output layout is

    [0, p1)          A's private items, ascending counter
    [p1, p1+p2)      B's private items, ascending counter
    [p1+p2, l1+p2)   A's remaining (zero-counter) items, sorted order
    [l1+p2, N)       B's remaining items

with p1/p2 = private counts and l1 = array_length(A). The two private runs
are laid out back-to-back, never cross-interleaved: callers hand in sources
whose counter ranges do not overlap.

This is a HINT. Nothing is asserted; the layout is checked downstream
against the source arrays. The boundary arithmetic and selection order are
frozen (downstream treats the layout as bit-exact).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple
from .contracts import array_length, count_private_items, check_capacity, is_empty
from .hash import hash_records
from .records import OrderHint, SortedTuple
from .sort_hint import sort_get_sorted_tuple, compare_by_counter_empty_padded_asc


@dataclass
class HintsRc:
    """
    Combiner receipt.

    Partition points are recorded so a layout can be audited without
    re-running the sort.
    """
    capacity: int
    num_private_lt: int
    num_private_gte: int
    len_lt: int
    total_private: int
    total_non_public_gte: int
    lt_hash: str          # BLAKE3 over A (padding included)
    gte_hash: str         # BLAKE3 over B
    hints_hash: str       # BLAKE3 over the hint array


def _hint(t: SortedTuple) -> OrderHint:
    """Hint for one sorted slot; empty padding yields OrderHint.empty()."""
    if is_empty(t.elem):
        return OrderHint.empty()
    return OrderHint(t.elem.counter(), t.original_index)


def get_order_hints_asc(array: Sequence) -> List[OrderHint]:
    """
    Ascending-counter hints for a single array.

    Private items first by counter, then zero-counter items in their
    original order, then OrderHint.empty() for padding.
    """
    sorted_tuples = sort_get_sorted_tuple(array, compare_by_counter_empty_padded_asc)
    return [_hint(t) for t in sorted_tuples]


def get_combined_order_hints_asc(array_lt: Sequence, array_gte: Sequence) -> List[OrderHint]:
    """
    Combined-order hints for two arrays of equal capacity.

    Algorithm (one pass, O(1) per slot, no comparisons at combine time):
    1. Witness-sort both arrays by counter (private first)
    2. p1, p2 = private counts; l1 = array_length(A)
    3. For each slot i in 0..N select by comparing i to
       p1, p1+p2, l1+p2 in that order:
         i < p1       -> sorted_lt[i]
         i < p1+p2    -> sorted_gte[i - p1]
         i < l1+p2    -> sorted_lt[i - p2]
         otherwise    -> sorted_gte[i - l1]

    Args:
        array_lt: source A
        array_gte: source B

    Returns:
        list[OrderHint] of length N

    Raises:
        ValueError: if the arrays differ in capacity
    """
    n = check_capacity(array_lt, array_gte)

    sorted_lt = sort_get_sorted_tuple(array_lt, compare_by_counter_empty_padded_asc)
    sorted_gte = sort_get_sorted_tuple(array_gte, compare_by_counter_empty_padded_asc)

    num_private_lt = count_private_items(array_lt)
    num_private_gte = count_private_items(array_gte)
    len_lt = array_length(array_lt)
    total_private = num_private_lt + num_private_gte
    total_non_public_gte = len_lt + num_private_gte

    hints = [OrderHint.empty()] * n
    for i in range(n):
        if i < num_private_lt:
            hints[i] = _hint(sorted_lt[i])
        elif i < total_private:
            hints[i] = _hint(sorted_gte[i - num_private_lt])
        elif i < total_non_public_gte:
            hints[i] = _hint(sorted_lt[i - num_private_gte])
        else:
            hints[i] = _hint(sorted_gte[i - len_lt])

    return hints


def combine_order_hints(array_lt: Sequence, array_gte: Sequence) -> Tuple[List[OrderHint], HintsRc]:
    """
    get_combined_order_hints_asc plus its receipt.

    Returns:
        (hints, HintsRc)
    """
    hints = get_combined_order_hints_asc(array_lt, array_gte)

    num_private_lt = count_private_items(array_lt)
    num_private_gte = count_private_items(array_gte)
    len_lt = array_length(array_lt)

    receipt = HintsRc(
        capacity=len(hints),
        num_private_lt=num_private_lt,
        num_private_gte=num_private_gte,
        len_lt=len_lt,
        total_private=num_private_lt + num_private_gte,
        total_non_public_gte=len_lt + num_private_gte,
        lt_hash=hash_records(array_lt),
        gte_hash=hash_records(array_gte),
        hints_hash=hash_records(hints),
    )
    return hints, receipt
