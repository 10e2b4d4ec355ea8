# recon/op/sort_hint.py
# WO-02: Witness sort helper (untrusted, out-of-band)
# Produces candidate orderings and dedup hints; nothing here is a source of soundness

"""
Contract (WO-02):
Everything in this module computes HINTS. Outputs are supplied to the
verifiers in recon.op.dedup / recon.op.order_hints as inputs and are never
trusted there. Sorting happens only here; the verified path never sorts.

Comparators follow the "a may precede b" convention (bool). Sorting is
stable, so items the comparator cannot separate keep their original
relative order.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, Generic, List, Sequence, TypeVar
import numpy as np
from .contracts import is_empty, validate_array
from .records import SortedTuple

T = TypeVar("T")

Ordering = Callable[[T, T], bool]


def _is_private(x) -> bool:
    """Non-empty and execution-ordered (counter > 0)."""
    return (not is_empty(x)) and x.counter() != 0


def compare_by_counter_empty_padded_asc(a, b) -> bool:
    """
    Private items first by ascending counter; zero-counter and empty items after.

    Two non-private items never separate, so the stable sort leaves
    public records ahead of the empty padding they preceded.
    """
    a_priv = _is_private(a)
    b_priv = _is_private(b)
    return a_priv and ((not b_priv) or a.counter() <= b.counter())


def compare_by_position_then_counter(a, b) -> bool:
    """Non-empty items by (position, counter) ascending; empty items last."""
    if is_empty(a):
        return False
    if is_empty(b):
        return True
    return (a.position(), a.counter()) <= (b.position(), b.counter())


def _three_way(ordering: Ordering) -> Callable[[SortedTuple, SortedTuple], int]:
    """Lift a boolean precedence predicate to a cmp function over SortedTuples."""

    def cmp(s: SortedTuple, t: SortedTuple) -> int:
        st = ordering(s.elem, t.elem)
        ts = ordering(t.elem, s.elem)
        if st and not ts:
            return -1
        if ts and not st:
            return 1
        return 0

    return cmp


def sort_get_sorted_tuple(arr: Sequence[T], ordering: Ordering) -> List[SortedTuple[T]]:
    """
    Sort arr by ordering, remembering each element's original index.

    Args:
        arr: fixed-capacity record array
        ordering: "a may precede b" predicate (must be a total preorder)

    Returns:
        list of SortedTuple(original_index, elem), same length as arr
    """
    tuples = [SortedTuple(i, x) for i, x in enumerate(arr)]
    return sorted(tuples, key=cmp_to_key(_three_way(ordering)))


@dataclass
class DedupHints(Generic[T]):
    """
    Dedup witness for one array.

    sorted_array: input sorted by (position, counter), empty padded
    deduped: last (highest-counter) item of every position run, empty padded
    run_lengths: u32 table, one entry per run, zero padded
    sorted_indexes: original index of each sorted slot
    """
    sorted_array: List[T]
    deduped: List[T]
    run_lengths: np.ndarray
    sorted_indexes: List[int]


def build_dedup_hints(arr: Sequence[T]) -> DedupHints[T]:
    """
    Build (sorted, deduped, run_lengths) hints for an unsorted array.

    Algorithm:
    1. Stable sort by (position, counter), empty items last
    2. Walk the non-empty prefix; a new run starts whenever position changes
    3. Keep the closing item of each run (highest counter)

    Args:
        arr: validly padded array of Positioned + Ordered + Empty records

    Returns:
        DedupHints

    Raises:
        PaddingInvalid: if arr is not validly padded
    """
    n = len(arr)
    length = validate_array(arr)
    sorted_tuples = sort_get_sorted_tuple(arr, compare_by_position_then_counter)
    sorted_array = [t.elem for t in sorted_tuples]

    deduped: List[T] = []
    run_lengths: List[int] = []
    for i in range(length):
        item = sorted_array[i]
        if i == 0 or item.position() != sorted_array[i - 1].position():
            run_lengths.append(0)
            deduped.append(item)
        run_lengths[-1] += 1
        deduped[-1] = item

    if n > 0:
        pad = type(arr[0]).empty()
        deduped += [pad] * (n - len(deduped))
    run_lengths += [0] * (n - len(run_lengths))

    return DedupHints(
        sorted_array=sorted_array,
        deduped=deduped,
        run_lengths=np.array(run_lengths, dtype=np.uint32),
        sorted_indexes=[t.original_index for t in sorted_tuples],
    )
