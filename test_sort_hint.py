#!/usr/bin/env python3
"""WO-02 Witness Sort Helper Tests"""

import numpy as np
from recon.op.errors import PaddingInvalid
from recon.op.records import CounterValue, DataWrite
from recon.op.sort_hint import (
    sort_get_sorted_tuple,
    compare_by_counter_empty_padded_asc,
    compare_by_position_then_counter,
    build_dedup_hints,
)


def test_counter_sort_keeps_originals():
    """Test counter sort: private ascending, then public and padding in original order."""
    print("Testing counter sort...")

    e = CounterValue.empty()
    arr = [CounterValue(10, 0), CounterValue(20, 7), CounterValue(30, 0), CounterValue(40, 2), e, e]
    out = sort_get_sorted_tuple(arr, compare_by_counter_empty_padded_asc)

    assert [t.original_index for t in out] == [3, 1, 0, 2, 4, 5], f"Got {[t.original_index for t in out]}"
    assert [t.elem for t in out][:2] == [arr[3], arr[1]]

    print("  ✓ Counter sort stable")


def test_comparators():
    """Test comparator precedence rules."""
    print("Testing comparators...")

    e = CounterValue.empty()
    assert compare_by_counter_empty_padded_asc(CounterValue(1, 2), CounterValue(1, 3))
    assert not compare_by_counter_empty_padded_asc(CounterValue(1, 3), CounterValue(1, 2))
    assert compare_by_counter_empty_padded_asc(CounterValue(1, 9), CounterValue(1, 0))
    assert not compare_by_counter_empty_padded_asc(CounterValue(1, 0), e)
    assert not compare_by_counter_empty_padded_asc(e, CounterValue(1, 0))

    d = DataWrite.empty()
    assert compare_by_position_then_counter(DataWrite(1, 0, 5), DataWrite(2, 0, 1))
    assert compare_by_position_then_counter(DataWrite(2, 0, 1), DataWrite(2, 0, 5))
    assert compare_by_position_then_counter(DataWrite(9, 0, 9), d)
    assert not compare_by_position_then_counter(d, DataWrite(0, 0, 1))

    print("  ✓ Comparators correct")


def test_build_dedup_hints():
    """Test hint builder collapses runs keeping the latest write."""
    print("Testing build_dedup_hints...")

    arr = [
        DataWrite(5, 50, 2),
        DataWrite(3, 30, 1),
        DataWrite(5, 51, 7),
        DataWrite(3, 31, 4),
        DataWrite(8, 80, 3),
        DataWrite.empty(),
    ]
    hints = build_dedup_hints(arr)

    assert [(x.position(), x.counter()) for x in hints.sorted_array[:5]] == [(3, 1), (3, 4), (5, 2), (5, 7), (8, 3)]
    assert hints.sorted_indexes == [1, 3, 0, 2, 4, 5]
    assert hints.deduped[:3] == [DataWrite(3, 31, 4), DataWrite(5, 51, 7), DataWrite(8, 80, 3)]
    assert hints.deduped[3:] == [DataWrite.empty()] * 3
    assert hints.run_lengths.dtype == np.uint32
    assert list(hints.run_lengths) == [2, 2, 1, 0, 0, 0]

    print("  ✓ Dedup hints built")


def test_build_dedup_hints_edges():
    """Test empty inputs and invalid padding."""
    print("Testing build_dedup_hints edge cases...")

    hints = build_dedup_hints([])
    assert hints.sorted_array == [] and hints.deduped == [] and len(hints.run_lengths) == 0

    hints = build_dedup_hints([DataWrite.empty()] * 3)
    assert list(hints.run_lengths) == [0, 0, 0]
    assert hints.deduped == [DataWrite.empty()] * 3

    try:
        build_dedup_hints([DataWrite.empty(), DataWrite(1, 1, 1)])
    except PaddingInvalid:
        pass
    else:
        raise AssertionError("Invalid padding should raise PaddingInvalid")

    print("  ✓ Edge cases handled")


def run_tests():
    print("\n" + "="*60)
    print("WO-02 Witness Sort Helper Tests")
    print("="*60 + "\n")

    test_counter_sort_keeps_originals()
    test_comparators()
    test_build_dedup_hints()
    test_build_dedup_hints_edges()

    print("\n" + "="*60)
    print("✓ All WO-02 tests passed")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_tests()
