#!/usr/bin/env python3
"""
WO-04 Dedup-Run Verifier Tests

Tests:
1. Literal five-run collapse is accepted
2. Unique positions: deduped == sorted, all run lengths 1
3. Single run spanning the whole array
4. All-empty input passes with zero runs
5. Each failure code fires on its own violation
6. Completeness: sum(run_lengths) == array_length(sorted)
7. Masked scan and direct walk agree on randomized witnesses
8. Receipt fields and determinism

Contract (WO-04):
Closing item of every run equals the deduped entry; counters strictly
increase inside a run; run starts strictly increase by position.
"""

import numpy as np
from recon.op.contracts import array_length, validate_array
from recon.op.dedup import assert_deduped_array, assert_deduped_array_direct, verify_deduped_array
from recon.op.errors import (
    ReconError,
    RunPositionOrderViolation,
    RunLengthExhausted,
    RunPositionMismatch,
    DedupValueMismatch,
    RunCounterOrderViolation,
    DedupLengthMismatch,
    PaddingInvalid,
)
from recon.op.records import DataWrite
from recon.op.sort_hint import build_dedup_hints


def _writes(positions, counters, capacity):
    items = [DataWrite(p, p * 100 + c, c) for p, c in zip(positions, counters)]
    return items + [DataWrite.empty()] * (capacity - len(items))


def _literal():
    """Positions [1,1,2,3,3,3,4,4,5], counters [1,4,3,2,5,6,8,9,7]."""
    sorted_array = _writes([1, 1, 2, 3, 3, 3, 4, 4, 5], [1, 4, 3, 2, 5, 6, 8, 9, 7], 9)
    deduped = _writes([1, 2, 3, 4, 5], [4, 3, 6, 9, 7], 9)
    run_lengths = [2, 1, 3, 2, 1, 0, 0, 0, 0]
    return sorted_array, deduped, run_lengths


def _expect_error(fn, *args):
    """Run fn and return the ReconError it raises (fails the test if none)."""
    try:
        fn(*args)
    except ReconError as e:
        return e
    raise AssertionError(f"{fn.__name__} should have failed closed")


def _outcome(fn, *args):
    """Error class name, or "ok" if fn accepts."""
    try:
        fn(*args)
    except ReconError as e:
        return type(e).__name__
    return "ok"


def test_literal_runs_accepted():
    """Test the literal five-run example."""
    print("Testing literal runs...")

    sorted_array, deduped, run_lengths = _literal()
    runs = assert_deduped_array(sorted_array, deduped, run_lengths)

    assert runs == 5, f"Expected 5 runs, got {runs}"
    assert [d.counter() for d in deduped[:5]] == [4, 3, 6, 9, 7]
    assert assert_deduped_array_direct(sorted_array, deduped, run_lengths) == 5

    print("  ✓ Literal runs accepted")


def test_unique_positions_idempotent():
    """Test unique positions: deduped == sorted, every run length 1."""
    print("Testing unique positions...")

    sorted_array = _writes([2, 5, 9, 11], [7, 1, 3, 2], 6)
    run_lengths = [1, 1, 1, 1, 0, 0]

    runs = assert_deduped_array(sorted_array, list(sorted_array), run_lengths)
    assert runs == 4, f"Expected 4 runs, got {runs}"

    hints = build_dedup_hints(sorted_array)
    assert hints.deduped == sorted_array, "Hint builder should leave unique input unchanged"
    assert list(hints.run_lengths) == run_lengths, f"Got {list(hints.run_lengths)}"

    print("  ✓ Unique positions idempotent")


def test_single_run_full_array():
    """Test one run covering every slot."""
    print("Testing single full run...")

    sorted_array = _writes([4, 4, 4, 4], [1, 2, 5, 8], 4)
    deduped = [sorted_array[3]] + [DataWrite.empty()] * 3

    runs = assert_deduped_array(sorted_array, deduped, [4, 0, 0, 0])
    assert runs == 1, f"Expected 1 run, got {runs}"

    print("  ✓ Single full run accepted")


def test_full_capacity_unique():
    """Test N distinct positions filling the array (cursor reaches N)."""
    print("Testing full capacity...")

    sorted_array = _writes([1, 2, 3], [3, 2, 1], 3)
    runs = assert_deduped_array(sorted_array, list(sorted_array), np.array([1, 1, 1], dtype=np.uint32))
    assert runs == 3, f"Expected 3 runs, got {runs}"

    print("  ✓ Full capacity accepted")


def test_all_empty():
    """Test all-empty input passes with zero runs."""
    print("Testing all-empty input...")

    empty = [DataWrite.empty()] * 5
    assert assert_deduped_array(empty, list(empty), [0] * 5) == 0
    assert assert_deduped_array([], [], []) == 0

    print("  ✓ All-empty input passes")


def test_stale_value_rejected():
    """Test deduped entry set to the counter-1 item fails DedupValueMismatch."""
    print("Testing stale deduped value...")

    sorted_array, deduped, run_lengths = _literal()
    deduped[0] = sorted_array[0]

    err = _expect_error(assert_deduped_array, sorted_array, deduped, run_lengths)
    assert isinstance(err, DedupValueMismatch), f"Got {type(err).__name__}"
    assert err.code == "DedupValueMismatch"

    print("  ✓ Stale value rejected")


def test_unsorted_positions_rejected():
    """Test non-monotonic positions fail RunPositionOrderViolation."""
    print("Testing unsorted positions...")

    sorted_array = _writes([1, 3, 2], [1, 2, 3], 4)
    err = _expect_error(assert_deduped_array, sorted_array, list(sorted_array), [1, 1, 1, 0])
    assert isinstance(err, RunPositionOrderViolation), f"Got {type(err).__name__}"

    # Equal positions split across two runs are not strictly increasing either
    sorted_array = _writes([1, 1], [1, 2], 2)
    err = _expect_error(assert_deduped_array, sorted_array, list(sorted_array), [1, 1])
    assert isinstance(err, RunPositionOrderViolation), f"Got {type(err).__name__}"

    print("  ✓ Unsorted positions rejected")


def test_run_table_too_short():
    """Test run table ending while data remains fails RunLengthExhausted."""
    print("Testing exhausted run table...")

    sorted_array, deduped, _ = _literal()
    err = _expect_error(assert_deduped_array, sorted_array, deduped, [2, 1, 3, 2, 0, 0, 0, 0, 0])
    assert isinstance(err, RunLengthExhausted), f"Got {type(err).__name__}"

    print("  ✓ Exhausted run table rejected")


def test_run_spans_two_positions():
    """Test a run covering two positions fails RunPositionMismatch."""
    print("Testing run spanning positions...")

    sorted_array = _writes([1, 2], [1, 2], 3)
    deduped = [sorted_array[1], DataWrite.empty(), DataWrite.empty()]
    err = _expect_error(assert_deduped_array, sorted_array, deduped, [2, 0, 0])
    assert isinstance(err, RunPositionMismatch), f"Got {type(err).__name__}"

    print("  ✓ Run spanning positions rejected")


def test_counter_order_in_run():
    """Test non-increasing counters inside a run fail RunCounterOrderViolation."""
    print("Testing counter order inside run...")

    # Max not last: closing item is not the latest write
    sorted_array = _writes([3, 3], [9, 2], 3)
    deduped = [sorted_array[1], DataWrite.empty(), DataWrite.empty()]
    err = _expect_error(assert_deduped_array, sorted_array, deduped, [2, 0, 0])
    assert isinstance(err, RunCounterOrderViolation), f"Got {type(err).__name__}"

    # Run claims more items than the data holds: successor is padding
    sorted_array = _writes([3, 3], [1, 2], 3)
    err = _expect_error(assert_deduped_array, sorted_array, deduped, [3, 0, 0])
    assert isinstance(err, RunCounterOrderViolation), f"Got {type(err).__name__}"

    # Same at the last slot: nothing follows, read as empty
    sorted_array = _writes([3, 3], [1, 2], 2)
    err = _expect_error(assert_deduped_array, sorted_array, deduped[:2], [3, 0])
    assert isinstance(err, RunCounterOrderViolation), f"Got {type(err).__name__}"

    print("  ✓ Counter order enforced")


def test_deduped_length_mismatch():
    """Test deduped longer or shorter than the run count fails DedupLengthMismatch."""
    print("Testing deduped length...")

    sorted_array, deduped, run_lengths = _literal()
    deduped[5] = DataWrite(6, 600, 10)
    err = _expect_error(assert_deduped_array, sorted_array, deduped, run_lengths)
    assert isinstance(err, DedupLengthMismatch), f"Got {type(err).__name__}"

    print("  ✓ Deduped length enforced")


def test_deduped_padding_invalid():
    """Test a hole in the deduped array surfaces PaddingInvalid."""
    print("Testing deduped padding...")

    sorted_array, deduped, run_lengths = _literal()
    deduped[6] = DataWrite(6, 600, 10)
    err = _expect_error(assert_deduped_array, sorted_array, deduped, run_lengths)
    assert isinstance(err, PaddingInvalid), f"Got {type(err).__name__}"

    print("  ✓ Invalid padding rejected")


def test_capacity_mismatch_is_calling_error():
    """Test mismatched capacities raise plain ValueError before the scan."""
    print("Testing capacity mismatch...")

    sorted_array, deduped, run_lengths = _literal()
    for args in [(sorted_array, deduped[:8], run_lengths), (sorted_array, deduped, run_lengths[:8])]:
        try:
            assert_deduped_array(*args)
        except ReconError:
            raise AssertionError("Capacity mismatch is not a reconciliation failure")
        except ValueError:
            pass
        else:
            raise AssertionError("Capacity mismatch should raise ValueError")

    try:
        assert_deduped_array(sorted_array, deduped, [-1] + run_lengths[1:])
    except ReconError:
        raise AssertionError("Negative run length is a calling error")
    except ValueError:
        pass
    else:
        raise AssertionError("Negative run length should raise ValueError")

    print("  ✓ Capacity mismatch raises ValueError")


def test_completeness():
    """Test sum(run_lengths) == array_length(sorted) and runs == validate_array(deduped)."""
    print("Testing completeness...")

    rng = np.random.default_rng(7)
    for _ in range(50):
        n = int(rng.integers(1, 12))
        length = int(rng.integers(0, n + 1))
        positions = rng.integers(0, 5, size=length)
        counters = rng.permutation(np.arange(1, length + 1))
        arr = _writes([int(p) for p in positions], [int(c) for c in counters], n)

        hints = build_dedup_hints(arr)
        runs = assert_deduped_array(hints.sorted_array, hints.deduped, hints.run_lengths)

        assert int(hints.run_lengths.sum()) == array_length(hints.sorted_array)
        assert runs == validate_array(hints.deduped)

    print("  ✓ Completeness holds")


def _mutate(rng, sorted_array, deduped, run_lengths):
    """Apply one random corruption to a valid witness."""
    sorted_array = list(sorted_array)
    deduped = list(deduped)
    run_lengths = [int(v) for v in run_lengths]
    n = len(sorted_array)
    kind = int(rng.integers(0, 6))
    i, j = int(rng.integers(0, n)), int(rng.integers(0, n))

    if kind == 0:
        sorted_array[i], sorted_array[j] = sorted_array[j], sorted_array[i]
    elif kind == 1:
        run_lengths[i] = int(rng.integers(0, 4))
    elif kind == 2:
        deduped[i] = sorted_array[j]
    elif kind == 3:
        x = sorted_array[i]
        sorted_array[i] = DataWrite(x.position(), x.value, int(rng.integers(0, 6)))
    elif kind == 4:
        run_lengths[i], run_lengths[j] = run_lengths[j], run_lengths[i]
    else:
        deduped[i], deduped[j] = deduped[j], deduped[i]
    return sorted_array, deduped, run_lengths


def test_masked_and_direct_agree():
    """Test the masked scan and the direct walk give identical outcomes."""
    print("Testing masked vs direct equivalence...")

    rng = np.random.default_rng(2024)
    outcomes = set()
    for _ in range(400):
        n = int(rng.integers(1, 10))
        length = int(rng.integers(0, n + 1))
        positions = rng.integers(0, 4, size=length)
        counters = rng.permutation(np.arange(1, length + 1))
        arr = _writes([int(p) for p in positions], [int(c) for c in counters], n)
        hints = build_dedup_hints(arr)

        witness = (hints.sorted_array, hints.deduped, hints.run_lengths)
        if rng.random() < 0.8:
            witness = _mutate(rng, *witness)

        masked = _outcome(assert_deduped_array, *witness)
        direct = _outcome(assert_deduped_array_direct, *witness)
        assert masked == direct, f"masked={masked} direct={direct} on {witness}"
        outcomes.add(masked)

    assert "ok" in outcomes and len(outcomes) > 2, f"Too few outcome kinds exercised: {outcomes}"

    print(f"  ✓ Equivalent across outcomes {sorted(outcomes)}")


def test_receipt_determinism():
    """Test verify_deduped_array receipts are stable."""
    print("Testing receipt determinism...")

    sorted_array, deduped, run_lengths = _literal()
    rc1 = verify_deduped_array(sorted_array, deduped, run_lengths)
    rc2 = verify_deduped_array(sorted_array, deduped, np.array(run_lengths, dtype=np.uint32))

    assert rc1 == rc2, "Receipts should be identical for identical inputs"
    assert rc1.runs_closed == rc1.deduped_len == 5
    assert rc1.num_non_empty == 9 and rc1.capacity == 9
    assert len(rc1.sorted_hash) == 64

    print("  ✓ Receipts deterministic")


def run_tests():
    print("\n" + "="*60)
    print("WO-04 Dedup-Run Verifier Tests")
    print("="*60 + "\n")

    test_literal_runs_accepted()
    test_unique_positions_idempotent()
    test_single_run_full_array()
    test_full_capacity_unique()
    test_all_empty()
    test_stale_value_rejected()
    test_unsorted_positions_rejected()
    test_run_table_too_short()
    test_run_spans_two_positions()
    test_counter_order_in_run()
    test_deduped_length_mismatch()
    test_deduped_padding_invalid()
    test_capacity_mismatch_is_calling_error()
    test_completeness()
    test_masked_and_direct_agree()
    test_receipt_determinism()

    print("\n" + "="*60)
    print("✓ All WO-04 tests passed")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_tests()
