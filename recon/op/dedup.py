# recon/op/dedup.py
# WO-04: Dedup-run verifier (keep last write per position)
# Constraint-only check that (deduped, run_lengths) is the collapse of a position-sorted array

"""
Contract (WO-04):
sorted_array is sorted ascending by position, ties by ascending counter.
run_lengths segments its non-empty prefix into runs of equal position.
deduped holds, per run, the run's closing item. "Last write wins" is
structural: counters strictly increase inside a run, so the closing item
is the maximum without ever searching for it.

The reference verifier scans all N slots. Slots past the data are masked
out of every assertion and every state update; reads are clamped into
[0, N) so the access pattern is fixed as well. The direct verifier stops
at the data and walks run by run; it raises the same error on every input.

Failure taxonomy (recon.op.errors):
  (a) RunPositionOrderViolation   run opens at a position <= previous run
  (b) RunLengthExhausted          zero-length run claimed inside data
  (d) RunPositionMismatch         item position != run position
  (e) DedupValueMismatch          closing item != deduped[cursor]
  (f) RunCounterOrderViolation    counter not strictly increasing in run
  end DedupLengthMismatch         runs closed != validate_array(deduped)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Type
import numpy as np
from .contracts import array_length, validate_array, check_capacity
from .bytes import to_u32_table
from .errors import (
    ReconError,
    RunPositionOrderViolation,
    RunLengthExhausted,
    RunPositionMismatch,
    DedupValueMismatch,
    RunCounterOrderViolation,
    DedupLengthMismatch,
)
from .hash import hash_records, hash_u32_table


@dataclass
class DedupRc:
    """
    Dedup verification receipt (written only when verification passes).

    runs_closed equals deduped_len by construction of an accepted check.
    """
    capacity: int
    num_non_empty: int
    runs_closed: int
    deduped_len: int
    sorted_hash: str        # BLAKE3 over sorted_array
    deduped_hash: str       # BLAKE3 over deduped
    run_lengths_hash: str   # BLAKE3 over uint32_le run_lengths


def _run_length_table(run_lengths: Sequence[int], n: int) -> np.ndarray:
    """
    Normalize run_lengths to a uint32 table of capacity n.

    Raises:
        ValueError: if entries are not u32 or the capacity differs
    """
    table = to_u32_table(run_lengths)
    if table.shape != (n,):
        raise ValueError(f"run_lengths must have capacity {n}, got {table.shape[0]}")
    return table


def _require(applies: bool, ok: bool, error: Type[ReconError], detail: str) -> None:
    """Masked assertion: fail only where the check applies."""
    if applies and not ok:
        raise error(detail)


def _next_counter(sorted_array: Sequence, i: int) -> int:
    """Counter of slot i+1; past the end reads as the empty sentinel's counter (0)."""
    n = len(sorted_array)
    return sorted_array[i + 1].counter() if i + 1 < n else 0


def assert_deduped_array(sorted_array: Sequence, deduped: Sequence, run_lengths: Sequence[int]) -> int:
    """
    Verify deduped/run_lengths against sorted_array with a fixed N-slot scan.

    State (initialized from slot 0):
        remaining: items left in the open run
        run_start: first item of the open run
        cursor: runs closed so far (= next deduped slot)

    Per slot i, with active = i < array_length(sorted_array):
      a. remaining == 0 -> open run: remaining = run_lengths[cursor];
         assert run_start.position < sorted[i].position unless i == 0;
         run_start = sorted[i]
      b. assert remaining != 0
      c. remaining -= 1
      d. assert sorted[i].position == run_start.position
      e. remaining == 0 -> assert deduped[cursor] == sorted[i]; cursor += 1
      f. otherwise -> assert sorted[i].counter < sorted[i+1].counter
    After the scan: assert cursor == validate_array(deduped).

    Args:
        sorted_array: position-sorted records, capacity N
        deduped: claimed collapse, capacity N
        run_lengths: u32 run-length table, capacity N

    Returns:
        int: number of runs closed

    Raises:
        ReconError subclass: on the first violated check (fail-closed)
        ValueError: if capacities differ or run_lengths is not a u32 table
    """
    n = check_capacity(sorted_array, deduped)
    table = _run_length_table(run_lengths, n)
    num_non_empty = array_length(sorted_array)
    in_data = np.arange(n) < num_non_empty

    remaining = 0
    run_start = sorted_array[0] if n > 0 else None
    cursor = 0

    for i in range(n):
        active = bool(in_data[i])
        item = sorted_array[i]
        slot = min(cursor, n - 1)

        # a. open a new run
        opening = active and remaining == 0
        remaining = int(table[slot]) if opening else remaining
        _require(
            opening and i != 0,
            run_start.position() < item.position(),
            RunPositionOrderViolation,
            f"slot {i}: position {item.position()} after run at {run_start.position()}",
        )
        run_start = item if opening else run_start

        # b, c.
        _require(active, remaining != 0, RunLengthExhausted, f"slot {i}: run {cursor}")
        remaining = remaining - 1 if active else remaining

        # d.
        _require(
            active,
            item.position() == run_start.position(),
            RunPositionMismatch,
            f"slot {i}: position {item.position()} in run at {run_start.position()}",
        )

        # e. close the run
        closing = active and remaining == 0
        _require(closing, deduped[slot] == item, DedupValueMismatch, f"slot {i}: deduped[{cursor}]")
        cursor = cursor + 1 if closing else cursor

        # f. mid-run
        next_counter = _next_counter(sorted_array, i)
        _require(
            active and not closing,
            item.counter() < next_counter,
            RunCounterOrderViolation,
            f"slot {i}: counter {item.counter()} then {next_counter}",
        )

    deduped_len = validate_array(deduped)
    _require(True, cursor == deduped_len, DedupLengthMismatch, f"closed {cursor} runs, deduped length {deduped_len}")
    return cursor


def assert_deduped_array_direct(sorted_array: Sequence, deduped: Sequence, run_lengths: Sequence[int]) -> int:
    """
    Early-exit equivalent of assert_deduped_array.

    Walks the data run by run and stops at array_length(sorted_array).
    Raises exactly the error the masked scan raises; only usable where
    the loop shape is allowed to depend on the data.
    """
    n = check_capacity(sorted_array, deduped)
    table = _run_length_table(run_lengths, n)
    num_non_empty = array_length(sorted_array)

    cursor = 0
    i = 0
    prev_position = None
    while i < num_non_empty:
        run_start = sorted_array[i]
        if prev_position is not None and not prev_position < run_start.position():
            raise RunPositionOrderViolation(
                f"slot {i}: position {run_start.position()} after run at {prev_position}"
            )
        run_len = int(table[cursor])
        if run_len == 0:
            raise RunLengthExhausted(f"slot {i}: run {cursor}")

        for k in range(run_len):
            item = sorted_array[i]
            if item.position() != run_start.position():
                raise RunPositionMismatch(
                    f"slot {i}: position {item.position()} in run at {run_start.position()}"
                )
            if k == run_len - 1:
                if deduped[cursor] != item:
                    raise DedupValueMismatch(f"slot {i}: deduped[{cursor}]")
            else:
                next_counter = _next_counter(sorted_array, i)
                if not item.counter() < next_counter:
                    raise RunCounterOrderViolation(
                        f"slot {i}: counter {item.counter()} then {next_counter}"
                    )
            i += 1

        prev_position = run_start.position()
        cursor += 1

    deduped_len = validate_array(deduped)
    if cursor != deduped_len:
        raise DedupLengthMismatch(f"closed {cursor} runs, deduped length {deduped_len}")
    return cursor


def verify_deduped_array(sorted_array: Sequence, deduped: Sequence, run_lengths: Sequence[int]) -> DedupRc:
    """
    Run the masked verifier and return its receipt.

    Returns:
        DedupRc

    Raises:
        ReconError subclass: if verification fails (no receipt is produced)
    """
    runs_closed = assert_deduped_array(sorted_array, deduped, run_lengths)
    return DedupRc(
        capacity=len(sorted_array),
        num_non_empty=array_length(sorted_array),
        runs_closed=runs_closed,
        deduped_len=validate_array(deduped),
        sorted_hash=hash_records(sorted_array),
        deduped_hash=hash_records(deduped),
        run_lengths_hash=hash_u32_table(run_lengths),
    )
