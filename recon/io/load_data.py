# recon/io/load_data.py
# WO-05: Case JSON loader and record decoding

from __future__ import annotations
import json
from typing import Any, List, Sequence
from recon.op.records import CounterValue, DataWrite


def load_case(path: str) -> dict[str, Any]:
    """
    Load a reconciliation case from a JSON file.

    Expected format:
    {
        "case_id": "...",
        "capacity": N,
        "combine": {"lt": [[value, counter], ...], "gte": [[value, counter], ...]},
        "dedup": {"sorted": [[position, value, counter], ...],
                  "deduped": [[position, value, counter], ...],
                  "run_lengths": [...]},
        "expect": {"status": "accepted" | "rejected", "error_code": "...",
                   "hints": [[counter, original_index], ...]}
    }

    Args:
        path: path to case JSON file

    Returns:
        dict: parsed case
    """
    with open(path, "r") as f:
        return json.load(f)


def _pad(items: List, capacity: int, pad: Any, name: str) -> List:
    if len(items) > capacity:
        raise ValueError(f"{name}: {len(items)} entries exceed capacity {capacity}")
    return items + [pad] * (capacity - len(items))


def decode_counter_values(rows: Sequence[Sequence[int]], capacity: int, name: str = "array") -> List[CounterValue]:
    """
    Decode [[value, counter], ...] rows into a padded CounterValue array.

    Raises:
        ValueError: on malformed rows or too many entries
    """
    items = []
    for row in rows:
        if len(row) != 2:
            raise ValueError(f"{name}: expected [value, counter], got {row!r}")
        items.append(CounterValue(int(row[0]), int(row[1])))
    return _pad(items, capacity, CounterValue.empty(), name)


def decode_data_writes(rows: Sequence[Sequence[int]], capacity: int, name: str = "array") -> List[DataWrite]:
    """
    Decode [[position, value, counter], ...] rows into a padded DataWrite array.

    Raises:
        ValueError: on malformed rows or too many entries
    """
    items = []
    for row in rows:
        if len(row) != 3:
            raise ValueError(f"{name}: expected [position, value, counter], got {row!r}")
        items.append(DataWrite(int(row[0]), int(row[1]), int(row[2])))
    return _pad(items, capacity, DataWrite.empty(), name)


def decode_run_lengths(values: Sequence[int], capacity: int) -> List[int]:
    """Pad a run-length list with zeros to capacity."""
    return _pad([int(v) for v in values], capacity, 0, "run_lengths")
