#!/usr/bin/env python3
# scripts/check_receipts.py
# WO-06: Receipt comparison tool
# Diffs two run_cases.jsonl files case by case (cross-prover reproducibility)

from __future__ import annotations
import argparse
import json
import sys

# Fields that legitimately differ across machines
ENV_KEYS = ("env",)


def load_jsonl(path: str) -> list[dict]:
    """Load JSONL file as list of records."""
    with open(path) as f:
        return [json.loads(line) for line in f if line.strip()]


def deep_diff(a, b, path: str = "", skip: tuple[str, ...] = ()) -> list[str]:
    """
    Recursively find differences between two JSON values.

    Args:
        a, b: values to compare
        path: current path for messages
        skip: dict keys ignored at any depth

    Returns:
        list of difference descriptions
    """
    if isinstance(a, dict) and isinstance(b, dict):
        diffs = []
        a_keys = set(a) - set(skip)
        b_keys = set(b) - set(skip)
        if a_keys - b_keys:
            diffs.append(f"{path}: keys only in A: {sorted(a_keys - b_keys)}")
        if b_keys - a_keys:
            diffs.append(f"{path}: keys only in B: {sorted(b_keys - a_keys)}")
        for key in sorted(a_keys & b_keys):
            new_path = f"{path}.{key}" if path else key
            diffs.extend(deep_diff(a[key], b[key], new_path, skip))
        return diffs

    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return [f"{path}: length {len(a)} != {len(b)}"]
        diffs = []
        for i, (x, y) in enumerate(zip(a, b)):
            diffs.extend(deep_diff(x, y, f"{path}[{i}]", skip))
        return diffs

    return [] if a == b else [f"{path}: {a!r} != {b!r}"]


def compare(records_a: list[dict], records_b: list[dict], ignore_env: bool) -> list[str]:
    """
    Compare two receipt files keyed by case_id.

    Returns:
        list of difference descriptions (empty if receipts match)
    """
    by_id_a = {r.get("case_id"): r for r in records_a}
    by_id_b = {r.get("case_id"): r for r in records_b}

    diffs = []
    for case_id in sorted(set(by_id_a) - set(by_id_b), key=str):
        diffs.append(f"{case_id}: only in A")
    for case_id in sorted(set(by_id_b) - set(by_id_a), key=str):
        diffs.append(f"{case_id}: only in B")

    skip = ENV_KEYS if ignore_env else ()
    for case_id in sorted(set(by_id_a) & set(by_id_b), key=str):
        diffs.extend(deep_diff(by_id_a[case_id], by_id_b[case_id], str(case_id), skip))
    return diffs


def main():
    """
    Compare two receipt JSONL files.

    Usage:
        python -m scripts.check_receipts <file1.jsonl> <file2.jsonl> [--ignore-env]

    Exit codes:
        0: receipts match
        1: receipts differ
    """
    parser = argparse.ArgumentParser(description="Diff two reconciliation receipt files")
    parser.add_argument("file_a")
    parser.add_argument("file_b")
    parser.add_argument("--ignore-env", action="store_true", help="Ignore environment fingerprints")
    args = parser.parse_args()

    print("Comparing receipts:")
    print(f"  A: {args.file_a}")
    print(f"  B: {args.file_b}")

    diffs = compare(load_jsonl(args.file_a), load_jsonl(args.file_b), args.ignore_env)

    if not diffs:
        print("✓ RECEIPTS_MATCH")
        return

    print(f"\n✗ {len(diffs)} differences:")
    for diff in diffs[:10]:
        print(f"  {diff}")
    if len(diffs) > 10:
        print(f"  ... and {len(diffs) - 10} more differences")

    print("\n✗ RECEIPTS_DIFFER")
    sys.exit(1)


if __name__ == "__main__":
    main()
